"""
Whitelist Authorization Signatures - EIP-712 digest + signer recovery

A signer authorizes one account for one nonce until a deadline:

    WhitelistAuthorization(address account,uint256 nonce,uint256 deadline)

bound to the domain (name, version, chainId, verifyingContract) so the
same signature is useless on another chain or another hook instance.

Design:
- Digest built by hand from keccak + ABI encoding, so verification has no
  dependency on a typed-data library and is checkable against test vectors.
- Signing side goes through eth_account's typed-data encoder; tests check
  both sides agree.
- recover_signer() never raises on bad input: it returns None and the hook
  turns that into InvalidSignature.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import decode_hex, keccak

from .accounts import NULL_ADDRESS, normalize

logger = logging.getLogger("borrowhook.signatures")


DOMAIN_NAME = "BorrowHook"
DOMAIN_VERSION = "1"

EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
WHITELIST_AUTHORIZATION_TYPE = "WhitelistAuthorization(address account,uint256 nonce,uint256 deadline)"

EIP712_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
WHITELIST_TYPEHASH = keccak(text=WHITELIST_AUTHORIZATION_TYPE)

UINT256_MAX = 2**256 - 1

# secp256k1 group order. s above N/2 is the malleable twin of a valid signature.
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2

SignatureInput = Union[bytes, str, tuple]


@dataclass(frozen=True)
class EIP712Domain:
    """Domain context. verifying_contract identifies the hook instance."""
    chain_id: int
    verifying_contract: str
    name: str = DOMAIN_NAME
    version: str = DOMAIN_VERSION

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": normalize(self.verifying_contract),
        }


# ============================================================
# DIGEST
# ============================================================

def domain_separator(domain: EIP712Domain) -> bytes:
    return keccak(encode(
        ["bytes32", "bytes32", "bytes32", "uint256", "address"],
        [
            EIP712_DOMAIN_TYPEHASH,
            keccak(text=domain.name),
            keccak(text=domain.version),
            domain.chain_id,
            normalize(domain.verifying_contract),
        ],
    ))


def whitelist_struct_hash(account: str, nonce: int, deadline: int) -> bytes:
    return keccak(encode(
        ["bytes32", "address", "uint256", "uint256"],
        [WHITELIST_TYPEHASH, normalize(account), nonce, deadline],
    ))


def authorization_digest(separator: bytes, account: str, nonce: int, deadline: int) -> bytes:
    """keccak256("\\x19\\x01" || domainSeparator || structHash)"""
    return keccak(b"\x19\x01" + separator + whitelist_struct_hash(account, nonce, deadline))


# ============================================================
# RECOVERY
# ============================================================

def join_signature(v: int, r: Union[bytes, str, int], s: Union[bytes, str, int]) -> bytes:
    """Pack a (v, r, s) triple into the 65-byte r || s || v form."""
    def _word(x) -> bytes:
        if isinstance(x, int):
            return x.to_bytes(32, "big")
        raw = decode_hex(x) if isinstance(x, str) else bytes(x)
        if len(raw) != 32:
            raise ValueError(f"signature component must be 32 bytes, got {len(raw)}")
        return raw

    if not 0 <= v <= 255:
        raise ValueError(f"v out of range: {v}")
    return _word(r) + _word(s) + bytes([v])


def _signature_bytes(signature: SignatureInput) -> bytes:
    if isinstance(signature, tuple):
        return join_signature(*signature)
    if isinstance(signature, str):
        return decode_hex(signature)
    return bytes(signature)


def recover_signer(digest: bytes, signature: SignatureInput) -> Optional[str]:
    """
    Recover the checksummed signer address of digest.

    Returns None for anything that is not a canonical 65-byte signature:
    wrong length, v not in {0, 1, 27, 28}, r/s out of range, high s,
    or a recovery that fails or lands on the zero address.
    """
    try:
        raw = _signature_bytes(signature)
    except (ValueError, TypeError) as e:
        logger.debug(f"Malformed signature: {e}")
        return None

    if len(raw) != 65:
        return None

    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        return None
    if not 0 < r < SECP256K1_N or not 0 < s <= SECP256K1_HALF_N:
        return None

    try:
        public_key = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError) as e:
        logger.debug(f"Signature recovery failed: {e}")
        return None

    address = public_key.to_checksum_address()
    if address == NULL_ADDRESS:
        return None
    return address


# ============================================================
# SIGNING (signer / relayer side)
# ============================================================

def typed_data(domain: EIP712Domain, account: str, nonce: int, deadline: int) -> dict:
    """Full EIP-712 payload, as a wallet's eth_signTypedData_v4 expects it."""
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "WhitelistAuthorization": [
                {"name": "account", "type": "address"},
                {"name": "nonce", "type": "uint256"},
                {"name": "deadline", "type": "uint256"},
            ],
        },
        "primaryType": "WhitelistAuthorization",
        "domain": domain.to_dict(),
        "message": {
            "account": normalize(account),
            "nonce": nonce,
            "deadline": deadline,
        },
    }


def sign_authorization(private_key: str, domain: EIP712Domain, account: str,
                       nonce: int, deadline: int) -> bytes:
    """Sign a WhitelistAuthorization. Returns the 65-byte signature (v = 27/28)."""
    signable = encode_typed_data(full_message=typed_data(domain, account, nonce, deadline))
    signed = Account.sign_message(signable, private_key=private_key)
    return bytes(signed.signature)
