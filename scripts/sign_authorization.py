"""
Sign a WhitelistAuthorization

Produces an EIP-712 signature that anyone can relay to
POST /whitelist/authorize-with-signature. The signing key must belong to
a wallet holding the AUTHORIZED_SIGNER capability on the target hook.

Usage:
    python scripts/sign_authorization.py 0xAccount --nonce 0
    python scripts/sign_authorization.py 0xAccount --nonce 3 --ttl 600
    python scripts/sign_authorization.py 0xAccount --nonce 0 --deadline 1767225600

The nonce must be the account's current nonce (GET /nonce/{account}).

Environment:
    SIGNER_PRIVATE_KEY       Signer key (required)
    HOOK_VERIFYING_CONTRACT  Hook instance identity (required)
    HOOK_CHAIN / HOOK_CHAIN_ID, HOOK_DOMAIN_NAME, HOOK_DOMAIN_VERSION
"""

import os
import sys
import json
import time
import argparse
import logging
from pathlib import Path

from dotenv import load_dotenv
from eth_account import Account

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

load_dotenv(ROOT / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("borrowhook.sign")

from hook.accounts import normalize
from hook.config import CHAIN_DEFAULTS, DEFAULT_CHAIN
from hook.signatures import EIP712Domain, DOMAIN_NAME, DOMAIN_VERSION, sign_authorization


def build_domain(args) -> EIP712Domain:
    if args.chain_id is not None:
        chain_id = args.chain_id
    else:
        chain_id = CHAIN_DEFAULTS[args.chain]["chain_id"]
    return EIP712Domain(
        chain_id=chain_id,
        verifying_contract=normalize(args.contract),
        name=os.getenv("HOOK_DOMAIN_NAME", DOMAIN_NAME),
        version=os.getenv("HOOK_DOMAIN_VERSION", DOMAIN_VERSION),
    )


def main():
    parser = argparse.ArgumentParser(description="Sign a BorrowHook whitelist authorization")
    parser.add_argument("account", help="Account to whitelist")
    parser.add_argument("--nonce", type=int, required=True, help="Account's current nonce")
    parser.add_argument("--deadline", type=int, default=None, help="Unix timestamp (overrides --ttl)")
    parser.add_argument("--ttl", type=int, default=3600, help="Seconds from now until expiry (default: 3600)")
    parser.add_argument("--chain", default=os.getenv("HOOK_CHAIN", DEFAULT_CHAIN), choices=list(CHAIN_DEFAULTS.keys()))
    parser.add_argument("--chain-id", type=int, default=int(os.environ["HOOK_CHAIN_ID"]) if os.getenv("HOOK_CHAIN_ID") else None)
    parser.add_argument("--contract", default=os.getenv("HOOK_VERIFYING_CONTRACT", ""),
                        help="Hook verifying contract address")
    args = parser.parse_args()

    private_key = os.getenv("SIGNER_PRIVATE_KEY", "")
    if not private_key:
        logger.error("SIGNER_PRIVATE_KEY not set")
        sys.exit(1)
    if not args.contract:
        logger.error("Verifying contract not set (--contract or HOOK_VERIFYING_CONTRACT)")
        sys.exit(1)

    try:
        account = normalize(args.account)
        domain = build_domain(args)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    deadline = args.deadline if args.deadline is not None else int(time.time()) + args.ttl
    signer_address = Account.from_key(private_key).address

    signature = sign_authorization(private_key, domain, account, args.nonce, deadline)
    logger.info(f"Signed authorization for {account} (nonce {args.nonce}) by {signer_address}")

    print(json.dumps({
        "account": account,
        "deadline": deadline,
        "nonce": args.nonce,
        "signer": signer_address,
        "signature": "0x" + signature.hex(),
        "v": signature[64],
        "r": "0x" + signature[:32].hex(),
        "s": "0x" + signature[32:64].hex(),
    }, indent=2))


if __name__ == "__main__":
    main()
