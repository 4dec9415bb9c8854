"""
Wallet Signature Authentication - admin API access

Admin endpoints act on behalf of a wallet (the caller whose capabilities
the hook checks). The wallet proves itself with an EIP-191 personal_sign
of a timestamped message, then gets a short-lived HMAC bearer token.

Flow:
  1. Client: wallet signs "Sign in to BorrowHook admin. Timestamp: {ts}"
  2. Server: recover signer, require it to match the claimed wallet
  3. Server: require the timestamp within MAX_MESSAGE_AGE_SECONDS
  4. Server: issue token (default 1 hour)

The token only proves identity. Capability checks stay in the hook.
"""

import time
import hmac
import json
import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger("borrowhook.api.auth")

MAX_MESSAGE_AGE_SECONDS = 300
AUTH_MESSAGE_PREFIX = "Sign in to BorrowHook admin. Timestamp: "


@dataclass
class AuthToken:
    """Authenticated session token."""
    wallet: str         # Verified wallet address (checksummed)
    issued_at: float
    expires_at: float


def create_auth_message(timestamp: Optional[int] = None) -> str:
    """Generate the message an admin wallet must sign."""
    ts = int(time.time()) if timestamp is None else timestamp
    return f"{AUTH_MESSAGE_PREFIX}{ts}"


def parse_auth_message(message: str) -> int:
    """Timestamp embedded in an auth message. Raises ValueError if malformed."""
    if not message.startswith(AUTH_MESSAGE_PREFIX):
        raise ValueError("Unexpected auth message format")
    return int(message[len(AUTH_MESSAGE_PREFIX):])


def verify_signature(message: str, signature: str) -> Optional[str]:
    """
    Recover the signer address from an EIP-191 personal_sign signature.

    Returns the checksummed signer address, or None if the signature
    cannot be recovered.
    """
    try:
        msg = encode_defunct(text=message)
        return Account.recover_message(msg, signature=signature)
    except Exception as e:
        logger.warning(f"Signature verification failed: {e}")
        return None


class TokenSigner:
    """HMAC-signed bearer tokens (JWT-like, no extra dependency)."""

    def __init__(self, secret: str, ttl_seconds: int = 3600):
        self._secret = secret.encode()
        self.ttl_seconds = ttl_seconds

    def _sign(self, payload: dict) -> str:
        return hmac.new(self._secret, json.dumps(payload, sort_keys=True).encode(), hashlib.sha256).hexdigest()

    def create_token(self, wallet: str) -> str:
        now = int(time.time())
        payload = {"wallet": wallet, "iat": now, "exp": now + self.ttl_seconds}
        token_data = json.dumps({"payload": payload, "sig": self._sign(payload)})
        return base64.urlsafe_b64encode(token_data.encode()).decode()

    def verify_token(self, token: str) -> Optional[AuthToken]:
        """Returns AuthToken if valid, None if expired or tampered."""
        try:
            token_data = json.loads(base64.urlsafe_b64decode(token.encode()))
            payload = token_data["payload"]
            sig = token_data["sig"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Malformed token: {e}")
            return None

        if not hmac.compare_digest(str(sig), self._sign(payload)):
            logger.warning("Token signature mismatch")
            return None

        if time.time() > payload["exp"]:
            logger.info(f"Token expired for {payload['wallet']}")
            return None

        return AuthToken(
            wallet=payload["wallet"],
            issued_at=payload["iat"],
            expires_at=payload["exp"],
        )
