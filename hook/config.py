"""
Hook configuration from the environment.

Entry points call load_dotenv() first, then HookConfig.from_env().

Environment variables:
  HOOK_ADMIN_ADDRESS        Initial admin (OWNER + whitelister + signer). Required.
  HOOK_VERIFYING_CONTRACT   Address identifying this hook instance. Required.
  HOOK_CHAIN                "base" or "bsc" (default: base)
  HOOK_CHAIN_ID             Overrides the chain id from HOOK_CHAIN
  HOOK_DOMAIN_NAME          EIP-712 domain name (default: BorrowHook)
  HOOK_DOMAIN_VERSION       EIP-712 domain version (default: 1)
  HOOK_EVENT_STREAM_SIZE    Events kept in memory (default: 500)
  API_AUTH_SECRET           HMAC key for admin bearer tokens. Required.
  API_AUTH_TTL_SECONDS      Bearer token lifetime (default: 3600)
  API_ALLOWED_ORIGINS       Comma-separated CORS origins
  HOST / PORT               Server bind (default: 0.0.0.0:8002)
"""

import os
import logging
from dataclasses import dataclass, field

from .accounts import normalize
from .events import DEFAULT_STREAM_SIZE
from .signatures import DOMAIN_NAME, DOMAIN_VERSION, EIP712Domain

logger = logging.getLogger("borrowhook.config")


CHAIN_DEFAULTS = {
    "base": {"chain_id": 8453},
    "bsc": {"chain_id": 56},
}
DEFAULT_CHAIN = "base"


@dataclass
class HookConfig:
    admin_address: str
    verifying_contract: str
    auth_secret: str
    chain: str = DEFAULT_CHAIN
    chain_id: int = CHAIN_DEFAULTS[DEFAULT_CHAIN]["chain_id"]
    domain_name: str = DOMAIN_NAME
    domain_version: str = DOMAIN_VERSION
    event_stream_size: int = DEFAULT_STREAM_SIZE
    auth_ttl_seconds: int = 3600
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    host: str = "0.0.0.0"
    port: int = 8002

    @classmethod
    def from_env(cls) -> "HookConfig":
        admin = _required("HOOK_ADMIN_ADDRESS")
        verifying_contract = _required("HOOK_VERIFYING_CONTRACT")

        chain = os.getenv("HOOK_CHAIN", DEFAULT_CHAIN).strip().lower()
        chain_id_env = os.getenv("HOOK_CHAIN_ID", "").strip()
        if chain_id_env:
            chain_id = _int("HOOK_CHAIN_ID", chain_id_env)
        elif chain in CHAIN_DEFAULTS:
            chain_id = CHAIN_DEFAULTS[chain]["chain_id"]
        else:
            raise ValueError(f"Unknown HOOK_CHAIN '{chain}' (expected one of {list(CHAIN_DEFAULTS)}) and no HOOK_CHAIN_ID")

        auth_secret = _required("API_AUTH_SECRET")

        origins_env = os.getenv("API_ALLOWED_ORIGINS", "http://localhost:3000")

        return cls(
            admin_address=normalize(admin),
            verifying_contract=normalize(verifying_contract),
            chain=chain,
            chain_id=chain_id,
            domain_name=os.getenv("HOOK_DOMAIN_NAME", DOMAIN_NAME),
            domain_version=os.getenv("HOOK_DOMAIN_VERSION", DOMAIN_VERSION),
            event_stream_size=_int("HOOK_EVENT_STREAM_SIZE", os.getenv("HOOK_EVENT_STREAM_SIZE", str(DEFAULT_STREAM_SIZE))),
            auth_secret=auth_secret,
            auth_ttl_seconds=_int("API_AUTH_TTL_SECONDS", os.getenv("API_AUTH_TTL_SECONDS", "3600")),
            allowed_origins=[o.strip() for o in origins_env.split(",") if o.strip()],
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int("PORT", os.getenv("PORT", "8002")),
        )

    def domain(self) -> EIP712Domain:
        return EIP712Domain(
            chain_id=self.chain_id,
            verifying_contract=self.verifying_contract,
            name=self.domain_name,
            version=self.domain_version,
        )


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"{name} is required")
    return value


def _int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'")
