"""
BorrowHook - main entry point

Loads configuration, builds the hook, serves the API.

Usage:
    python main.py
    uvicorn main:app
"""

import os
import re
import logging

import uvicorn
from dotenv import load_dotenv

# ============================================================
# BOOTSTRAP
# ============================================================

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


class _SecretMaskingFilter(logging.Filter):
    """Redact 64-char hex strings (private keys) from all log output."""
    _PATTERN = re.compile(r'(?<![0-9a-fA-F])([0-9a-fA-F]{64})(?![0-9a-fA-F])')

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._PATTERN.sub('[REDACTED]', record.msg)
        if record.args:
            formatted = record.getMessage()
            if self._PATTERN.search(formatted):
                record.msg = self._PATTERN.sub('[REDACTED]', formatted)
                record.args = None
        return True


_mask_filter = _SecretMaskingFilter()
for _h in logging.root.handlers:
    _h.addFilter(_mask_filter)

logger = logging.getLogger("borrowhook.main")


from hook.borrow_hook import BorrowHook
from hook.config import HookConfig
from hook.events import EventLog
from api.server import create_app


def create_borrowhook_app():
    config = HookConfig.from_env()
    hook = BorrowHook(
        admin=config.admin_address,
        domain=config.domain(),
        events=EventLog(max_size=config.event_stream_size),
    )
    logger.info(
        f"Hook domain: {config.domain_name} v{config.domain_version} "
        f"chain={config.chain} ({config.chain_id}) contract={config.verifying_contract}"
    )
    return create_app(
        hook,
        auth_secret=config.auth_secret,
        auth_ttl_seconds=config.auth_ttl_seconds,
        allowed_origins=config.allowed_origins,
    ), config


# ============================================================
# ENTRY POINT
# ============================================================

app, config = create_borrowhook_app()

if __name__ == "__main__":
    logger.info(f"Starting server on {config.host}:{config.port}")
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        log_level=LOG_LEVEL.lower(),
    )
