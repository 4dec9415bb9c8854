"""
Pool-side borrow hook slot

The lending pool holds "the current borrow hook, or none". Only the pool
configurator may swap it; a swap takes effect on the very next borrow.
With no hook set, borrows skip authorization entirely.

The pool's own accounting is out of scope here. validate_borrow() is the
single call the pool makes before touching any balance.
"""

import logging
from enum import IntEnum
from typing import Optional, Protocol

from .accounts import normalize
from .errors import BorrowHookRejected, Unauthorized

logger = logging.getLogger("borrowhook.pool")


class RateMode(IntEnum):
    NONE = 0
    STABLE = 1
    VARIABLE = 2


class BorrowGate(Protocol):
    """Anything the pool can consult before a borrow."""

    def before_borrow(self, requester: str, on_behalf_of: str, asset: str,
                      amount: int, rate_mode: int) -> bool: ...


class PoolBorrowHookSlot:

    def __init__(self, configurator: str):
        self.configurator = normalize(configurator)
        self._hook: Optional[BorrowGate] = None

    def get_borrow_hook(self) -> Optional[BorrowGate]:
        return self._hook

    def set_borrow_hook(self, caller: str, hook: Optional[BorrowGate]):
        """Install, swap or (with None) remove the hook. Configurator only."""
        if normalize(caller) != self.configurator:
            raise Unauthorized(caller, "pool_configurator")
        previous = self._hook
        self._hook = hook
        logger.info(f"Borrow hook changed: {_describe(previous)} -> {_describe(hook)}")

    def validate_borrow(self, requester: str, asset: str, amount: int,
                        rate_mode: int, on_behalf_of: str):
        """
        Raise BorrowHookRejected if a hook is set and says no.
        Argument order follows the pool's borrow() call.
        """
        hook = self._hook
        if hook is None:
            return
        if not hook.before_borrow(requester, on_behalf_of, asset, amount, int(rate_mode)):
            raise BorrowHookRejected(on_behalf_of)


def _describe(hook: Optional[BorrowGate]) -> str:
    if hook is None:
        return "none"
    domain = getattr(hook, "domain", None)
    if domain is not None:
        return f"{type(hook).__name__}@{domain.verifying_contract}"
    return type(hook).__name__
