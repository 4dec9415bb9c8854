"""
Capability Registry - who may administer the whitelist

Three capability classes:
  OWNER               grants and revokes any capability, itself included
  DIRECT_WHITELISTER  adds/removes whitelist members directly
  AUTHORIZED_SIGNER   signs delegated whitelist authorizations

The initial admin holds all three. Nothing stops the last OWNER from
revoking itself; the hook then has no administrator left. That is logged
loudly but allowed.
"""

import logging
from enum import Enum
from typing import Optional

from .accounts import normalize
from .errors import Unauthorized
from .events import EventLog, CapabilityGranted, CapabilityRevoked

logger = logging.getLogger("borrowhook.roles")


class Capability(Enum):
    OWNER = "owner"
    DIRECT_WHITELISTER = "whitelister"
    AUTHORIZED_SIGNER = "signer"


CAPABILITY_MAP = {c.value: c for c in Capability}


class CapabilityRegistry:
    """
    (account, capability) -> bool lookup with OWNER-gated mutation.

    Usage:
        registry = CapabilityRegistry(admin)
        registry.grant(admin, Capability.AUTHORIZED_SIGNER, relayer_signer)
        registry.has_capability(Capability.AUTHORIZED_SIGNER, relayer_signer)  # True
    """

    def __init__(self, initial_admin: str, events: Optional[EventLog] = None):
        self._holders: dict[Capability, set[str]] = {c: set() for c in Capability}
        self._events = events or EventLog()

        admin = normalize(initial_admin)
        for capability in Capability:
            self._holders[capability].add(admin)
            self._events.emit(CapabilityGranted(capability=capability.value, account=admin, by=admin))

    def has_capability(self, capability: Capability, account: str) -> bool:
        try:
            return normalize(account) in self._holders[capability]
        except ValueError:
            return False

    def require(self, capability: Capability, caller: str):
        """Raise Unauthorized unless caller holds capability."""
        if not self.has_capability(capability, caller):
            raise Unauthorized(caller, capability.value)

    def grant(self, caller: str, capability: Capability, account: str) -> bool:
        """Grant capability to account. Returns False if it was already held."""
        self.require(Capability.OWNER, caller)
        account = normalize(account)
        if account in self._holders[capability]:
            return False
        self._holders[capability].add(account)
        self._events.emit(CapabilityGranted(
            capability=capability.value, account=account, by=normalize(caller),
        ))
        return True

    def revoke(self, caller: str, capability: Capability, account: str) -> bool:
        """Revoke capability from account. Returns False if it was not held."""
        self.require(Capability.OWNER, caller)
        return self._remove(capability, normalize(account), normalize(caller))

    def renounce(self, caller: str, capability: Capability) -> bool:
        """Caller drops one of its own capabilities."""
        caller = normalize(caller)
        return self._remove(capability, caller, caller)

    def holders(self, capability: Capability) -> list[str]:
        return sorted(self._holders[capability])

    def _remove(self, capability: Capability, account: str, by: str) -> bool:
        if account not in self._holders[capability]:
            return False
        self._holders[capability].discard(account)
        if capability == Capability.OWNER and not self._holders[Capability.OWNER]:
            logger.warning(f"Last OWNER {account} removed by {by}: capabilities can no longer change")
        self._events.emit(CapabilityRevoked(capability=capability.value, account=account, by=by))
        return True

    def get_status(self) -> dict:
        return {c.value: self.holders(c) for c in Capability}
