"""
BorrowHook - the authorization gate the lending pool consults before a borrow

Three entry surfaces over one whitelist:
  1. Borrow gate       before_borrow(): emits an audit event, answers
                       is_whitelisted(on_behalf_of). Never raises for a
                       non-member; the pool decides what False means.
  2. Admin surface     add/remove (single + batch), DIRECT_WHITELISTER only.
  3. Delegated path    authorize_with_signature(): anyone may relay an
                       EIP-712 authorization signed by an AUTHORIZED_SIGNER.

Execution model:
- Every public call holds one re-entrant lock, so calls run one at a time
  to completion, like transactions on a ledger.
- All checks happen before any write. A raised error means nothing changed.
- The decision keys on the debt recipient (on_behalf_of), not the requester:
  a credit-delegated borrow needs the recipient whitelisted.

Replay protection is the per-account nonce alone. A signature commits to
the nonce current at signing time; once consumed the nonce moves on and
the same signature recovers to a different (unauthorized) address.
"""

import time
import logging
import threading
from typing import Callable, Iterable, Optional

from .accounts import normalize, normalize_many
from .errors import InvalidSignature, SignatureExpired
from .events import (
    EventLog,
    WhitelistAdded,
    WhitelistRemoved,
    WhitelistedWithSignature,
    BorrowHookInvoked,
)
from .roles import Capability, CapabilityRegistry
from .signatures import (
    EIP712Domain,
    SignatureInput,
    UINT256_MAX,
    authorization_digest,
    domain_separator,
    recover_signer,
)
from .whitelist import WhitelistStore

logger = logging.getLogger("borrowhook.hook")


class BorrowHook:
    """
    Whitelist-based borrow hook.

    Usage:
        hook = BorrowHook(admin, EIP712Domain(chain_id=8453, verifying_contract=addr))
        hook.add_to_whitelist(admin, user)
        hook.before_borrow(user, user, asset, 100, 2)   # True
    """

    def __init__(
        self,
        admin: str,
        domain: EIP712Domain,
        clock: Callable[[], float] = time.time,
        events: Optional[EventLog] = None,
    ):
        self.events = events or EventLog()
        self.roles = CapabilityRegistry(admin, events=self.events)
        self.whitelist = WhitelistStore()
        self.domain = domain
        self._domain_separator: bytes = domain_separator(domain)
        self._clock = clock
        self._lock = threading.RLock()

        logger.info(
            f"BorrowHook ready: admin={normalize(admin)} chain_id={domain.chain_id} "
            f"verifying_contract={normalize(domain.verifying_contract)}"
        )

    @property
    def domain_separator(self) -> bytes:
        return self._domain_separator

    def now(self) -> int:
        return int(self._clock())

    # ============================================================
    # READS
    # ============================================================

    def is_whitelisted(self, account: str) -> bool:
        return self.whitelist.is_whitelisted(account)

    def nonce_of(self, account: str) -> int:
        return self.whitelist.nonce_of(account)

    def has_capability(self, capability: Capability, account: str) -> bool:
        return self.roles.has_capability(capability, account)

    # ============================================================
    # CAPABILITIES (OWNER only)
    # ============================================================

    def grant(self, caller: str, capability: Capability, account: str) -> bool:
        with self._lock:
            return self.roles.grant(caller, capability, account)

    def revoke(self, caller: str, capability: Capability, account: str) -> bool:
        with self._lock:
            return self.roles.revoke(caller, capability, account)

    def renounce(self, caller: str, capability: Capability) -> bool:
        with self._lock:
            return self.roles.renounce(caller, capability)

    # ============================================================
    # ADMIN SURFACE (DIRECT_WHITELISTER only)
    # ============================================================

    def add_to_whitelist(self, caller: str, account: str):
        self.add_to_whitelist_batch(caller, [account])

    def remove_from_whitelist(self, caller: str, account: str):
        self.remove_from_whitelist_batch(caller, [account])

    def add_to_whitelist_batch(self, caller: str, accounts: Iterable[str]):
        with self._lock:
            self.roles.require(Capability.DIRECT_WHITELISTER, caller)
            targets = normalize_many(accounts)
            by = normalize(caller)
            for account in targets:
                self.whitelist.set_whitelisted(account, True)
                self.events.emit(WhitelistAdded(account=account, by=by))

    def remove_from_whitelist_batch(self, caller: str, accounts: Iterable[str]):
        with self._lock:
            self.roles.require(Capability.DIRECT_WHITELISTER, caller)
            targets = normalize_many(accounts)
            by = normalize(caller)
            for account in targets:
                self.whitelist.set_whitelisted(account, False)
                self.events.emit(WhitelistRemoved(account=account, by=by))

    # ============================================================
    # DELEGATED AUTHORIZATION (permissionless relay)
    # ============================================================

    def authorize_with_signature(self, account: str, deadline: int, signature: SignatureInput) -> int:
        """
        Whitelist account using a signer's EIP-712 authorization.

        Deadline is inclusive: a call at exactly `deadline` is still valid.
        Time has whole-second granularity, like ledger block timestamps:
        now() truncates the clock, so `deadline` covers its entire second.
        Returns the nonce consumed.

        Raises:
            SignatureExpired: now > deadline
            InvalidSignature: unrecoverable signature, signer without
                AUTHORIZED_SIGNER, or a nonce other than the current one
        """
        with self._lock:
            account = normalize(account)
            now = self.now()
            if now > deadline:
                raise SignatureExpired(deadline, now)
            if deadline > UINT256_MAX:
                raise InvalidSignature()

            expected_nonce = self.whitelist.nonce_of(account)
            digest = authorization_digest(self._domain_separator, account, expected_nonce, deadline)
            signer = recover_signer(digest, signature)

            if signer is None or not self.roles.has_capability(Capability.AUTHORIZED_SIGNER, signer):
                logger.warning(f"Rejected signature authorization for {account} (nonce {expected_nonce})")
                raise InvalidSignature()

            consumed = self.whitelist.consume_nonce(account)
            self.whitelist.set_whitelisted(account, True)
            self.events.emit(WhitelistedWithSignature(account=account, nonce=consumed, signer=signer))
            return consumed

    # ============================================================
    # BORROW GATE
    # ============================================================

    def before_borrow(self, requester: str, on_behalf_of: str, asset: str,
                      amount: int, rate_mode: int) -> bool:
        """
        Called by the pool before every borrow.

        Emits BorrowHookInvoked with all inputs, then returns whether the
        debt recipient is whitelisted. Does not raise for a non-member.
        """
        with self._lock:
            try:
                allowed = self.whitelist.is_whitelisted(on_behalf_of)
            except ValueError:
                logger.warning(f"before_borrow: on_behalf_of {on_behalf_of!r} is not an address")
                allowed = False
            self.events.emit(BorrowHookInvoked(
                requester=requester,
                on_behalf_of=on_behalf_of,
                asset=asset,
                amount=amount,
                rate_mode=int(rate_mode),
                allowed=allowed,
            ))
            return allowed

    # ============================================================
    # STATUS
    # ============================================================

    def get_status(self) -> dict:
        with self._lock:
            return {
                "domain": self.domain.to_dict(),
                "domain_separator": "0x" + self._domain_separator.hex(),
                "capabilities": self.roles.get_status(),
                "whitelist": self.whitelist.get_status(),
                "events_emitted": self.events.total_emitted,
            }
