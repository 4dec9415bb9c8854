"""
Error taxonomy for the borrow hook.

Every failure aborts the whole operation. Checks always run before any
write, so a raised error never leaves a partial whitelist or nonce change.
"""

from typing import Optional


class HookError(Exception):
    """Base class for all borrow hook failures."""
    pass


class Unauthorized(HookError):
    """Caller lacks the capability required for a mutating call."""

    def __init__(self, account: str, capability: Optional[str] = None):
        self.account = account
        self.capability = capability
        if capability:
            msg = f"{account} is missing capability '{capability}'"
        else:
            msg = f"{account} is not allowed to perform this call"
        super().__init__(msg)


class SignatureExpired(HookError):
    """Authorization deadline is in the past."""

    def __init__(self, deadline: int, now: int):
        self.deadline = deadline
        self.now = now
        super().__init__(f"Signature expired: deadline {deadline} < now {now}")


class InvalidSignature(HookError):
    """
    Signature did not recover to an authorized signer.

    Deliberately covers a garbage signature, a signer without the
    AUTHORIZED_SIGNER capability and a stale nonce alike.
    """

    def __init__(self):
        super().__init__("Invalid signature")


class BorrowHookRejected(HookError):
    """Raised by the pool when the hook answers False for a borrow."""

    code = "BORROW_HOOK_REJECTED"

    def __init__(self, on_behalf_of: str):
        self.on_behalf_of = on_behalf_of
        super().__init__(f"{self.code}: {on_behalf_of} is not authorized to borrow")
