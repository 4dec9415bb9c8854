"""
BorrowHook - pre-borrow authorization gate for a lending pool.

The pool asks the hook before every borrow whether the debt recipient
may proceed. Membership is managed directly by whitelisters or through
EIP-712 authorizations signed by an authorized signer.
"""

from .borrow_hook import BorrowHook
from .errors import (
    HookError,
    Unauthorized,
    SignatureExpired,
    InvalidSignature,
    BorrowHookRejected,
)
from .roles import Capability, CapabilityRegistry
from .signatures import EIP712Domain
from .whitelist import WhitelistStore

__all__ = [
    "BorrowHook",
    "HookError",
    "Unauthorized",
    "SignatureExpired",
    "InvalidSignature",
    "BorrowHookRejected",
    "Capability",
    "CapabilityRegistry",
    "EIP712Domain",
    "WhitelistStore",
]
