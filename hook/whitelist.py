"""
Whitelist Store - current membership plus replay counters

Only current state is kept: account -> is_whitelisted and account -> nonce.
Removal flips the flag to False; nonces only ever go up by one.

The mutators do no validation. BorrowHook checks capabilities and
signatures before calling them.
"""

from .accounts import normalize


class WhitelistStore:

    def __init__(self):
        self._members: dict[str, bool] = {}
        self._nonces: dict[str, int] = {}

    def is_whitelisted(self, account: str) -> bool:
        return self._members.get(normalize(account), False)

    def nonce_of(self, account: str) -> int:
        return self._nonces.get(normalize(account), 0)

    def set_whitelisted(self, account: str, value: bool):
        self._members[normalize(account)] = bool(value)

    def consume_nonce(self, account: str) -> int:
        """Advance the account's nonce by one, returning the value consumed."""
        account = normalize(account)
        current = self._nonces.get(account, 0)
        self._nonces[account] = current + 1
        return current

    def get_status(self) -> dict:
        return {
            "accounts_tracked": len(self._members),
            "whitelisted": sum(1 for v in self._members.values() if v),
            "signature_authorizations": sum(self._nonces.values()),
        }
