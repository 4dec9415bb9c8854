"""
Whitelist store and direct administration.

Mirrors the hook's unit suite: default state, add/remove, batches,
capability gating.
"""

import pytest

from hook.errors import Unauthorized
from hook.roles import Capability
from hook.whitelist import WhitelistStore

from conftest import ADMIN, USER, EXECUTOR, OTHER, DEPLOYER


class TestWhitelistStore:

    def test_defaults(self):
        store = WhitelistStore()
        assert store.is_whitelisted(USER) is False
        assert store.nonce_of(USER) == 0

    def test_lookup_ignores_hex_case(self):
        store = WhitelistStore()
        store.set_whitelisted(USER.lower(), True)
        assert store.is_whitelisted(USER) is True
        assert store.is_whitelisted(USER.upper().replace("0X", "0x")) is True

    def test_consume_nonce_returns_consumed_value(self):
        store = WhitelistStore()
        assert store.consume_nonce(USER) == 0
        assert store.consume_nonce(USER) == 1
        assert store.nonce_of(USER) == 2
        assert store.nonce_of(OTHER) == 0

    def test_removal_keeps_key(self):
        store = WhitelistStore()
        store.set_whitelisted(USER, True)
        store.set_whitelisted(USER, False)
        assert store.is_whitelisted(USER) is False
        assert store.get_status()["accounts_tracked"] == 1
        assert store.get_status()["whitelisted"] == 0

    def test_rejects_non_address(self):
        store = WhitelistStore()
        with pytest.raises(ValueError):
            store.is_whitelisted("not-an-address")


class TestDirectWhitelisting:

    def test_never_added_accounts(self, hook):
        for account in (USER, EXECUTOR, OTHER):
            assert hook.is_whitelisted(account) is False
            assert hook.nonce_of(account) == 0

    def test_add_then_remove(self, hook):
        assert hook.is_whitelisted(USER) is False
        hook.add_to_whitelist(ADMIN, USER)
        assert hook.is_whitelisted(USER) is True
        hook.remove_from_whitelist(ADMIN, USER)
        assert hook.is_whitelisted(USER) is False
        assert hook.nonce_of(USER) == 0

    def test_add_is_idempotent(self, hook):
        hook.add_to_whitelist(ADMIN, USER)
        hook.add_to_whitelist(ADMIN, USER)
        assert hook.is_whitelisted(USER) is True

    def test_remove_is_idempotent(self, hook):
        hook.remove_from_whitelist(ADMIN, USER)
        hook.remove_from_whitelist(ADMIN, USER)
        assert hook.is_whitelisted(USER) is False

    def test_batch_operations(self, hook):
        hook.add_to_whitelist_batch(ADMIN, [USER, EXECUTOR, OTHER])
        assert hook.is_whitelisted(USER)
        assert hook.is_whitelisted(EXECUTOR)
        assert hook.is_whitelisted(OTHER)

        hook.remove_from_whitelist_batch(ADMIN, [USER, EXECUTOR])
        assert hook.is_whitelisted(USER) is False
        assert hook.is_whitelisted(EXECUTOR) is False
        assert hook.is_whitelisted(OTHER) is True

    def test_batch_matches_sequential_adds(self, hook, domain, clock):
        from hook.borrow_hook import BorrowHook
        sequential = BorrowHook(ADMIN, domain, clock=clock)
        for account in (USER, EXECUTOR, OTHER):
            sequential.add_to_whitelist(ADMIN, account)

        hook.add_to_whitelist_batch(ADMIN, [USER, EXECUTOR, OTHER])

        for account in (USER, EXECUTOR, OTHER, DEPLOYER):
            assert hook.is_whitelisted(account) == sequential.is_whitelisted(account)

    def test_batch_emits_one_event_per_account_in_order(self, hook):
        hook.add_to_whitelist_batch(ADMIN, [USER, EXECUTOR, OTHER])
        added = hook.events.recent(limit=10, name="WhitelistAdded")
        # newest first
        assert [e.account for e in added] == [OTHER, EXECUTOR, USER]
        assert all(e.by == ADMIN for e in added)

    def test_only_whitelister_can_add(self, hook):
        with pytest.raises(Unauthorized):
            hook.add_to_whitelist(USER, USER)
        assert hook.is_whitelisted(USER) is False

    def test_only_whitelister_can_remove(self, hook):
        hook.add_to_whitelist(ADMIN, OTHER)
        with pytest.raises(Unauthorized):
            hook.remove_from_whitelist(USER, OTHER)
        assert hook.is_whitelisted(OTHER) is True

    def test_unauthorized_batch_has_no_effect(self, hook):
        with pytest.raises(Unauthorized):
            hook.add_to_whitelist_batch(USER, [USER, OTHER])
        assert hook.is_whitelisted(USER) is False
        assert hook.is_whitelisted(OTHER) is False
        assert hook.events.recent(name="WhitelistAdded") == []

    def test_bad_entry_fails_whole_batch(self, hook):
        with pytest.raises(ValueError):
            hook.add_to_whitelist_batch(ADMIN, [USER, "0xnope", OTHER])
        assert hook.is_whitelisted(USER) is False
        assert hook.is_whitelisted(OTHER) is False

    def test_granted_whitelister_can_add(self, hook):
        hook.grant(ADMIN, Capability.DIRECT_WHITELISTER, EXECUTOR)
        hook.add_to_whitelist(EXECUTOR, USER)
        assert hook.is_whitelisted(USER) is True

    def test_revoked_whitelister_cannot_add(self, hook):
        hook.grant(ADMIN, Capability.DIRECT_WHITELISTER, EXECUTOR)
        hook.revoke(ADMIN, Capability.DIRECT_WHITELISTER, EXECUTOR)
        with pytest.raises(Unauthorized):
            hook.add_to_whitelist(EXECUTOR, USER)
