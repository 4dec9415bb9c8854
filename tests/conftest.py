import os
import sys

import pytest
from eth_account import Account

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hook.borrow_hook import BorrowHook
from hook.signatures import EIP712Domain, sign_authorization

# Well-known local devnet keys (hardhat/anvil accounts 0-4).
ADMIN_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
USER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
EXECUTOR_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
OTHER_KEY = "0x7c852118294e51e653712a81e05800f419141751be58f605c371e15141b007a6"
DEPLOYER_KEY = "0x47e179ec197488593b187f80a00eb0da91f1b9d0b13f8733639f19c30a34926a"

ADMIN = Account.from_key(ADMIN_KEY).address
USER = Account.from_key(USER_KEY).address
EXECUTOR = Account.from_key(EXECUTOR_KEY).address
OTHER = Account.from_key(OTHER_KEY).address
DEPLOYER = Account.from_key(DEPLOYER_KEY).address

ASSET = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
HOOK_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
NOW = 1_760_000_000


class FakeClock:
    """Settable stand-in for time.time()."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def domain():
    return EIP712Domain(chain_id=31337, verifying_contract=HOOK_CONTRACT)


@pytest.fixture
def hook(domain, clock):
    return BorrowHook(ADMIN, domain, clock=clock)


@pytest.fixture
def sign(domain):
    """sign(key, account, nonce, deadline) against the test hook's domain."""
    def _sign(key, account, nonce, deadline):
        return sign_authorization(key, domain, account, nonce, deadline)
    return _sign
