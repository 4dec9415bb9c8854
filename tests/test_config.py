import pytest

from hook.config import HookConfig, CHAIN_DEFAULTS

from conftest import ADMIN, HOOK_CONTRACT


@pytest.fixture
def env(monkeypatch):
    for name in ("HOOK_CHAIN", "HOOK_CHAIN_ID", "HOOK_DOMAIN_NAME", "HOOK_DOMAIN_VERSION",
                 "HOOK_EVENT_STREAM_SIZE", "API_AUTH_SECRET", "API_ALLOWED_ORIGINS", "PORT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOOK_ADMIN_ADDRESS", ADMIN.lower())
    monkeypatch.setenv("HOOK_VERIFYING_CONTRACT", HOOK_CONTRACT)
    monkeypatch.setenv("API_AUTH_SECRET", "config-test-secret")
    return monkeypatch


class TestHookConfig:

    def test_defaults(self, env):
        config = HookConfig.from_env()
        assert config.admin_address == ADMIN
        assert config.chain == "base"
        assert config.chain_id == 8453
        assert config.auth_secret == "config-test-secret"
        domain = config.domain()
        assert domain.name == "BorrowHook"
        assert domain.version == "1"
        assert domain.verifying_contract == HOOK_CONTRACT

    def test_chain_selection(self, env):
        env.setenv("HOOK_CHAIN", "bsc")
        assert HookConfig.from_env().chain_id == 56
        env.setenv("HOOK_CHAIN_ID", "31337")
        assert HookConfig.from_env().chain_id == 31337

    def test_unknown_chain(self, env):
        env.setenv("HOOK_CHAIN", "solana")
        with pytest.raises(ValueError):
            HookConfig.from_env()

    def test_required(self, env):
        env.delenv("HOOK_ADMIN_ADDRESS")
        with pytest.raises(ValueError, match="HOOK_ADMIN_ADDRESS"):
            HookConfig.from_env()

    def test_auth_secret_required(self, env):
        env.delenv("API_AUTH_SECRET")
        with pytest.raises(ValueError, match="API_AUTH_SECRET"):
            HookConfig.from_env()
        env.setenv("API_AUTH_SECRET", "   ")
        with pytest.raises(ValueError, match="API_AUTH_SECRET"):
            HookConfig.from_env()

    def test_chain_defaults_only_carry_chain_id(self):
        assert CHAIN_DEFAULTS == {"base": {"chain_id": 8453}, "bsc": {"chain_id": 56}}

    def test_bad_values(self, env):
        env.setenv("PORT", "eighty")
        with pytest.raises(ValueError, match="PORT"):
            HookConfig.from_env()
        env.setenv("PORT", "8002")
        env.setenv("HOOK_VERIFYING_CONTRACT", "0xabc")
        with pytest.raises(ValueError):
            HookConfig.from_env()

    def test_origins(self, env):
        env.setenv("API_ALLOWED_ORIGINS", "https://a.example, https://b.example,")
        assert HookConfig.from_env().allowed_origins == ["https://a.example", "https://b.example"]
