from testgen_agent.credentials import EnvCredentialStore, InMemoryCredentialStore, SecretKey
from testgen_agent.llm.types import ProviderKind


def test_env_store_uses_aliases(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")

    store = EnvCredentialStore()
    assert store.get_credential(ProviderKind.GOOGLE) == "test-key"
    assert store.get_credential("google") == "test-key"


def test_env_store_unknown_kind_is_absent(monkeypatch):
    assert EnvCredentialStore().get_credential("cohere") is None


def test_in_memory_store_lifecycle():
    store = InMemoryCredentialStore()
    store.store_secret(SecretKey.CLAUDE_API_KEY, "sk-ant")
    assert store.exists(SecretKey.CLAUDE_API_KEY)
    assert store.get_credential(ProviderKind.CLAUDE) == "sk-ant"

    store.delete_secret(SecretKey.CLAUDE_API_KEY)
    assert store.get_credential("claude") is None

    store.store_secret(SecretKey.OPENAI_API_KEY, "sk")
    store.clear_all()
    assert not store.exists(SecretKey.OPENAI_API_KEY)
