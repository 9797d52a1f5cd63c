"""Credential store contract and the stores shipped with the package."""

from __future__ import annotations

import os
import threading
from enum import Enum
from typing import Dict, Protocol

from .llm.types import ProviderKind


class SecretKey(str, Enum):
    OPENAI_API_KEY = "ai.openai.apiKey"
    OPENAI_ORG_ID = "ai.openai.organizationId"
    AZURE_API_KEY = "ai.azure.apiKey"
    GOOGLE_API_KEY = "ai.google.apiKey"
    CLAUDE_API_KEY = "ai.claude.apiKey"


PROVIDER_SECRET_KEYS: Dict[ProviderKind, SecretKey] = {
    ProviderKind.OPENAI: SecretKey.OPENAI_API_KEY,
    ProviderKind.AZURE: SecretKey.AZURE_API_KEY,
    ProviderKind.GOOGLE: SecretKey.GOOGLE_API_KEY,
    ProviderKind.CLAUDE: SecretKey.CLAUDE_API_KEY,
}

# First variable that is set wins.
ENV_ALIASES: Dict[SecretKey, tuple[str, ...]] = {
    SecretKey.OPENAI_API_KEY: ("OPENAI_API_KEY",),
    SecretKey.OPENAI_ORG_ID: ("OPENAI_ORG_ID", "OPENAI_ORGANIZATION"),
    SecretKey.AZURE_API_KEY: ("AZURE_OPENAI_API_KEY", "AZURE_API_KEY"),
    SecretKey.GOOGLE_API_KEY: ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    SecretKey.CLAUDE_API_KEY: ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
}


def secret_key_for(kind: ProviderKind | str) -> SecretKey | None:
    try:
        return PROVIDER_SECRET_KEYS[ProviderKind(kind)]
    except ValueError:
        return None


class CredentialStore(Protocol):
    def get_credential(self, kind: ProviderKind | str) -> str | None:
        ...

    def get_secret(self, key: SecretKey) -> str | None:
        ...


class EnvCredentialStore:
    """Reads secrets from the process environment (populated from .env by the entrypoint)."""

    def get_secret(self, key: SecretKey) -> str | None:
        for name in ENV_ALIASES.get(key, ()):
            value = os.getenv(name)
            if value:
                return value
        return None

    def get_credential(self, kind: ProviderKind | str) -> str | None:
        key = secret_key_for(kind)
        if key is None:
            return None
        return self.get_secret(key)


class InMemoryCredentialStore:
    def __init__(self, secrets: Dict[SecretKey, str] | None = None) -> None:
        self._secrets: Dict[SecretKey, str] = dict(secrets or {})
        self._lock = threading.Lock()

    def store_secret(self, key: SecretKey, value: str) -> None:
        with self._lock:
            self._secrets[SecretKey(key)] = value

    def get_secret(self, key: SecretKey) -> str | None:
        with self._lock:
            return self._secrets.get(SecretKey(key))

    def delete_secret(self, key: SecretKey) -> None:
        with self._lock:
            self._secrets.pop(SecretKey(key), None)

    def clear_all(self) -> None:
        with self._lock:
            self._secrets.clear()

    def exists(self, key: SecretKey) -> bool:
        return self.get_secret(key) is not None

    def get_credential(self, kind: ProviderKind | str) -> str | None:
        key = secret_key_for(kind)
        if key is None:
            return None
        return self.get_secret(key)
