"""Configuration loading, defaults and validation."""

from __future__ import annotations

import logging
import os
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, List

import yaml

from .errors import ConfigurationError, UnsupportedProviderError
from .llm.types import ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "test_framework": {
        "type": "jest",
        "auto_run": False,
        "test_pattern": "**/*.test.{ts,js}",
    },
    "ai": {
        "provider": "openai",
        "max_tokens": 2048,
        "temperature": 0.7,
        "timeout_seconds": 60,
        "openai": {
            "model": "gpt-4",
            "organization_id": None,
        },
        "azure": {
            "deployment_name": "",
            "endpoint": "",
            "api_version": "2024-02-01",
        },
        "google": {
            "model": "gemini-pro",
            "project": "",
            "location": "us-central1",
        },
        "claude": {
            "model": "claude-2",
        },
    },
    "notifications": {
        "show_test_results": True,
        "show_ai_progress": True,
    },
    "cache": {
        "enabled": True,
        "default_ttl_seconds": 300,
        "sweep_interval_seconds": 60,
    },
    "monitoring": {
        "health_interval_seconds": 300,
        "max_samples": 1000,
    },
    "recovery": {
        "max_retries": 3,
        "initial_backoff_ms": 1000,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}

PROVIDER_ENV_OVERRIDE = "TESTGEN_AI_PROVIDER"
TEST_FRAMEWORKS = ("jest", "mocha")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml and merges it onto defaults."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        if not isinstance(user_cfg, dict):
            raise ConfigurationError(f"Settings file must contain a mapping: {config_path}")
        merged = _deep_merge(merged, user_cfg)

    provider_override = os.getenv(PROVIDER_ENV_OVERRIDE)
    if provider_override:
        merged["ai"]["provider"] = provider_override.strip().lower()
    return merged


def validate_settings(settings: Dict[str, Any]) -> None:
    """Raises ConfigurationError when required or provider-specific fields are missing."""
    framework = settings.get("test_framework", {}).get("type")
    if not framework:
        raise ConfigurationError("Test framework type is required")
    if framework not in TEST_FRAMEWORKS:
        raise ConfigurationError(f"Unsupported test framework: {framework}")

    ai_cfg = settings.get("ai", {})
    provider = ai_cfg.get("provider")
    if not provider:
        raise ConfigurationError("AI provider is required")
    if provider not in {kind.value for kind in ProviderKind}:
        raise UnsupportedProviderError(provider)

    if provider == "azure":
        azure = ai_cfg.get("azure", {})
        if not azure.get("endpoint"):
            raise ConfigurationError("Azure endpoint is required")
        if not azure.get("deployment_name"):
            raise ConfigurationError("Azure deployment name is required")
    elif provider == "google":
        google = ai_cfg.get("google", {})
        if not google.get("project"):
            raise ConfigurationError("Google project ID is required")
        if not google.get("location"):
            raise ConfigurationError("Google location is required")

    max_tokens = ai_cfg.get("max_tokens")
    if max_tokens is not None and int(max_tokens) <= 0:
        raise ConfigurationError(f"ai.max_tokens must be positive, got {max_tokens}")
    temperature = ai_cfg.get("temperature")
    if temperature is not None and not 0.0 <= float(temperature) <= 2.0:
        raise ConfigurationError(f"ai.temperature must be within [0, 2], got {temperature}")


SettingsListener = Callable[[Dict[str, Any], Dict[str, Any]], None]
SettingsCheck = Callable[[Dict[str, Any], Dict[str, Any]], None]


class SettingsStore:
    """Holds the current settings snapshot and notifies listeners on change.

    Readers always get a deep copy, so a snapshot never changes under them.
    Checks run against the candidate before it is stored; a raising check
    leaves the current settings in place.
    """

    def __init__(self, settings: Dict[str, Any] | None = None) -> None:
        merged = _deep_merge(DEFAULT_SETTINGS, settings or {})
        validate_settings(merged)
        self._settings = merged
        self._lock = threading.Lock()
        self._update_lock = threading.Lock()
        self._checks: List[SettingsCheck] = []
        self._listeners: List[SettingsListener] = []

    @classmethod
    def from_file(cls, settings_path: str = "config/settings.yaml") -> "SettingsStore":
        return cls(load_settings(settings_path))

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return deepcopy(self._settings)

    def section(self, name: str) -> Dict[str, Any]:
        return self.snapshot().get(name, {})

    def add_check(self, check: SettingsCheck) -> None:
        self._checks.append(check)

    def subscribe(self, listener: SettingsListener) -> None:
        self._listeners.append(listener)

    def update(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Merges overrides, runs validation and checks, stores, then notifies listeners with (old, new)."""
        with self._update_lock:
            previous = self.snapshot()
            candidate = _deep_merge(previous, overrides)
            validate_settings(candidate)
            for check in list(self._checks):
                check(deepcopy(previous), deepcopy(candidate))
            with self._lock:
                self._settings = candidate
        logger.info("Settings updated: %s", sorted(overrides))

        failure: Exception | None = None
        for listener in list(self._listeners):
            try:
                listener(deepcopy(previous), deepcopy(candidate))
            except Exception as exc:
                logger.exception("Settings listener failed")
                failure = failure or exc
        if failure is not None:
            raise failure
        return deepcopy(candidate)
