"""Single entry point for test generation across providers."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Any, Dict, Mapping

from .cache import TTLCache
from .config import SettingsStore
from .credentials import CredentialStore, SecretKey, secret_key_for
from .errors import ConfigurationError, GenerationError, OperationCancelled
from .llm.providers.base import TestGenerationProvider
from .llm.registry import ProviderFactory, resolve_factory, resolve_kind
from .llm.types import (
    GenerationDefaults,
    GenerationRequest,
    GenerationResult,
    ProviderConfig,
    ProviderKind,
)
from .monitoring import HealthStatus, Monitor
from .recovery import RecoveryEngine
from .utils import hash_text, json_dumps

logger = logging.getLogger(__name__)


class TestGenerationOrchestrator:
    """Owns the active provider and routes every generation call through it.

    The provider is built lazily from the current settings snapshot and replaced
    as a whole when the AI settings change. Calls that already hold the previous
    provider finish on it.
    """

    __test__ = False

    def __init__(
        self,
        settings: SettingsStore,
        credentials: CredentialStore,
        recovery: RecoveryEngine | None = None,
        cache: TTLCache | None = None,
        monitor: Monitor | None = None,
        provider_factories: Mapping[ProviderKind, ProviderFactory] | None = None,
    ) -> None:
        self.settings = settings
        self.credentials = credentials
        self.recovery = recovery or RecoveryEngine()
        self.cache = cache
        self.monitor = monitor
        self._factories = provider_factories
        self._lock = threading.Lock()
        self._provider: TestGenerationProvider | None = None
        self._pending: tuple[tuple[Any, Any, Any], TestGenerationProvider] | None = None
        settings.add_check(self._prepare_provider)
        settings.subscribe(self._on_settings_changed)

    @property
    def active_provider(self) -> TestGenerationProvider | None:
        return self._provider

    def initialize(self) -> TestGenerationProvider:
        """Builds and validates the configured provider, then makes it active."""
        provider, config = self._build_provider(self.settings.snapshot())
        with self._lock:
            self._provider = provider
        logger.info("Active AI provider: %s", config.kind.value)
        return provider

    def reconfigure(self) -> TestGenerationProvider:
        return self.initialize()

    def current_provider_kind(self) -> str:
        return str(self.settings.section("ai").get("provider"))

    def validate_current_provider(self) -> bool:
        return self._get_provider().validate_config()

    def generate_tests(
        self,
        request: GenerationRequest,
        cancel: threading.Event | None = None,
    ) -> GenerationResult:
        if self.monitor is not None:
            return self.monitor.track_performance("generate_tests", lambda: self._generate(request, cancel))
        return self._generate(request, cancel)

    def check_health(self) -> HealthStatus:
        """Health probe for the AI service.

        Initializes the provider when needed; a provider that cannot be built
        raises, which the monitor records as unhealthy with the error text.
        """
        provider = self._get_provider()
        return HealthStatus.HEALTHY if provider.validate_config() else HealthStatus.UNHEALTHY

    def _generate(self, request: GenerationRequest, cancel: threading.Event | None) -> GenerationResult:
        provider = self._get_provider()
        ai_cfg = self.settings.section("ai")
        defaults = GenerationDefaults(
            max_tokens=int(ai_cfg.get("max_tokens", 2048)),
            temperature=float(ai_cfg.get("temperature", 0.7)),
        )
        enriched = dataclasses.replace(
            request,
            max_tokens=request.max_tokens if request.max_tokens is not None else defaults.max_tokens,
            temperature=request.temperature if request.temperature is not None else defaults.temperature,
        )

        cache_key = self._cache_key(provider, enriched)
        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug("Returning cached generation for %s", cache_key[:12])
                return cached

        try:
            result = self.recovery.execute(
                lambda: provider.generate_tests(enriched, defaults),
                context=f"generate_tests:{provider.kind.value}",
                cancel=cancel,
            )
        except OperationCancelled:
            raise
        except Exception as exc:
            logger.error("Error generating tests: %s", exc)
            raise GenerationError.from_exception(exc) from exc

        if cache_key is not None:
            self.cache.set(cache_key, result)
        return result

    def _get_provider(self) -> TestGenerationProvider:
        with self._lock:
            provider = self._provider
        if provider is None:
            provider = self.initialize()
        return provider

    def _build_provider(self, settings: Dict[str, Any]) -> tuple[TestGenerationProvider, ProviderConfig]:
        ai_cfg = settings.get("ai", {})
        kind_value = ai_cfg.get("provider")
        try:
            kind = resolve_kind(kind_value)
            factory = resolve_factory(kind, self._factories)
            secret_key = secret_key_for(kind)
            config = ProviderConfig.from_settings(ai_cfg, credential_ref=secret_key.value if secret_key else "")
            if kind is ProviderKind.OPENAI and not config.organization_id:
                config = dataclasses.replace(
                    config, organization_id=self.credentials.get_secret(SecretKey.OPENAI_ORG_ID)
                )
            config.validate()

            api_key = self.credentials.get_credential(kind)
            if not api_key:
                raise ConfigurationError(f"API key not found for provider: {kind.value}")

            provider = factory(config, api_key)
            if not provider.validate_config():
                raise ConfigurationError(f"Invalid configuration for provider: {kind.value}")
        except ConfigurationError as exc:
            self.recovery.handle_error(exc, context=f"initialize:{kind_value}")
            raise
        return provider, config

    def _cache_key(self, provider: TestGenerationProvider, request: GenerationRequest) -> str | None:
        if self.cache is None:
            return None
        payload = json_dumps({"provider": provider.kind.value, "request": dataclasses.asdict(request)})
        return hash_text(payload)

    def _prepare_provider(self, previous: Dict[str, Any], candidate: Dict[str, Any]) -> None:
        # Runs before the new settings are stored; raising rejects the update.
        old_ai, new_ai = previous.get("ai", {}), candidate.get("ai", {})
        if _provider_fields(old_ai) == _provider_fields(new_ai):
            return
        with self._lock:
            initialized = self._provider is not None
        if not initialized:
            return
        logger.info(
            "AI settings changed (%s -> %s); rebuilding provider",
            old_ai.get("provider"),
            new_ai.get("provider"),
        )
        provider, _ = self._build_provider(candidate)
        with self._lock:
            self._pending = (_provider_fields(new_ai), provider)

    def _on_settings_changed(self, previous: Dict[str, Any], current: Dict[str, Any]) -> None:
        with self._lock:
            pending, self._pending = self._pending, None
            if pending is not None and pending[0] == _provider_fields(current.get("ai", {})):
                self._provider = pending[1]


def _provider_fields(ai_cfg: Dict[str, Any]) -> tuple[Any, Any, Any]:
    provider = ai_cfg.get("provider")
    return provider, ai_cfg.get(str(provider)), ai_cfg.get("timeout_seconds")
