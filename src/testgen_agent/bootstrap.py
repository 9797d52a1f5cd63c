"""Wires the services together for one process."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .cache import TTLCache
from .config import SettingsStore
from .credentials import CredentialStore, EnvCredentialStore
from .llm.registry import ProviderFactory
from .llm.types import ProviderKind
from .monitoring import Monitor
from .orchestrator import TestGenerationOrchestrator
from .recovery import RecoveryEngine


def configure_logging(settings: Dict[str, Any]) -> None:
    log_cfg = settings.get("logging", {})
    logging.basicConfig(
        level=str(log_cfg.get("level", "INFO")).upper(),
        format=log_cfg.get("format", "%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )


@dataclass
class Services:
    settings: SettingsStore
    credentials: CredentialStore
    cache: TTLCache | None
    recovery: RecoveryEngine
    monitor: Monitor
    orchestrator: TestGenerationOrchestrator

    def start(self) -> None:
        if self.cache is not None:
            self.cache.start()
        self.monitor.start()

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
        self.monitor.stop()

    def __enter__(self) -> "Services":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_services(
    settings: SettingsStore,
    credentials: CredentialStore | None = None,
    provider_factories: Mapping[ProviderKind, ProviderFactory] | None = None,
) -> Services:
    snapshot = settings.snapshot()
    cache_cfg = snapshot.get("cache", {})
    monitoring_cfg = snapshot.get("monitoring", {})
    recovery_cfg = snapshot.get("recovery", {})

    cache = None
    if cache_cfg.get("enabled", True):
        cache = TTLCache(
            default_ttl=float(cache_cfg.get("default_ttl_seconds", 300)),
            sweep_interval=float(cache_cfg.get("sweep_interval_seconds", 60)),
        )
    recovery = RecoveryEngine(
        max_retries=int(recovery_cfg.get("max_retries", 3)),
        initial_backoff_ms=int(recovery_cfg.get("initial_backoff_ms", 1000)),
    )
    monitor = Monitor(
        max_samples=int(monitoring_cfg.get("max_samples", 1000)),
        health_interval=float(monitoring_cfg.get("health_interval_seconds", 300)),
    )
    credentials = credentials or EnvCredentialStore()
    orchestrator = TestGenerationOrchestrator(
        settings=settings,
        credentials=credentials,
        recovery=recovery,
        cache=cache,
        monitor=monitor,
        provider_factories=provider_factories,
    )
    monitor.register_probe("AIService", orchestrator.check_health)
    return Services(
        settings=settings,
        credentials=credentials,
        cache=cache,
        recovery=recovery,
        monitor=monitor,
        orchestrator=orchestrator,
    )
