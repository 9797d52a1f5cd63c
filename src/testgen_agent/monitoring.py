"""Performance samples and periodic health checks."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, TypeVar

from .scheduler import PeriodicTask
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_SAMPLES = 1000
HEALTH_INTERVAL_SECONDS = 5 * 60
DEFAULT_SERVICES = ("AIService", "TestRunner", "FileWatcher")


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class PerformanceSample:
    operation: str
    duration_ms: float
    timestamp: str
    success: bool


@dataclass(frozen=True)
class HealthRecord:
    service: str
    status: HealthStatus
    last_check: str
    details: str | None = None


HealthProbe = Callable[[], HealthStatus]


class Monitor:
    def __init__(
        self,
        log: logging.Logger | None = None,
        max_samples: int = MAX_SAMPLES,
        health_interval: float = HEALTH_INTERVAL_SECONDS,
        services: Iterable[str] = DEFAULT_SERVICES,
    ) -> None:
        self.log = log or logger
        self._samples: Deque[PerformanceSample] = deque(maxlen=max_samples)
        self._samples_lock = threading.Lock()
        self._health: Dict[str, HealthRecord] = {}
        self._health_lock = threading.Lock()
        self._probes: Dict[str, HealthProbe] = {}
        self._services: List[str] = list(services)
        self._health_task = PeriodicTask("health-checks", health_interval, self.check_all)

    def track_performance(self, operation: str, task: Callable[[], T]) -> T:
        """Runs ``task`` and records exactly one sample, whatever the outcome."""
        start = time.perf_counter()
        success = False
        try:
            result = task()
            success = True
            return result
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self.record(
                PerformanceSample(
                    operation=operation,
                    duration_ms=duration_ms,
                    timestamp=utc_now_iso(),
                    success=success,
                )
            )

    def record(self, sample: PerformanceSample) -> None:
        with self._samples_lock:
            self._samples.append(sample)
        self._emit(
            logging.INFO,
            "[METRIC] %s - %s - Duration: %dms - Success: %s",
            sample.timestamp,
            sample.operation,
            sample.duration_ms,
            sample.success,
        )

    def metrics(self) -> List[PerformanceSample]:
        with self._samples_lock:
            return list(self._samples)

    def summary(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for sample in self.metrics():
            row = out.setdefault(sample.operation, {"count": 0, "failures": 0, "total_ms": 0.0})
            row["count"] += 1
            row["total_ms"] += sample.duration_ms
            if not sample.success:
                row["failures"] += 1
        for row in out.values():
            row["avg_ms"] = row.pop("total_ms") / row["count"]
        return out

    def register_probe(self, service: str, probe: HealthProbe) -> None:
        self._probes[service] = probe
        if service not in self._services:
            self._services.append(service)

    def check_health(self, service: str) -> HealthRecord:
        probe = self._probes.get(service)
        try:
            status = HealthStatus(probe()) if probe is not None else HealthStatus.HEALTHY
            record = HealthRecord(service=service, status=status, last_check=utc_now_iso())
        except Exception as exc:
            record = HealthRecord(
                service=service,
                status=HealthStatus.UNHEALTHY,
                last_check=utc_now_iso(),
                details=str(exc) or type(exc).__name__,
            )
        with self._health_lock:
            self._health[service] = record
        self._emit(
            logging.INFO if record.status is HealthStatus.HEALTHY else logging.WARNING,
            "[HEALTH] %s - %s - Status: %s%s",
            record.last_check,
            record.service,
            record.status.value,
            f" - {record.details}" if record.details else "",
        )
        return record

    def check_all(self) -> List[HealthRecord]:
        return [self.check_health(service) for service in list(self._services)]

    def health_status(self) -> Dict[str, HealthRecord]:
        with self._health_lock:
            return dict(self._health)

    def start(self) -> None:
        self._health_task.start()

    def stop(self) -> None:
        self._health_task.stop()

    def _emit(self, level: int, msg: str, *args: Any) -> None:
        try:
            self.log.log(level, msg, *args)
        except Exception:
            pass
