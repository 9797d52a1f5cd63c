"""Classification-driven error recovery with bounded exponential backoff.

Every handled error is logged as a block of fields (timestamp, type, context,
message, stack). Network and remote-service failures are retried through a
strategy, waiting 1s, 2s, 4s ... before each attempt; anything else, or a
recoverable error that runs out of attempts, ends up fatal.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol, TypeVar

from .errors import (
    ErrorKind,
    ErrorRecord,
    FatalError,
    OperationCancelled,
    classify_error,
    format_stack,
)
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
INITIAL_BACKOFF_MS = 1000

Strategy = Callable[[], Any]
Sleeper = Callable[[float, "threading.Event | None"], None]


class RecoveryNotifier(Protocol):
    def recovered(self, record: ErrorRecord) -> None:
        ...

    def fatal(self, record: ErrorRecord) -> None:
        ...


@dataclass
class RecoveryOutcome:
    recovered: bool
    attempts: int
    record: ErrorRecord
    value: Any = None


def event_sleep(seconds: float, cancel: threading.Event | None = None) -> None:
    """Waits ``seconds`` on the calling thread; raises OperationCancelled if ``cancel`` fires."""
    waiter = cancel if cancel is not None else threading.Event()
    if waiter.wait(seconds) and cancel is not None:
        raise OperationCancelled("Operation cancelled while waiting to retry")


class RecoveryEngine:
    def __init__(
        self,
        log: logging.Logger | None = None,
        max_retries: int = MAX_RETRIES,
        initial_backoff_ms: int = INITIAL_BACKOFF_MS,
        sleeper: Sleeper = event_sleep,
        notifier: RecoveryNotifier | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.log = log or logger
        self.max_retries = max_retries
        self.initial_backoff_ms = initial_backoff_ms
        self._sleep = sleeper
        self._notifier = notifier
        self._strategies: Dict[ErrorKind, Strategy] = {}

    def register_strategy(self, kind: ErrorKind, strategy: Strategy) -> None:
        self._strategies[kind] = strategy

    def analyze(self, error: BaseException, context: str) -> ErrorRecord:
        return ErrorRecord(
            kind=classify_error(error),
            message=str(error) or type(error).__name__,
            stack=format_stack(error),
            context=context,
            timestamp=utc_now_iso(),
        )

    def handle_error(
        self,
        error: BaseException,
        context: str,
        strategy: Strategy | None = None,
        cancel: threading.Event | None = None,
    ) -> RecoveryOutcome:
        record = self.analyze(error, context)
        self._log_record(record)

        if not record.recoverable:
            self._report_fatal(record)
            return RecoveryOutcome(recovered=False, attempts=0, record=record)

        strategy = strategy or self._strategies.get(record.kind)
        if strategy is None:
            self._safe_log(logging.WARNING, "No recovery strategy available for %s", record.kind.value)
            self._report_fatal(record)
            return RecoveryOutcome(recovered=False, attempts=0, record=record)

        return self._attempt_recovery(record, strategy, cancel)

    def execute(
        self,
        operation: Callable[[], T],
        context: str,
        cancel: threading.Event | None = None,
    ) -> T:
        """Runs ``operation``; on failure retries it as the recovery strategy.

        Raises FatalError (chained from the first failure) when recovery is not
        possible or attempts run out.
        """
        try:
            return operation()
        except (OperationCancelled, FatalError):
            raise
        except Exception as exc:
            outcome = self.handle_error(exc, context, strategy=operation, cancel=cancel)
            if outcome.recovered:
                return outcome.value
            raise FatalError(outcome.record) from exc

    def _attempt_recovery(
        self,
        record: ErrorRecord,
        strategy: Strategy,
        cancel: threading.Event | None,
    ) -> RecoveryOutcome:
        backoff_ms = self.initial_backoff_ms
        for attempt in range(1, self.max_retries + 1):
            self._sleep(backoff_ms / 1000.0, cancel)
            try:
                value = strategy()
            except OperationCancelled:
                raise
            except Exception as exc:
                self._safe_log(
                    logging.WARNING,
                    "Recovery attempt %d/%d for %s failed: %s",
                    attempt,
                    self.max_retries,
                    record.context,
                    exc,
                )
                backoff_ms *= 2
                continue
            self._safe_log(logging.INFO, "Operation recovered successfully: %s (attempt %d)", record.context, attempt)
            self._notify("recovered", record)
            return RecoveryOutcome(recovered=True, attempts=attempt, record=record, value=value)

        self._report_fatal(record)
        return RecoveryOutcome(recovered=False, attempts=self.max_retries, record=record)

    def _report_fatal(self, record: ErrorRecord) -> None:
        self._safe_log(logging.ERROR, "A fatal error occurred in %s: %s", record.context, record.message)
        self._notify("fatal", record)

    def _log_record(self, record: ErrorRecord) -> None:
        self._safe_log(
            logging.ERROR,
            "[ERROR] %s\nType: %s\nContext: %s\nMessage: %s\nStack: %s\n---",
            record.timestamp,
            record.kind.value,
            record.context,
            record.message,
            record.stack,
        )

    def _safe_log(self, level: int, msg: str, *args: Any) -> None:
        # The log sink must never break recovery.
        try:
            self.log.log(level, msg, *args)
        except Exception:
            pass

    def _notify(self, event: str, record: ErrorRecord) -> None:
        if self._notifier is None:
            return
        try:
            getattr(self._notifier, event)(record)
        except Exception:
            self._safe_log(logging.WARNING, "Recovery notifier failed on %s", event)
