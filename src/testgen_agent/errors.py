"""Error taxonomy and classification."""

from __future__ import annotations

import re
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import openai
import requests


class ErrorKind(str, Enum):
    NETWORK = "NETWORK"
    REMOTE_SERVICE = "REMOTE_SERVICE"
    LOCAL_FRAMEWORK = "LOCAL_FRAMEWORK"
    PLATFORM_API = "PLATFORM_API"


RECOVERABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.REMOTE_SERVICE})


@dataclass(frozen=True)
class ErrorRecord:
    kind: ErrorKind
    message: str
    stack: str | None
    context: str
    timestamp: str

    @property
    def recoverable(self) -> bool:
        return self.kind in RECOVERABLE_KINDS


class TestGenError(Exception):
    """Base class for errors raised by this package."""

    __test__ = False


class ConfigurationError(TestGenError):
    """Settings, credentials or provider validation are not usable."""


class UnsupportedProviderError(ConfigurationError):
    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unsupported AI provider: {kind}")


class GenerationError(TestGenError):
    """Normalized failure of a test generation call."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to generate tests: {detail}")

    @classmethod
    def from_exception(cls, exc: BaseException) -> "GenerationError":
        while isinstance(exc, FatalError) and exc.__cause__ is not None:
            exc = exc.__cause__
        if isinstance(exc, GenerationError):
            return cls(exc.detail)
        return cls(str(exc) or type(exc).__name__)


class FatalError(TestGenError):
    """Recovery gave up; ``record`` holds the classified failure."""

    def __init__(self, record: ErrorRecord) -> None:
        self.record = record
        super().__init__(f"A fatal error occurred: {record.message}")


class OperationCancelled(TestGenError):
    """The caller abandoned the operation while it was waiting to retry."""


_NETWORK_TYPES: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    requests.ConnectionError,
    requests.Timeout,
    openai.APIConnectionError,
)
_REMOTE_TYPES: tuple[type[BaseException], ...] = (GenerationError, requests.HTTPError, openai.APIError)

_NETWORK_WORDS = ("network", "connection", "timed out", "timeout", "econnreset", "enotfound", "dns")
_REMOTE_WORDS = (
    "openai",
    "azure",
    "anthropic",
    "claude",
    "gemini",
    "vertex",
    "rate limit",
    "overloaded",
    "model",
)
_REMOTE_PATTERN = re.compile(r"\bAI\b")
_FRAMEWORK_WORDS = ("test", "jest", "mocha", "pytest")


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def classify_error(exc: BaseException) -> ErrorKind:
    """Maps an exception to an ``ErrorKind``. Never raises; defaults to PLATFORM_API."""
    if isinstance(exc, (ConfigurationError, OperationCancelled)):
        return ErrorKind.PLATFORM_API
    if isinstance(exc, FatalError):
        return exc.record.kind

    chain = list(_chain(exc))
    for item in chain:
        if isinstance(item, _NETWORK_TYPES):
            return ErrorKind.NETWORK
        message = str(item).lower()
        if any(word in message for word in _NETWORK_WORDS):
            return ErrorKind.NETWORK

    for item in chain:
        if isinstance(item, _REMOTE_TYPES):
            return ErrorKind.REMOTE_SERVICE
        message = str(item)
        if _REMOTE_PATTERN.search(message) or any(word in message.lower() for word in _REMOTE_WORDS):
            return ErrorKind.REMOTE_SERVICE

    message = str(exc).lower()
    if any(word in message for word in _FRAMEWORK_WORDS):
        return ErrorKind.LOCAL_FRAMEWORK
    return ErrorKind.PLATFORM_API


def format_stack(exc: BaseException) -> str | None:
    if exc.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
