"""Provider contract and the behaviour every provider shares."""

from __future__ import annotations

import logging
from typing import ClassVar, Protocol

from ...errors import GenerationError
from ..parser import parse_test_response
from ..types import GenerationDefaults, GenerationRequest, GenerationResult, ProviderKind

SYSTEM_PROMPT = (
    "You are a senior software engineer specializing in test automation. "
    "Generate comprehensive unit tests following best practices and the "
    "specified test framework patterns."
)

REQUIREMENTS = (
    "Use best practices for unit testing",
    "Ensure comprehensive test coverage",
    "Include edge cases and error scenarios",
    "Follow the existing test patterns if present",
    "Add necessary imports and setup code",
)

VALIDATION_PROMPT = "Test connection"


class TestGenerationProvider(Protocol):
    kind: ProviderKind

    def generate_tests(self, request: GenerationRequest, defaults: GenerationDefaults) -> GenerationResult:
        ...

    def validate_config(self) -> bool:
        ...


def build_prompt(request: GenerationRequest) -> str:
    sections = [
        "Please generate unit tests for the following code:",
        f"SOURCE CODE:\n```\n{request.source_code}\n```",
    ]
    if request.existing_tests:
        sections.append(f"EXISTING TESTS:\n```\n{request.existing_tests}\n```")
    requirements = "\n".join(f"{i}. {item}" for i, item in enumerate(REQUIREMENTS, start=1))
    sections.append(f"Requirements:\n{requirements}")
    sections.append(request.prompt)
    return "\n\n".join(sections)


class BaseProvider:
    """Subclasses implement ``_complete`` and ``_ping`` for one vendor."""

    kind: ClassVar[ProviderKind]
    label: ClassVar[str] = "AI"

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.kind.value}")

    def build_prompt(self, request: GenerationRequest) -> str:
        return build_prompt(request)

    def generate_tests(self, request: GenerationRequest, defaults: GenerationDefaults) -> GenerationResult:
        prompt = self.build_prompt(request)
        max_tokens = request.max_tokens if request.max_tokens is not None else defaults.max_tokens
        temperature = request.temperature if request.temperature is not None else defaults.temperature
        try:
            text = self._complete(prompt, max_tokens=max_tokens, temperature=temperature)
            if not text or not text.strip():
                raise GenerationError("No test code generated")
        except GenerationError as exc:
            self.logger.error("%s API Error: %s", self.label, exc.detail)
            raise
        except Exception as exc:
            self.logger.error("%s API Error: %s", self.label, exc)
            raise GenerationError(str(exc) or type(exc).__name__) from exc
        return parse_test_response(text)

    def validate_config(self) -> bool:
        try:
            self._ping()
        except Exception as exc:
            self.logger.warning("%s configuration validation failed: %s", self.label, exc)
            return False
        return True

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        raise NotImplementedError

    def _ping(self) -> None:
        raise NotImplementedError
