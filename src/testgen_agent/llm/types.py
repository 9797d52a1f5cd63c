"""Shared test generation data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from ..errors import ConfigurationError


class ProviderKind(str, Enum):
    OPENAI = "openai"
    AZURE = "azure"
    GOOGLE = "google"
    CLAUDE = "claude"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    source_code: str
    existing_tests: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class GenerationDefaults:
    max_tokens: int = 2048
    temperature: float = 0.7


@dataclass(frozen=True)
class CoverageEstimate:
    estimated_coverage: int
    uncovered_paths: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """Immutable, so a cached result can be handed to several callers."""

    test_code: str
    explanation: str = ""
    suggested_imports: Tuple[str, ...] = ()
    coverage: CoverageEstimate | None = None


_REQUIRED_FIELDS: Dict[ProviderKind, Tuple[str, ...]] = {
    ProviderKind.OPENAI: ("model",),
    ProviderKind.AZURE: ("endpoint", "deployment_name", "api_version"),
    ProviderKind.GOOGLE: ("project", "location", "model"),
    ProviderKind.CLAUDE: ("model",),
}


@dataclass(frozen=True)
class ProviderConfig:
    """Everything needed to build one provider. ``credential_ref`` names a secret, it is never the secret."""

    kind: ProviderKind
    credential_ref: str
    model: str = ""
    deployment_name: str = ""
    endpoint: str = ""
    api_version: str = ""
    project: str = ""
    location: str = ""
    organization_id: str | None = None
    timeout_seconds: int = 60

    @staticmethod
    def required_fields(kind: ProviderKind) -> Tuple[str, ...]:
        return _REQUIRED_FIELDS[kind]

    def validate(self) -> None:
        missing = [name for name in self.required_fields(self.kind) if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing {self.kind.value} settings: {', '.join(missing)}")

    @classmethod
    def from_settings(cls, ai_cfg: Dict[str, Any], credential_ref: str) -> "ProviderConfig":
        kind = ProviderKind(ai_cfg["provider"])
        section = ai_cfg.get(kind.value) or {}
        return cls(
            kind=kind,
            credential_ref=credential_ref,
            model=str(section.get("model") or ai_cfg.get("model") or ""),
            deployment_name=str(section.get("deployment_name") or ""),
            endpoint=str(section.get("endpoint") or ""),
            api_version=str(section.get("api_version") or ""),
            project=str(section.get("project") or ""),
            location=str(section.get("location") or ""),
            organization_id=section.get("organization_id"),
            timeout_seconds=int(ai_cfg.get("timeout_seconds", 60)),
        )
