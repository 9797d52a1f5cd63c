"""Static mapping from provider kind to provider class."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from ..errors import UnsupportedProviderError
from .providers.anthropic_provider import ClaudeProvider
from .providers.azure_provider import AzureOpenAIProvider
from .providers.base import TestGenerationProvider
from .providers.google_provider import GoogleProvider
from .providers.openai_provider import OpenAIProvider
from .types import ProviderConfig, ProviderKind

ProviderFactory = Callable[[ProviderConfig, str], TestGenerationProvider]

PROVIDERS: Mapping[ProviderKind, ProviderFactory] = {
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.AZURE: AzureOpenAIProvider,
    ProviderKind.GOOGLE: GoogleProvider,
    ProviderKind.CLAUDE: ClaudeProvider,
}


def resolve_kind(value: Any) -> ProviderKind:
    try:
        return ProviderKind(value)
    except ValueError:
        raise UnsupportedProviderError(str(value)) from None


def resolve_factory(
    kind: ProviderKind | str,
    factories: Mapping[ProviderKind, ProviderFactory] | None = None,
) -> ProviderFactory:
    registry: Dict[ProviderKind, ProviderFactory] = dict(factories or PROVIDERS)
    resolved = resolve_kind(kind)
    factory = registry.get(resolved)
    if factory is None:
        raise UnsupportedProviderError(resolved.value)
    return factory
