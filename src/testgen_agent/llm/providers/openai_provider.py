"""OpenAI Chat Completions provider."""

from __future__ import annotations

from typing import Any

from openai import OpenAI

from ..types import ProviderConfig, ProviderKind
from .base import SYSTEM_PROMPT, BaseProvider


class OpenAIProvider(BaseProvider):
    kind = ProviderKind.OPENAI
    label = "OpenAI"

    def __init__(self, config: ProviderConfig, api_key: str, client: Any = None) -> None:
        super().__init__()
        self.model = config.model
        self.organization_id = config.organization_id
        self._client = client or OpenAI(
            api_key=api_key,
            organization=config.organization_id,
            timeout=config.timeout_seconds,
        )

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            n=1,
        )
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""

    def _ping(self) -> None:
        self._client.models.list()
