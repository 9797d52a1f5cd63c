"""Azure OpenAI provider (deployment based chat completions)."""

from __future__ import annotations

from typing import Any

from openai import AzureOpenAI

from ..types import ProviderConfig, ProviderKind
from .base import SYSTEM_PROMPT, VALIDATION_PROMPT, BaseProvider


class AzureOpenAIProvider(BaseProvider):
    kind = ProviderKind.AZURE
    label = "Azure OpenAI"

    def __init__(self, config: ProviderConfig, api_key: str, client: Any = None) -> None:
        super().__init__()
        self.deployment_name = config.deployment_name
        self._client = client or AzureOpenAI(
            api_key=api_key,
            azure_endpoint=config.endpoint,
            api_version=config.api_version,
            timeout=config.timeout_seconds,
        )

    def _chat(self, messages: list[dict[str, str]], **options: Any) -> Any:
        # Azure routes by deployment; the deployment name goes where the model would.
        return self._client.chat.completions.create(model=self.deployment_name, messages=messages, **options)

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        response = self._chat(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""

    def _ping(self) -> None:
        self._chat([{"role": "user", "content": VALIDATION_PROMPT}], max_tokens=1)
