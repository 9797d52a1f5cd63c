"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any, Dict

import requests

from ..types import ProviderConfig, ProviderKind
from .base import SYSTEM_PROMPT, VALIDATION_PROMPT, BaseProvider

MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class ClaudeProvider(BaseProvider):
    kind = ProviderKind.CLAUDE
    label = "Claude AI"

    def __init__(self, config: ProviderConfig, api_key: str, session: requests.Session | None = None) -> None:
        super().__init__()
        self._api_key = api_key
        self.model = config.model
        self.timeout_seconds = config.timeout_seconds
        self._session = session or requests.Session()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        res = self._session.post(MESSAGES_URL, headers=headers, json=payload, timeout=self.timeout_seconds)
        res.raise_for_status()
        return res.json()

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        data = self._post(
            {
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
            }
        )
        content = data.get("content", [])
        if not isinstance(content, list):
            return ""
        return "".join(
            item.get("text", "")
            for item in content
            if isinstance(item, dict) and item.get("type") == "text"
        )

    def _ping(self) -> None:
        self._post(
            {
                "model": self.model,
                "max_tokens": 10,
                "messages": [{"role": "user", "content": VALIDATION_PROMPT}],
            }
        )
