"""Google Vertex AI Gemini REST provider."""

from __future__ import annotations

from typing import Any, Dict

import requests

from ..types import ProviderConfig, ProviderKind
from .base import SYSTEM_PROMPT, VALIDATION_PROMPT, BaseProvider


class GoogleProvider(BaseProvider):
    kind = ProviderKind.GOOGLE
    label = "Google AI"

    def __init__(self, config: ProviderConfig, api_key: str, session: requests.Session | None = None) -> None:
        super().__init__()
        self._api_key = api_key
        self.project = config.project
        self.location = config.location
        self.model = config.model
        self.timeout_seconds = config.timeout_seconds
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return (
            f"https://{self.location}-aiplatform.googleapis.com/v1/projects/{self.project}"
            f"/locations/{self.location}/publishers/google/models/{self.model}:generateContent"
        )

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        res = self._session.post(
            self.url,
            headers={"x-goog-api-key": self._api_key, "content-type": "application/json"},
            json=payload,
            timeout=self.timeout_seconds,
        )
        res.raise_for_status()
        return res.json()

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        data = self._post(
            {
                "system_instruction": {"parts": [{"text": SYSTEM_PROMPT}]},
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": temperature,
                    "maxOutputTokens": max_tokens,
                },
            }
        )
        candidates = data.get("candidates", [])
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))

    def _ping(self) -> None:
        self._post(
            {
                "contents": [{"role": "user", "parts": [{"text": VALIDATION_PROMPT}]}],
                "generationConfig": {"maxOutputTokens": 1},
            }
        )
