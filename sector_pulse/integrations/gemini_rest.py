from __future__ import annotations

from typing import Any, Optional

import requests

from sector_pulse.errors import CommentaryError


class GeminiRestClient:
    """Minimal Gemini ``generateContent`` client returning plain text."""

    _BASE_URL = "https://generativelanguage.googleapis.com"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-3-flash-preview",
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 20,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.session = session or requests
        self.base_url = (base_url or self._BASE_URL).rstrip("/")
        self.timeout = timeout

    @staticmethod
    def _extract_text(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        parts: list[str] = []
        for candidate in payload.get("candidates") or []:
            content = candidate.get("content") if isinstance(candidate, dict) else None
            for part in (content or {}).get("parts") or []:
                text = part.get("text") if isinstance(part, dict) else None
                if text:
                    parts.append(str(text))
            if parts:
                break
        return "".join(parts).strip()

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise CommentaryError(CommentaryError.MISSING_CREDENTIAL)

        try:
            response = self.session.post(
                f"{self.base_url}/v1beta/models/{self.model}:generateContent",
                headers={
                    "content-type": "application/json; charset=utf-8",
                    "x-goog-api-key": self.api_key,
                },
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise CommentaryError(CommentaryError.NETWORK_FAILURE, str(exc)) from exc

        if response.status_code == 429:
            raise CommentaryError(CommentaryError.RATE_LIMITED)
        if response.status_code in (401, 403):
            raise CommentaryError(CommentaryError.MISSING_CREDENTIAL)
        try:
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise CommentaryError(CommentaryError.NETWORK_FAILURE, str(exc)) from exc

        text = self._extract_text(payload)
        if not text:
            raise CommentaryError(CommentaryError.EMPTY_RESPONSE)
        return text
