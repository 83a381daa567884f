"""
Gemini text generation — outbound call to the Generative Language API.

Uses httpx.AsyncClient (one pooled client per GeminiClient). Any failed call
is raised as TeamTrackUpstreamError; callers decide the fallback.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from teamtrack.engine.config import AssistantConfig
from teamtrack.engine.errors import TeamTrackUpstreamError

logger = logging.getLogger("teamtrack.integrations.gemini")

PROVIDER = "gemini"


class GeminiClient:
    """Implements ``generate(prompt) -> str`` over the generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-3-flash-preview",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: AssistantConfig, **kwargs: Any) -> "GeminiClient":
        return cls(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
            **kwargs,
        )

    @property
    def url(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def generate(self, prompt: str) -> str:
        if not self._api_key:
            raise TeamTrackUpstreamError("No API key configured", provider=PROVIDER)

        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            response = await self._get_client().post(
                self.url,
                json=body,
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.HTTPError as e:
            raise TeamTrackUpstreamError(f"Request failed: {e}", provider=PROVIDER) from e

        if response.status_code >= 400:
            raise TeamTrackUpstreamError(
                f"HTTP {response.status_code}",
                provider=PROVIDER,
                upstream_status=response.status_code,
                response_body=response.text[:500],
            )

        try:
            return self._extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TeamTrackUpstreamError("Malformed response body", provider=PROVIDER) from e

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        """Join the text parts of the first candidate. No candidates → empty text."""
        candidates = payload.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0]["content"].get("parts") or []
        return "".join(p.get("text", "") for p in parts)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Closed httpx client for %s", PROVIDER)
