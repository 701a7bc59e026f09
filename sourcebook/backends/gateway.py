"""Chat completion backend: OpenAI-compatible gateway via httpx."""

from __future__ import annotations

import logging

import httpx

from sourcebook.config import settings
from sourcebook.errors import UpstreamModelError

logger = logging.getLogger(__name__)


class GatewayBackend:
    """Completion backend for any OpenAI-compatible ``/chat/completions`` URL."""

    name: str = "Gateway"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self.model = model or settings.llm_model
        self.api_url = api_url or settings.llm_api_url
        self.timeout = timeout or settings.llm_timeout
        self._transport = transport

    async def complete(self, messages: list[dict]) -> str:
        """Run one non-streaming completion. No retries."""
        if not self.api_key:
            raise UpstreamModelError("Language model API key is not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={"model": self.model, "messages": messages},
                )
        except httpx.HTTPError as exc:
            logger.error("Completion request to %s failed: %s", self.api_url, exc)
            raise UpstreamModelError(f"AI API request failed: {exc}") from exc

        if response.is_error:
            logger.error("AI API error: %s %s", response.status_code, response.text[:500])
            raise UpstreamModelError(
                f"AI API error: {response.status_code}", details=response.text[:500]
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Malformed completion response: %s", exc)
            raise UpstreamModelError("AI API returned a malformed response") from exc

        if not isinstance(content, str):
            raise UpstreamModelError("AI API returned a malformed response")
        logger.info("Completion received (%d chars)", len(content))
        return content
