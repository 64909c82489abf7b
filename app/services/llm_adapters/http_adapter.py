# app/services/llm_adapters/http_adapter.py
"""
Async HTTP adapter for an OpenAI-compatible chat-completions endpoint.
One call = one request; retrying is the caller's RetryPolicy.

Configuration (Settings):
- LLM_HTTP_URL: chat completions URL
- LLM_API_KEY: sent as Authorization: Bearer <key>
- LLM_MODEL, LLM_MAX_TOKENS, LLM_TIMEOUT_SEC
"""

from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.errors import UpstreamServiceError


class HttpEnhancementAdapter:
    name = "http"

    def __init__(
        self,
        url: str,
        model: str,
        max_tokens: int,
        api_key: Optional[str] = None,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise RuntimeError("LLM_HTTP_URL unset for http adapter")
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpEnhancementAdapter":
        return cls(
            url=settings.LLM_HTTP_URL,
            model=settings.LLM_MODEL,
            max_tokens=settings.LLM_MAX_TOKENS,
            api_key=settings.LLM_API_KEY,
            timeout=settings.LLM_TIMEOUT_SEC,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.max_tokens,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(self.url, json=body, headers=self._headers())
            except httpx.HTTPError as exc:
                raise UpstreamServiceError(f"Enhancement request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise UpstreamServiceError(
                f"Enhancement service returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                response_text=resp.text,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamServiceError(
                f"Malformed enhancement response: {exc}",
                status_code=resp.status_code,
                response_text=resp.text[:500],
            ) from exc
        return _content_from(data)


def _content_from(data: Dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamServiceError(f"Malformed enhancement response: missing {exc}") from exc
    if not isinstance(content, str):
        raise UpstreamServiceError("Malformed enhancement response: content is not text")
    return content
