"""OpenAI chat completions client: blocking and streamed calls over httpx."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, AsyncIterator

import httpx
import structlog

logger = structlog.get_logger()

OPENAI_API_BASE = "https://api.openai.com/v1"


@dataclass
class ChatChunk:
    """One item of a streamed completion: a content delta or the final usage."""

    type: str  # "content" | "usage"
    content: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    model: str | None = None


class OpenAIChatClient:
    """Calls the chat completions endpoint with a caller-supplied API key."""

    def __init__(
        self,
        base_url: str = OPENAI_API_BASE,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _body(
        messages: list[dict[str, Any]],
        model: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return body

    async def chat_completion(
        self,
        api_key: str,
        messages: list[dict[str, Any]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        """Return the assistant message content. Raises RuntimeError on non-2xx."""
        async with self._client() as client:
            resp = await client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {api_key}"},
                json=self._body(messages, model, temperature, max_tokens, json_mode),
            )
        if resp.status_code >= 400:
            logger.warning("openai.chat_failed", status=resp.status_code, model=model)
            raise RuntimeError(f"OpenAI API error: {resp.status_code}")
        data = resp.json()
        return data["choices"][0]["message"].get("content") or ""

    async def stream_chat_completion(
        self,
        api_key: str,
        messages: list[dict[str, Any]],
        model: str = "gpt-4o",
        temperature: float = 0.8,
        max_tokens: int = 1500,
    ) -> AsyncIterator[ChatChunk]:
        """Yield content deltas as they arrive, then a usage chunk."""
        body = self._body(messages, model, temperature, max_tokens)
        body["stream"] = True
        body["stream_options"] = {"include_usage": True}

        async with self._client() as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {api_key}"},
                json=body,
            ) as resp:
                if resp.status_code >= 400:
                    await resp.aread()
                    logger.warning("openai.stream_failed", status=resp.status_code, model=model)
                    raise RuntimeError(f"OpenAI API error: {resp.status_code}")

                async for line in resp.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    payload = line[len("data: "):].strip()
                    if payload == "[DONE]":
                        break
                    try:
                        event = json.loads(payload)
                    except json.JSONDecodeError:
                        continue

                    for choice in event.get("choices") or []:
                        delta = (choice.get("delta") or {}).get("content")
                        if delta:
                            yield ChatChunk(type="content", content=delta)

                    usage = event.get("usage")
                    if usage:
                        yield ChatChunk(
                            type="usage",
                            prompt_tokens=usage.get("prompt_tokens", 0),
                            completion_tokens=usage.get("completion_tokens", 0),
                            model=event.get("model") or model,
                        )


@lru_cache
def get_chat_client() -> OpenAIChatClient:
    """Get cached chat client instance."""
    return OpenAIChatClient()
