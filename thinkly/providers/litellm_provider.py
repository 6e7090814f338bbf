"""LiteLLM provider implementation for local and hosted chat models."""

from __future__ import annotations

from typing import Any

from litellm import acompletion
from loguru import logger

from thinkly.providers.base import LLMProvider, LLMResponse, ServiceUnavailableError


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM for multi-provider support.

    Local Ollama models are addressed as ``ollama/<name>`` and need no api key.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "ollama/llama3.1:8b",
        extra_headers: dict[str, str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        timeout: float | None = None,
    ) -> LLMResponse:
        resolved = model or self.default_model
        kwargs: dict[str, Any] = {
            "model": resolved,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await acompletion(**kwargs)
        except Exception as exc:
            logger.debug("litellm completion failed model={}: {}", resolved, exc)
            raise ServiceUnavailableError(f"{resolved}: {exc}") from exc
        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: Any) -> LLMResponse:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return LLMResponse(content=None, finish_reason="empty")
        choice = choices[0]
        message = getattr(choice, "message", None)
        content = getattr(message, "content", None) if message is not None else None

        usage: dict[str, int] = {}
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            usage = {
                "prompt_tokens": int(getattr(raw_usage, "prompt_tokens", 0) or 0),
                "completion_tokens": int(getattr(raw_usage, "completion_tokens", 0) or 0),
                "total_tokens": int(getattr(raw_usage, "total_tokens", 0) or 0),
            }
        return LLMResponse(
            content=content,
            finish_reason=str(getattr(choice, "finish_reason", None) or "stop"),
            usage=usage,
        )

    def get_default_model(self) -> str:
        return self.default_model
