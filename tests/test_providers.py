from types import SimpleNamespace

import httpx
import pytest

from tests.conftest import ScriptedProvider
from thinkly.providers import litellm_provider
from thinkly.providers.base import ServiceUnavailableError
from thinkly.providers.generation import GenerationService
from thinkly.providers.health import probe_ollama
from thinkly.providers.litellm_provider import LiteLLMProvider


async def test_generation_sends_system_and_user_messages() -> None:
    provider = ScriptedProvider(lambda system, user: "  reply text \n")
    service = GenerationService(provider=provider, route="conversation.reply")

    assert await service.generate("be kind", "USER: hi") == "reply text"
    assert provider.calls == [("be kind", "USER: hi")]


async def test_generation_returns_empty_string_for_missing_content() -> None:
    service = GenerationService(provider=ScriptedProvider(lambda system, user: None))
    assert await service.generate("s", "u") == ""


async def test_generation_wraps_unexpected_errors() -> None:
    def handler(system: str, user: str) -> str:
        raise ConnectionError("refused")

    service = GenerationService(provider=ScriptedProvider(handler), route="memory.summarize")

    with pytest.raises(ServiceUnavailableError, match="memory.summarize"):
        await service.generate("s", "u")


async def test_litellm_provider_passes_settings_and_parses_response(monkeypatch) -> None:
    seen: dict = {}

    async def fake_acompletion(**kwargs):
        seen.update(kwargs)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="hello"), finish_reason="stop")],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=1, total_tokens=4),
        )

    monkeypatch.setattr(litellm_provider, "acompletion", fake_acompletion)
    provider = LiteLLMProvider(api_base="http://localhost:11434")

    response = await provider.chat([{"role": "user", "content": "hi"}], max_tokens=50, timeout=2.5)

    assert response.content == "hello"
    assert response.usage["total_tokens"] == 4
    assert seen["model"] == "ollama/llama3.1:8b"
    assert seen["api_base"] == "http://localhost:11434"
    assert seen["timeout"] == 2.5
    assert "api_key" not in seen


async def test_litellm_provider_raises_service_unavailable(monkeypatch) -> None:
    async def failing_acompletion(**kwargs):
        raise RuntimeError("Connection refused")

    monkeypatch.setattr(litellm_provider, "acompletion", failing_acompletion)

    with pytest.raises(ServiceUnavailableError):
        await LiteLLMProvider().chat([{"role": "user", "content": "hi"}])


def test_litellm_provider_handles_empty_choices() -> None:
    response = LiteLLMProvider._parse_response(SimpleNamespace(choices=[], usage=None))
    assert response.content is None
    assert response.finish_reason == "empty"


async def test_probe_ollama_lists_models(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": "llama3.1:8b"}, {"size": 1}]})

    _patch_transport(monkeypatch, httpx.MockTransport(handler))

    assert await probe_ollama("http://localhost:11434/") == ["llama3.1:8b"]


async def test_probe_ollama_unreachable(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    _patch_transport(monkeypatch, httpx.MockTransport(handler))

    assert await probe_ollama("http://localhost:11434") is None


def _patch_transport(monkeypatch, transport: httpx.MockTransport) -> None:
    original = httpx.AsyncClient

    def client(*args, **kwargs):
        kwargs["transport"] = transport
        return original(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client)
