import inspect
import json
import os
from collections.abc import Callable
from typing import Any

import pytest

# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from thinkly.memory.storage import InMemoryStorage
from thinkly.memory.store import MemoryStore
from thinkly.memory.summarizer import DecisionSummarizer
from thinkly.providers.base import LLMProvider, LLMResponse
from thinkly.providers.generation import GenerationRoutes, GenerationService


class ScriptedProvider(LLMProvider):
    """Answer each request by calling ``handler(system, user)``.

    The handler may return a string, ``None``, an awaitable of either, or raise.
    """

    def __init__(self, handler: Callable[[str, str], Any]) -> None:
        super().__init__()
        self.handler = handler
        self.calls: list[tuple[str, str]] = []

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        timeout: float | None = None,
    ) -> LLMResponse:
        system = messages[0]["content"]
        user = messages[1]["content"]
        self.calls.append((system, user))
        result = self.handler(system, user)
        if inspect.isawaitable(result):
            result = await result
        return LLMResponse(content=result)

    def get_default_model(self) -> str:
        return "fake/model"

    def calls_for(self, system: str) -> list[str]:
        return [user for sys, user in self.calls if sys == system]


def extraction_json(**fields: str) -> str:
    payload = {name: "" for name in ("decision", "intent", "constraints", "alternatives", "reasoning")}
    payload.update(fields)
    return json.dumps(payload)


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_routes(provider: LLMProvider) -> GenerationRoutes:
    return GenerationRoutes.single(GenerationService(provider=provider, route="test"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage: InMemoryStorage, clock: FakeClock) -> MemoryStore:
    return MemoryStore(storage, summarizer=DecisionSummarizer(None), clock=clock)
