"""LLM provider abstraction module."""

from thinkly.providers.base import LLMProvider, LLMResponse, ServiceUnavailableError
from thinkly.providers.generation import GenerationRoutes, GenerationService
from thinkly.providers.litellm_provider import LiteLLMProvider

__all__ = [
    "GenerationRoutes",
    "GenerationService",
    "LLMProvider",
    "LLMResponse",
    "LiteLLMProvider",
    "ServiceUnavailableError",
]
