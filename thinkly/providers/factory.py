"""Factory helpers for route-specific generation services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from thinkly.providers.generation import GenerationRoutes, GenerationService
from thinkly.providers.litellm_provider import LiteLLMProvider

if TYPE_CHECKING:
    from thinkly.config.schema import Config
    from thinkly.providers.base import LLMProvider


@dataclass(slots=True)
class ProviderFactory:
    """Build scoped provider instances for routed task models."""

    config: "Config"

    def create_chat_provider(self, model: str) -> "LLMProvider":
        """Create a provider bound to the supplied model."""
        provider_cfg = self.config.get_provider(model)
        api_key = provider_cfg.api_key if provider_cfg and provider_cfg.api_key else None
        api_base = provider_cfg.api_base if provider_cfg else None
        extra_headers = provider_cfg.extra_headers if provider_cfg else None
        return LiteLLMProvider(
            api_key=api_key,
            api_base=api_base,
            default_model=model,
            extra_headers=extra_headers,
        )

    def create_generation(self, route_key: str) -> GenerationService:
        """Resolve one ``models.routes`` entry into a generation service."""
        _, profile = self.config.models.resolve(route_key)
        model = (profile.model or "").strip()
        return GenerationService(
            provider=self.create_chat_provider(model),
            model=model,
            max_tokens=int(profile.max_tokens or 1024),
            temperature=float(profile.temperature if profile.temperature is not None else 0.7),
            timeout_ms=profile.timeout_ms,
            route=route_key,
        )

    def create_routes(self) -> GenerationRoutes:
        return GenerationRoutes(
            reply=self.create_generation("conversation.reply"),
            extract=self.create_generation("conversation.extract"),
            advise=self.create_generation("conversation.advise"),
            reflect=self.create_generation("conversation.reflect"),
            inject=self.create_generation("conversation.inject"),
            summarize=self.create_generation("memory.summarize"),
        )
