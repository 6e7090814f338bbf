"""Route-bound text generation: ``generate(system, user) -> str``."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from thinkly.providers.base import LLMProvider, ServiceUnavailableError


@dataclass(slots=True)
class GenerationService:
    """Send one system/user prompt pair to a provider and return the reply text."""

    provider: LLMProvider
    model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.7
    timeout_ms: int | None = None
    route: str = "default"

    async def generate(self, system: str, user: str) -> str:
        """Return the stripped reply, or ``""`` when the model produced nothing.

        Raises:
            ServiceUnavailableError: the backend could not be reached.
        """
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        timeout = self.timeout_ms / 1000.0 if self.timeout_ms else None
        try:
            response = await self.provider.chat(
                messages=messages,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=timeout,
            )
        except ServiceUnavailableError:
            raise
        except Exception as exc:
            raise ServiceUnavailableError(f"route {self.route}: {exc}") from exc

        content = (response.content or "").strip()
        if not content:
            logger.debug("generation route={} returned empty content", self.route)
        return content


@dataclass(slots=True)
class GenerationRoutes:
    """One generation service per conversation task."""

    reply: GenerationService
    extract: GenerationService
    advise: GenerationService
    reflect: GenerationService
    inject: GenerationService
    summarize: GenerationService

    @classmethod
    def single(cls, service: GenerationService) -> "GenerationRoutes":
        """Use the same service for every task."""
        return cls(
            reply=service,
            extract=service,
            advise=service,
            reflect=service,
            inject=service,
            summarize=service,
        )
