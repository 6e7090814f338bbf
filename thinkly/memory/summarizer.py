"""One-sentence summaries of saved decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from thinkly.providers.base import ServiceUnavailableError

if TYPE_CHECKING:
    from thinkly.memory.models import DraftMemory
    from thinkly.providers.generation import GenerationService

SUMMARY_PLACEHOLDER = "Summary unavailable"

_SYSTEM_PROMPT = (
    "You are running locally on the user's device.\n"
    "You do not send or receive data from the internet.\n"
    "\n"
    "You summarize completed personal decisions.\n"
    "\n"
    "Rules:\n"
    "- ONE sentence only\n"
    "- Max 30 words\n"
    "- Past tense\n"
    "- Neutral and factual\n"
    "- No advice\n"
    "- No judgment\n"
    "- No new information"
)


class DecisionSummarizer:
    """Summarize a draft via the generation service; never raises."""

    def __init__(self, generation: "GenerationService | None") -> None:
        self._generation = generation

    async def summarize(self, draft: "DraftMemory") -> str:
        if self._generation is None:
            return SUMMARY_PLACEHOLDER
        user = (
            f"Decision:\n{draft.decision}\n\n"
            f"Intent:\n{draft.intent}\n\n"
            f"Constraints:\n{draft.constraints}\n\n"
            f"Alternatives:\n{draft.alternatives}\n\n"
            f"Reasoning:\n{draft.reasoning}\n\n"
            "Return ONLY the summary sentence."
        )
        try:
            summary = await self._generation.generate(_SYSTEM_PROMPT, user)
        except ServiceUnavailableError as exc:
            logger.warning("summary generation failed: {}", exc)
            return SUMMARY_PLACEHOLDER
        return " ".join(summary.split()) or SUMMARY_PLACEHOLDER
