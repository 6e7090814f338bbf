"""Infer the five decision fields from a transcript."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from thinkly.conversation.prompts import EXTRACTION_SYSTEM, extraction_user_prompt
from thinkly.memory.models import MEMORY_FIELDS
from thinkly.providers.base import ServiceUnavailableError

if TYPE_CHECKING:
    from thinkly.memory.models import DraftMemory
    from thinkly.providers.generation import GenerationService


@dataclass(frozen=True, slots=True)
class ExtractedFields:
    """A validated extraction result; every field is present (possibly empty)."""

    decision: str
    intent: str
    constraints: str
    alternatives: str
    reasoning: str

    def merge_into(self, draft: "DraftMemory") -> list[str]:
        """Copy non-empty inferred values onto the draft. Returns changed field names."""
        changed: list[str] = []
        for name in MEMORY_FIELDS:
            value = getattr(self, name)
            if value and value != draft.get(name):
                draft.set(name, value)
                changed.append(name)
        return changed


def decode_extraction(text: str) -> ExtractedFields | None:
    """Decode model output into five validated fields, or None."""
    payload = _extract_json_object(text)
    if payload is None:
        return None
    values: dict[str, str] = {}
    for name in MEMORY_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str):
            logger.debug("extraction rejected: field {} is {}", name, type(value).__name__)
            return None
        values[name] = " ".join(value.split())
    return ExtractedFields(**values)


def _extract_json_object(text: str) -> dict[str, Any] | None:
    stripped = text.strip()
    if not stripped:
        return None
    for candidate in _json_candidates(stripped):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
        # A well-formed non-object is a wrong shape, not a framing problem.
        return None
    return None


def _json_candidates(text: str) -> list[str]:
    candidates: list[str] = [text]
    fenced = re.findall(r"```(?:json)?\s*(.*?)```", text, flags=re.IGNORECASE | re.DOTALL)
    candidates.extend(chunk.strip() for chunk in fenced if chunk.strip())

    first_obj = text.find("{")
    last_obj = text.rfind("}")
    if 0 <= first_obj < last_obj:
        candidates.append(text[first_obj : last_obj + 1])
    return candidates


class FieldExtractor:
    """Best-effort background inference; failures mean "no inference"."""

    def __init__(self, generation: "GenerationService") -> None:
        self._generation = generation

    async def infer(self, transcript: str) -> ExtractedFields | None:
        if not transcript.strip():
            return None
        try:
            content = await self._generation.generate(
                EXTRACTION_SYSTEM,
                extraction_user_prompt(transcript),
            )
        except ServiceUnavailableError as exc:
            logger.debug("field inference request failed: {}", exc)
            return None
        fields = decode_extraction(content)
        if fields is None:
            logger.debug("field inference returned unusable output: {}", content[:200])
        return fields
