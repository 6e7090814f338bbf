"""Typed models for decision memories."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Literal, TypeAlias

MemoryField: TypeAlias = Literal["decision", "intent", "constraints", "alternatives", "reasoning"]
TermVector: TypeAlias = dict[str, int]
Speaker: TypeAlias = Literal["user", "assistant"]

MEMORY_FIELDS: tuple[MemoryField, ...] = (
    "decision",
    "intent",
    "constraints",
    "alternatives",
    "reasoning",
)

# Alternatives are the weakest similarity signal and stay out of the query.
QUERY_FIELDS: tuple[MemoryField, ...] = ("decision", "intent", "constraints", "reasoning")

_FIELD_LABELS: dict[str, str] = {
    "decision": "Decision",
    "intent": "Intent",
    "constraints": "Constraints",
    "alternatives": "Alternatives",
    "reasoning": "Reasoning",
}


def field_label(name: str) -> str:
    return _FIELD_LABELS.get(name, name.title())


@dataclass(slots=True)
class DraftMemory:
    """The decision currently under construction."""

    decision: str = ""
    intent: str = ""
    constraints: str = ""
    alternatives: str = ""
    reasoning: str = ""

    @property
    def can_save(self) -> bool:
        return any(getattr(self, name).strip() for name in MEMORY_FIELDS)

    @property
    def is_core_clear(self) -> bool:
        """Decision is stated and at least one supporting field is present."""
        if not self.decision.strip():
            return False
        return any(getattr(self, name).strip() for name in ("intent", "reasoning", "alternatives"))

    def get(self, name: str) -> str:
        if name not in MEMORY_FIELDS:
            raise KeyError(name)
        return str(getattr(self, name))

    def set(self, name: str, value: str) -> None:
        if name not in MEMORY_FIELDS:
            raise KeyError(name)
        setattr(self, name, value)

    def clear(self) -> None:
        for name in MEMORY_FIELDS:
            setattr(self, name, "")

    def copy(self) -> "DraftMemory":
        return replace(self)

    def query_text(self) -> str:
        return "\n".join(getattr(self, name) for name in QUERY_FIELDS)

    def synthesis(self) -> str:
        """Five-line rendering used in prompts and the review panel."""
        if not self.can_save:
            return ""
        return "\n".join(f"{field_label(name)}: {getattr(self, name)}" for name in MEMORY_FIELDS)


@dataclass(slots=True)
class DecisionMemory:
    """One saved decision. ``id`` and ``created_at`` never change after creation."""

    id: str
    created_at: int
    summary: str = ""
    decision: str = ""
    intent: str = ""
    constraints: str = ""
    alternatives: str = ""
    reasoning: str = ""
    archived: bool = False

    def full_text(self) -> str:
        return "\n".join(getattr(self, name) for name in MEMORY_FIELDS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "summary": self.summary,
            "decision": self.decision,
            "intent": self.intent,
            "constraints": self.constraints,
            "alternatives": self.alternatives,
            "reasoning": self.reasoning,
            "archived": self.archived,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "DecisionMemory":
        """Build a record from its stored form. Raises ValueError on bad shape."""
        if not isinstance(payload, dict):
            raise ValueError(f"memory record must be an object, got {type(payload).__name__}")
        memory_id = payload.get("id")
        if not isinstance(memory_id, str) or not memory_id:
            raise ValueError("memory record has no id")
        created_at = payload.get("createdAt")
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            raise ValueError(f"memory {memory_id} has invalid createdAt")
        if isinstance(created_at, float) and not math.isfinite(created_at):
            raise ValueError(f"memory {memory_id} has non-finite createdAt")
        archived = payload.get("archived", False)
        if not isinstance(archived, bool):
            raise ValueError(f"memory {memory_id} has invalid archived flag")

        text: dict[str, str] = {}
        for name in (*MEMORY_FIELDS, "summary"):
            value = payload.get(name, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ValueError(f"memory {memory_id} field {name} must be a string")
            text[name] = value
        return cls(id=memory_id, created_at=int(created_at), archived=archived, **text)


@dataclass(slots=True)
class MemoryVector:
    """Term vector attached to a memory by shared id."""

    id: str
    vector: TermVector

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "vector": dict(self.vector)}

    @classmethod
    def from_dict(cls, payload: object) -> "MemoryVector":
        if not isinstance(payload, dict):
            raise ValueError("vector record must be an object")
        vector_id = payload.get("id")
        raw = payload.get("vector")
        if not isinstance(vector_id, str) or not vector_id:
            raise ValueError("vector record has no id")
        if not isinstance(raw, dict):
            raise ValueError(f"vector {vector_id} is not a mapping")
        vector: TermVector = {}
        for term, count in raw.items():
            if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
                raise ValueError(f"vector {vector_id} has invalid count for {term!r}")
            vector[str(term)] = count
        return cls(id=vector_id, vector=vector)


@dataclass(frozen=True, slots=True)
class DialogueTurn:
    """One line of the conversation transcript."""

    speaker: Speaker
    text: str
    placeholder: bool = False

    def transcript_line(self) -> str:
        role = "USER" if self.speaker == "user" else "AI"
        return f"{role}: {self.text}"


def editable_fields() -> set[str]:
    """Names accepted by ``MemoryStore.update``."""
    return {f.name for f in fields(DecisionMemory)} - {"id", "created_at", "archived"}
