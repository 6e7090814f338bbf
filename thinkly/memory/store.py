"""Write-through store for decision memories and their term vectors."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from thinkly.memory.models import (
    MEMORY_FIELDS,
    DecisionMemory,
    DraftMemory,
    MemoryVector,
    TermVector,
    editable_fields,
)
from thinkly.memory.summarizer import DecisionSummarizer
from thinkly.memory.vectors import build_vector
from thinkly.utils.helpers import new_memory_id, now_ms

if TYPE_CHECKING:
    from thinkly.memory.storage import KeyValueStorage

MEMORIES_KEY = "thinkly_memories"
VECTORS_KEY = "thinkly_vectors"

_T = TypeVar("_T")


class MemoryStore:
    """Own the memory collection (most recent first) and the id -> vector map.

    Every mutation is persisted immediately. Corrupt stored data never raises:
    the affected collection starts empty and the failure is logged.
    """

    def __init__(
        self,
        storage: "KeyValueStorage",
        *,
        summarizer: DecisionSummarizer | None = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_memory_id,
        memories_key: str = MEMORIES_KEY,
        vectors_key: str = VECTORS_KEY,
    ) -> None:
        self._storage = storage
        self._summarizer = summarizer or DecisionSummarizer(None)
        self._clock = clock
        self._id_factory = id_factory
        self._memories_key = memories_key
        self._vectors_key = vectors_key
        self._memories: list[DecisionMemory] = []
        self._vectors: dict[str, TermVector] = {}
        self._last_created_at = 0
        self._loaded = False

    # ── Lifecycle ────────────────────────────────────────────────────

    def load(self) -> tuple[list[DecisionMemory], dict[str, TermVector]]:
        memories = self._load_collection(self._memories_key, DecisionMemory.from_dict)
        vectors = self._load_collection(self._vectors_key, MemoryVector.from_dict)

        seen: set[str] = set()
        unique: list[DecisionMemory] = []
        for memory in memories:
            if memory.id in seen:
                logger.warning("dropping duplicate memory id {}", memory.id)
                continue
            seen.add(memory.id)
            unique.append(memory)

        by_id: dict[str, TermVector] = {}
        orphans = 0
        for item in vectors:
            if item.id not in seen:
                orphans += 1
                continue
            by_id[item.id] = item.vector
        if orphans:
            logger.info("dropped {} orphaned term vectors", orphans)

        self._memories = unique
        self._vectors = by_id
        self._last_created_at = max((m.created_at for m in unique), default=0)
        self._loaded = True
        logger.debug("loaded {} memories, {} vectors", len(unique), len(by_id))
        return list(self._memories), dict(self._vectors)

    def _load_collection(self, key: str, parse: Callable[[object], _T]) -> list[_T]:
        try:
            raw = self._storage.load(key)
        except UnicodeDecodeError as exc:
            logger.warning("failed to decode {}; starting empty: {}", key, exc)
            return []
        except OSError as exc:
            logger.warning("failed to read {}: {}", key, exc)
            return []
        if raw is None or not raw.strip():
            return []
        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a list, got {type(payload).__name__}")
            return [parse(row) for row in payload]
        except (ValueError, OverflowError, RecursionError) as exc:
            logger.warning("failed to load {}; starting empty: {}", key, exc)
            return []

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def save(self) -> None:
        """Persist both collections. Safe to call after every mutation."""
        memories = json.dumps([m.to_dict() for m in self._memories], ensure_ascii=False)
        vectors = json.dumps(
            [
                MemoryVector(id=m.id, vector=self._vectors[m.id]).to_dict()
                for m in self._memories
                if m.id in self._vectors
            ],
            ensure_ascii=False,
        )
        try:
            self._storage.save(self._memories_key, memories)
            self._storage.save(self._vectors_key, vectors)
        except OSError as exc:
            logger.error("failed to persist memories: {}", exc)

    # ── Read ─────────────────────────────────────────────────────────

    @property
    def memories(self) -> list[DecisionMemory]:
        self._ensure_loaded()
        return list(self._memories)

    @property
    def vectors(self) -> dict[str, TermVector]:
        self._ensure_loaded()
        return dict(self._vectors)

    def get(self, memory_id: str) -> DecisionMemory | None:
        self._ensure_loaded()
        return next((m for m in self._memories if m.id == memory_id), None)

    def index_of(self, memory_id: str) -> int | None:
        self._ensure_loaded()
        for index, memory in enumerate(self._memories):
            if memory.id == memory_id:
                return index
        return None

    # ── Mutations ────────────────────────────────────────────────────

    async def create(self, draft: DraftMemory) -> DecisionMemory | None:
        """Save a draft as a new memory. Returns None for an empty draft."""
        if not draft.can_save:
            return None
        self._ensure_loaded()
        snapshot = draft.copy()
        summary = await self._summarizer.summarize(snapshot)

        memory_id = self._id_factory()
        while any(m.id == memory_id for m in self._memories):
            memory_id = self._id_factory()
        created_at = max(self._clock(), self._last_created_at)
        memory = DecisionMemory(
            id=memory_id,
            created_at=created_at,
            summary=summary,
            archived=False,
            **{name: snapshot.get(name) for name in MEMORY_FIELDS},
        )
        self._memories.insert(0, memory)
        self._vectors[memory_id] = build_vector(memory.full_text())
        self._last_created_at = created_at
        self.save()
        logger.info("saved memory {}", memory_id)
        return memory

    def delete(self, memory_id: str) -> bool:
        self._ensure_loaded()
        remaining = [m for m in self._memories if m.id != memory_id]
        had_vector = self._vectors.pop(memory_id, None) is not None
        if len(remaining) == len(self._memories) and not had_vector:
            return False
        self._memories = remaining
        self.save()
        logger.info("deleted memory {}", memory_id)
        return True

    def archive(self, memory_id: str, archived: bool = True) -> bool:
        memory = self.get(memory_id)
        if memory is None:
            return False
        if memory.archived != archived:
            memory.archived = archived
            self.save()
        return True

    def update(self, memory_id: str, **changes: str) -> DecisionMemory | None:
        """Edit text fields of a saved memory and rebuild its vector."""
        memory = self.get(memory_id)
        if memory is None:
            return None
        unknown = set(changes) - editable_fields()
        if unknown:
            raise KeyError(f"not editable: {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(memory, name, str(value))
        self._vectors[memory_id] = build_vector(memory.full_text())
        self.save()
        return memory
