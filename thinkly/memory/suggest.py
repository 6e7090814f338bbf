"""Rank past memories against the live draft and order them for display."""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

from thinkly.memory.models import DecisionMemory, DraftMemory, TermVector
from thinkly.memory.vectors import build_vector, similarity

ArchiveView: TypeAlias = Literal["active", "archived"]
DateRange: TypeAlias = Literal["all", "week", "month", "year"]

DAY_MS = 24 * 60 * 60 * 1000
DATE_RANGE_DAYS: dict[str, int | None] = {"all": None, "week": 7, "month": 30, "year": 365}

DEFAULT_THRESHOLD = 2.0
DEFAULT_LIMIT = 3
DEFAULT_RECENCY_DAYS = 30
DEFAULT_RECENCY_BOOST = 1.0


@dataclass(frozen=True, slots=True)
class ScoredMemory:
    """One suggestion candidate."""

    index: int
    similarity: int
    recency: float

    @property
    def score(self) -> float:
        return self.similarity + self.recency


def score_memories(
    draft: DraftMemory,
    memories: Sequence[DecisionMemory],
    vectors: Mapping[str, TermVector],
    now_ms: int,
    *,
    recency_days: int = DEFAULT_RECENCY_DAYS,
    recency_boost: float = DEFAULT_RECENCY_BOOST,
) -> list[ScoredMemory]:
    """Score every memory in store order. Empty draft query scores nothing."""
    query = build_vector(draft.query_text())
    if not query:
        return []
    window_ms = recency_days * DAY_MS
    scored: list[ScoredMemory] = []
    for index, memory in enumerate(memories):
        sim = similarity(query, vectors.get(memory.id) or {})
        recency = recency_boost if now_ms - memory.created_at <= window_ms else 0.0
        scored.append(ScoredMemory(index=index, similarity=sim, recency=recency))
    return scored


def suggest(
    draft: DraftMemory,
    memories: Sequence[DecisionMemory],
    vectors: Mapping[str, TermVector],
    now_ms: int,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
    recency_days: int = DEFAULT_RECENCY_DAYS,
    recency_boost: float = DEFAULT_RECENCY_BOOST,
) -> list[int]:
    """Indices into ``memories`` of the best matches, best first, at most ``limit``."""
    scored = score_memories(
        draft,
        memories,
        vectors,
        now_ms,
        recency_days=recency_days,
        recency_boost=recency_boost,
    )
    kept = [s for s in scored if s.score > threshold]
    # sorted() is stable: equal scores keep store order.
    kept = sorted(kept, key=lambda s: s.score, reverse=True)
    return [s.index for s in kept[: max(0, limit)]]


def display_order(
    count: int,
    selected: Collection[int],
    suggested: Collection[int],
) -> list[int]:
    """Selected first, then suggested-but-not-selected, then the rest; store order within each."""
    chosen = set(selected)
    hinted = set(suggested) - chosen
    first = [i for i in range(count) if i in chosen]
    second = [i for i in range(count) if i in hinted]
    rest = [i for i in range(count) if i not in chosen and i not in hinted]
    return first + second + rest


def is_within_range(created_at: int, date_range: DateRange, now_ms: int) -> bool:
    days = DATE_RANGE_DAYS.get(date_range)
    if days is None:
        return True
    return now_ms - created_at <= days * DAY_MS


def is_visible(
    memory: DecisionMemory,
    *,
    now_ms: int,
    search: str = "",
    view: ArchiveView = "active",
    date_range: DateRange = "all",
) -> bool:
    haystack = f"{memory.decision} {memory.reasoning} {memory.constraints}".lower()
    if search and search.lower() not in haystack:
        return False
    if (view == "archived") != memory.archived:
        return False
    return is_within_range(memory.created_at, date_range, now_ms)


def visible_indices(
    memories: Sequence[DecisionMemory],
    order: Sequence[int],
    *,
    now_ms: int,
    search: str = "",
    view: ArchiveView = "active",
    date_range: DateRange = "all",
) -> list[int]:
    """Filter a display order down to the memories the sidebar should show."""
    return [
        index
        for index in order
        if 0 <= index < len(memories)
        and is_visible(
            memories[index],
            now_ms=now_ms,
            search=search,
            view=view,
            date_range=date_range,
        )
    ]
