from thinkly.memory.models import DecisionMemory, DraftMemory
from thinkly.memory.suggest import (
    DAY_MS,
    display_order,
    is_visible,
    score_memories,
    suggest,
    visible_indices,
)

NOW = 1_700_000_000_000


def _memory(memory_id: str, *, days_ago: float = 1, **fields) -> DecisionMemory:
    return DecisionMemory(id=memory_id, created_at=int(NOW - days_ago * DAY_MS), **fields)


def test_recent_memory_with_two_shared_terms_is_suggested() -> None:
    draft = DraftMemory(decision="move to Berlin", intent="career growth")
    memories = [_memory("a", days_ago=3)]
    vectors = {"a": {"berlin": 1, "career": 1}}

    scored = score_memories(draft, memories, vectors, NOW)

    assert scored[0].similarity == 2
    assert scored[0].score == 3
    assert suggest(draft, memories, vectors, NOW) == [0]


def test_score_equal_to_threshold_is_not_suggested() -> None:
    draft = DraftMemory(decision="move to Berlin", intent="career growth")
    memories = [_memory("old", days_ago=45)]
    vectors = {"old": {"berlin": 1, "career": 1}}

    assert score_memories(draft, memories, vectors, NOW)[0].score == 2
    assert suggest(draft, memories, vectors, NOW) == []


def test_recency_alone_never_suggests() -> None:
    draft = DraftMemory(decision="adopt a rescue greyhound")
    memories = [_memory("a", days_ago=0)]
    vectors = {"a": {"berlin": 3}}

    assert score_memories(draft, memories, vectors, NOW)[0].similarity == 0
    assert suggest(draft, memories, vectors, NOW) == []


def test_alternatives_are_not_part_of_the_query() -> None:
    draft = DraftMemory(alternatives="berlin career berlin career")
    memories = [_memory("a")]
    vectors = {"a": {"berlin": 5, "career": 5}}

    assert suggest(draft, memories, vectors, NOW) == []


def test_missing_vector_counts_as_empty() -> None:
    draft = DraftMemory(decision="berlin career growth")
    assert suggest(draft, [_memory("a")], {}, NOW) == []


def test_results_ranked_by_score_with_store_order_ties_and_limit() -> None:
    draft = DraftMemory(decision="berlin career growth salary")
    memories = [_memory(f"m{i}", days_ago=60) for i in range(5)]
    vectors = {
        "m0": {"berlin": 1, "career": 1, "growth": 1},
        "m1": {"berlin": 1, "career": 1, "growth": 1, "salary": 1},
        "m2": {"berlin": 1, "career": 1, "growth": 1},
        "m3": {"berlin": 1},
        "m4": {"berlin": 1, "career": 1, "growth": 1},
    }

    assert suggest(draft, memories, vectors, NOW) == [1, 0, 2]
    assert suggest(draft, memories, vectors, NOW, limit=5) == [1, 0, 2, 4]


def test_empty_draft_suggests_nothing() -> None:
    assert suggest(DraftMemory(), [_memory("a")], {"a": {"berlin": 9}}, NOW) == []


def test_display_order_puts_selected_then_suggested_then_rest() -> None:
    assert display_order(6, selected=[4, 1], suggested=[5, 1, 2]) == [1, 4, 2, 5, 0, 3]
    assert display_order(3, selected=[], suggested=[]) == [0, 1, 2]


def test_visibility_filters() -> None:
    recent = _memory("r", days_ago=2, decision="Rent a flat", reasoning="Closer to WORK")
    old = _memory("o", days_ago=200, decision="Sell the car", constraints="insurance")
    shelved = _memory("s", days_ago=1, decision="Quit running", archived=True)
    memories = [recent, old, shelved]

    assert visible_indices(memories, [0, 1, 2], now_ms=NOW) == [0, 1]
    assert visible_indices(memories, [2, 1, 0], now_ms=NOW, view="archived") == [2]
    assert visible_indices(memories, [0, 1, 2], now_ms=NOW, date_range="week") == [0]
    assert visible_indices(memories, [0, 1, 2], now_ms=NOW, date_range="year") == [0, 1]
    assert visible_indices(memories, [1, 0], now_ms=NOW, search="work") == [0]
    assert is_visible(old, now_ms=NOW, search="INSURANCE")
    assert not is_visible(old, now_ms=NOW, search="boat")
