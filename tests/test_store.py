import json
from pathlib import Path

import pytest

from tests.conftest import FakeClock, ScriptedProvider
from thinkly.memory.models import DraftMemory
from thinkly.memory.storage import InMemoryStorage, JsonFileStorage
from thinkly.memory.store import MEMORIES_KEY, VECTORS_KEY, MemoryStore
from thinkly.memory.suggest import suggest
from thinkly.memory.summarizer import SUMMARY_PLACEHOLDER, DecisionSummarizer
from thinkly.providers.base import ServiceUnavailableError
from thinkly.providers.generation import GenerationService


async def test_create_with_only_constraints_succeeds(store: MemoryStore, storage: InMemoryStorage) -> None:
    memory = await store.create(DraftMemory(constraints="Budget is capped at 2000 euros"))

    assert memory is not None
    assert memory.constraints == "Budget is capped at 2000 euros"
    assert memory.decision == ""
    assert memory.summary == SUMMARY_PLACEHOLDER
    assert store.vectors[memory.id] == {"budget": 1, "capped": 1, "2000": 1, "euros": 1}

    stored = json.loads(storage.data[MEMORIES_KEY])
    assert stored[0]["id"] == memory.id
    assert stored[0]["createdAt"] == memory.created_at
    assert json.loads(storage.data[VECTORS_KEY]) == [{"id": memory.id, "vector": store.vectors[memory.id]}]


async def test_create_rejects_empty_draft(store: MemoryStore, storage: InMemoryStorage) -> None:
    assert await store.create(DraftMemory(decision="   ")) is None
    assert store.memories == []
    assert storage.writes == 0


async def test_create_prepends_and_keeps_timestamps_monotonic(storage: InMemoryStorage) -> None:
    clock = FakeClock(10_000)
    store = MemoryStore(storage, clock=clock)

    first = await store.create(DraftMemory(decision="first"))
    clock.now = 5_000  # wall clock went backwards
    second = await store.create(DraftMemory(decision="second"))

    assert [m.decision for m in store.memories] == ["second", "first"]
    assert second.created_at >= first.created_at
    assert second.id != first.id


async def test_create_uses_generated_summary() -> None:
    provider = ScriptedProvider(lambda system, user: "  Decided to   stay in Lisbon.  ")
    summarizer = DecisionSummarizer(GenerationService(provider=provider))
    store = MemoryStore(InMemoryStorage(), summarizer=summarizer)

    memory = await store.create(DraftMemory(decision="Stay in Lisbon"))

    assert memory.summary == "Decided to stay in Lisbon."
    assert "Stay in Lisbon" in provider.calls[0][1]


async def test_summary_falls_back_when_service_is_down() -> None:
    def handler(system: str, user: str) -> str:
        raise ServiceUnavailableError("connection refused")

    summarizer = DecisionSummarizer(GenerationService(provider=ScriptedProvider(handler)))
    store = MemoryStore(InMemoryStorage(), summarizer=summarizer)

    memory = await store.create(DraftMemory(decision="Stay in Lisbon"))

    assert memory is not None
    assert memory.summary == SUMMARY_PLACEHOLDER


async def test_delete_removes_memory_and_vector(store: MemoryStore, clock: FakeClock) -> None:
    kept = await store.create(DraftMemory(decision="Move to Berlin for the career"))
    doomed = await store.create(DraftMemory(decision="Berlin apartment near the career fair"))

    assert store.delete(doomed.id) is True
    assert store.delete(doomed.id) is False

    assert [m.id for m in store.memories] == [kept.id]
    assert doomed.id not in store.vectors
    draft = DraftMemory(decision="Berlin career apartment")
    indices = suggest(draft, store.memories, store.vectors, clock())
    assert all(store.memories[i].id != doomed.id for i in indices)


async def test_archive_and_update(store: MemoryStore) -> None:
    memory = await store.create(DraftMemory(decision="Buy the used bike"))
    assert store.index_of(memory.id) == 0
    assert store.index_of("missing") is None

    assert store.archive(memory.id) is True
    assert store.get(memory.id).archived is True
    assert store.archive(memory.id, archived=False) is True
    assert store.get(memory.id).archived is False
    assert store.archive("missing") is False

    updated = store.update(memory.id, reasoning="cheaper repairs", summary="Bought a bike.")
    assert updated.reasoning == "cheaper repairs"
    assert store.vectors[memory.id]["cheaper"] == 1
    assert updated.created_at == memory.created_at

    with pytest.raises(KeyError):
        store.update(memory.id, created_at="0")


def test_corrupt_memories_start_empty() -> None:
    storage = InMemoryStorage({MEMORIES_KEY: "{not json", VECTORS_KEY: '[{"id": "a", "vector": {"x": 1}}]'})
    store = MemoryStore(storage)

    memories, vectors = store.load()

    assert memories == []
    # Vectors without a memory are orphans and dropped.
    assert vectors == {}


@pytest.mark.parametrize(
    "raw",
    [
        '[{"id": "a", "createdAt": Infinity}]',
        '[{"id": "a", "createdAt": 1e400}]',
        '[{"id": "a", "createdAt": NaN}]',
        "[" * 100_000 + "]" * 100_000,
    ],
)
def test_unusable_memories_start_empty(raw: str) -> None:
    store = MemoryStore(InMemoryStorage({MEMORIES_KEY: raw}))
    assert store.memories == []


def test_undecodable_memories_file_starts_empty(tmp_path: Path) -> None:
    (tmp_path / f"{MEMORIES_KEY}.json").write_bytes(b"\xff\xfe[{]")
    (tmp_path / f"{VECTORS_KEY}.json").write_text('[{"id": "a", "vector": {"x": 1}}]')

    memories, vectors = MemoryStore(JsonFileStorage(tmp_path)).load()

    assert memories == []
    assert vectors == {}


def test_json_file_storage_failed_write_leaves_no_temp_file(tmp_path: Path, monkeypatch) -> None:
    storage = JsonFileStorage(tmp_path)
    storage.save("key", "[]")

    def fail_replace(src, dst) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("thinkly.memory.storage.os.replace", fail_replace)
    with pytest.raises(OSError):
        storage.save("key", "[1]")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["key.json"]
    assert storage.load("key") == "[]"


def test_corrupt_vectors_do_not_affect_memories() -> None:
    memories = [{"id": "a", "decision": "Take the job", "createdAt": 1, "archived": False}]
    storage = InMemoryStorage({MEMORIES_KEY: json.dumps(memories), VECTORS_KEY: '{"oops": true}'})
    store = MemoryStore(storage)

    loaded, vectors = store.load()

    assert [m.id for m in loaded] == ["a"]
    assert vectors == {}


def test_malformed_record_discards_collection() -> None:
    storage = InMemoryStorage({MEMORIES_KEY: json.dumps([{"decision": "no id", "createdAt": 1}])})
    assert MemoryStore(storage).memories == []


def test_duplicate_ids_keep_first() -> None:
    rows = [
        {"id": "a", "decision": "newer", "createdAt": 2},
        {"id": "a", "decision": "older", "createdAt": 1},
    ]
    store = MemoryStore(InMemoryStorage({MEMORIES_KEY: json.dumps(rows)}))
    assert [m.decision for m in store.memories] == ["newer"]


async def test_json_file_storage_round_trip(tmp_path: Path) -> None:
    store = MemoryStore(JsonFileStorage(tmp_path))
    memory = await store.create(DraftMemory(decision="Learn piano", reasoning="always wanted to"))

    assert (tmp_path / f"{MEMORIES_KEY}.json").exists()
    assert (tmp_path / f"{VECTORS_KEY}.json").exists()

    reloaded = MemoryStore(JsonFileStorage(tmp_path))
    assert reloaded.memories == [memory]
    assert reloaded.vectors == {memory.id: {"learn": 1, "piano": 1, "always": 1, "wanted": 1}}


def test_json_file_storage_missing_key_is_none(tmp_path: Path) -> None:
    assert JsonFileStorage(tmp_path / "nested").load("anything") is None
