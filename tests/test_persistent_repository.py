# tests/test_persistent_repository.py

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from tasklist.storage.kv_store import FileKeyValueStore, InMemoryKeyValueStore
from tasklist.tasks.errors import NotFoundError, QuotaError, ValidationError
from tasklist.tasks.persistent_repository import PersistentTaskRepository
from tasklist.tasks.storage_codec import parse_storage_data
from tasklist.tasks.task_models import STORAGE_KEY, InvalidCache, StorageData, ValidCache

from .conftest import MILK_ID
from .fakes import FlakyKeyValueStore


def _stored(store) -> StorageData:
    raw = store.get_item(STORAGE_KEY)
    assert raw is not None
    return parse_storage_data(raw)


@pytest.mark.asyncio
async def test_first_access_persists_empty_envelope(persistent_repo, kv_store) -> None:
    assert kv_store.get_item(STORAGE_KEY) is None

    assert await persistent_repo.find_all() == []

    stored = _stored(kv_store)
    assert stored.tasks == []
    assert stored.version == "1.0"
    assert stored.metadata is not None
    assert stored.metadata.total_tasks_created == 0
    assert isinstance(persistent_repo.cache_state, ValidCache)


@pytest.mark.asyncio
async def test_example_scenario(persistent_repo, kv_store, milk_task) -> None:
    await persistent_repo.save(milk_task)

    assert await persistent_repo.find_all() == [milk_task]
    payload = json.loads(kv_store.get_item(STORAGE_KEY))
    assert payload["tasks"][0]["createdAt"] == "2024-01-01T10:00:00.000Z"
    assert payload["version"] == "1.0"


@pytest.mark.asyncio
async def test_upsert_growth_and_replace(persistent_repo, make_task) -> None:
    a, b = make_task("a"), make_task("b")
    await persistent_repo.save(a)
    await persistent_repo.save(b)
    assert len(await persistent_repo.find_all()) == 2

    await persistent_repo.save(replace(a, description="a2", completed=True))

    tasks = await persistent_repo.find_all()
    assert [t.id for t in tasks] == [a.id, b.id]
    assert tasks[0].description == "a2"
    assert tasks[0].completed is True
    assert tasks[1] == b


@pytest.mark.asyncio
async def test_data_survives_a_new_repository_instance(kv_store, make_task) -> None:
    first = PersistentTaskRepository(kv_store)
    tasks = [make_task(str(i)) for i in range(3)]
    for t in tasks:
        await first.save(t)

    second = PersistentTaskRepository(kv_store)
    assert await second.find_all() == tasks


@pytest.mark.asyncio
async def test_file_store_round_trip(tmp_path: Path, milk_task) -> None:
    store = FileKeyValueStore(tmp_path / "storage")
    await PersistentTaskRepository(store).save(milk_task)

    reopened = PersistentTaskRepository(FileKeyValueStore(tmp_path / "storage"))
    assert await reopened.find_all() == [milk_task]
    assert (tmp_path / "storage" / f"{STORAGE_KEY}.json").exists()


@pytest.mark.asyncio
async def test_total_counter_counts_inserts_only(persistent_repo, kv_store, make_task) -> None:
    tasks = [make_task(str(i)) for i in range(3)]
    for t in tasks:
        await persistent_repo.save(t)
    await persistent_repo.save(replace(tasks[0], completed=True))
    await persistent_repo.delete(tasks[2].id)

    meta = _stored(kv_store).metadata
    assert meta is not None
    assert meta.total_tasks_created == 3
    assert meta.app_version == "1.0.0"
    assert meta.last_updated is not None


@pytest.mark.asyncio
async def test_clear_empties_but_keeps_history(persistent_repo, kv_store, make_task) -> None:
    for i in range(3):
        await persistent_repo.save(make_task(str(i)))

    await persistent_repo.clear()

    assert await persistent_repo.find_all() == []
    meta = _stored(kv_store).metadata
    assert meta is not None
    assert meta.total_tasks_created == 3

    await persistent_repo.save(make_task("after"))
    assert _stored(kv_store).metadata.total_tasks_created == 4


@pytest.mark.asyncio
async def test_counter_starts_from_task_count_for_legacy_envelope(kv_store, make_task) -> None:
    a, b = make_task("a"), make_task("b")
    legacy = {
        "tasks": [
            {"id": t.id, "description": t.description, "completed": False, "createdAt": "2023-05-05T05:05:05.000Z"}
            for t in (a, b)
        ],
        "version": "1.0",
    }
    kv_store.set_item(STORAGE_KEY, json.dumps(legacy))

    repo = PersistentTaskRepository(kv_store)
    await repo.save(make_task("c"))

    assert _stored(kv_store).metadata.total_tasks_created == 3


@pytest.mark.asyncio
async def test_delete_removes_exactly_one(persistent_repo, make_task) -> None:
    tasks = [make_task(str(i)) for i in range(4)]
    for t in tasks:
        await persistent_repo.save(t)

    await persistent_repo.delete(tasks[2].id)

    assert await persistent_repo.find_all() == [tasks[0], tasks[1], tasks[3]]


@pytest.mark.asyncio
async def test_delete_missing_fails_closed(persistent_repo, kv_store, make_task) -> None:
    await persistent_repo.save(make_task("keep"))
    before = await persistent_repo.find_all()
    raw_before = kv_store.get_item(STORAGE_KEY)

    with pytest.raises(NotFoundError):
        await persistent_repo.delete(MILK_ID)

    assert await persistent_repo.find_all() == before
    assert kv_store.get_item(STORAGE_KEY) == raw_before


@pytest.mark.asyncio
async def test_invalid_input_is_rejected(persistent_repo, kv_store, make_task) -> None:
    await persistent_repo.find_all()
    raw_before = kv_store.get_item(STORAGE_KEY)

    with pytest.raises(ValidationError):
        await persistent_repo.save(make_task(""))
    with pytest.raises(ValidationError):
        await persistent_repo.delete("not-an-id")
    with pytest.raises(ValidationError):
        await persistent_repo.find_by_id("not-an-id")

    assert kv_store.get_item(STORAGE_KEY) == raw_before


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "corrupted",
    [
        "not json",
        '{"tasks":"nope"}',
        '{"tasks":[],"version":"2.0"}',
        '{"tasks":[{"id":"x"}],"version":"1.0"}',
        "[" * 200_000 + "]" * 200_000,
    ],
    ids=["not-json", "tasks-not-array", "wrong-version", "bad-task", "deeply-nested"],
)
async def test_corruption_self_heals(kv_store, corrupted: str, milk_task) -> None:
    kv_store.set_item(STORAGE_KEY, corrupted)
    repo = PersistentTaskRepository(kv_store)

    assert await repo.find_all() == []
    assert _stored(kv_store).tasks == []

    await repo.save(milk_task)
    assert await repo.find_all() == [milk_task]


@pytest.mark.asyncio
async def test_cache_serves_reads_until_invalidated(persistent_repo, kv_store) -> None:
    await persistent_repo.find_all()
    await persistent_repo.find_all()
    assert kv_store.reads == 1

    persistent_repo.invalidate_cache()
    assert isinstance(persistent_repo.cache_state, InvalidCache)

    await persistent_repo.find_all()
    assert kv_store.reads == 2


@pytest.mark.asyncio
async def test_write_failure_invalidates_cache_and_propagates(persistent_repo, kv_store, make_task) -> None:
    kept = make_task("kept")
    await persistent_repo.save(kept)
    reads = kv_store.reads

    kv_store.fail_writes = True
    with pytest.raises(OSError):
        await persistent_repo.save(make_task("lost"))
    assert isinstance(persistent_repo.cache_state, InvalidCache)

    kv_store.fail_writes = False
    assert await persistent_repo.find_all() == [kept]
    assert kv_store.reads == reads + 1


@pytest.mark.asyncio
async def test_quota_error_propagates_without_retry(make_task) -> None:
    store = FlakyKeyValueStore(quota_bytes=400)
    repo = PersistentTaskRepository(store)

    small = make_task("small")
    await repo.save(small)
    writes = store.writes

    with pytest.raises(QuotaError):
        await repo.save(make_task("x" * 500))

    assert store.writes == writes + 1
    assert isinstance(repo.cache_state, InvalidCache)
    assert await repo.find_all() == [small]


@pytest.mark.asyncio
async def test_read_failure_yields_empty_list(kv_store, milk_task) -> None:
    await PersistentTaskRepository(kv_store).save(milk_task)
    kv_store.fail_reads = True

    repo = PersistentTaskRepository(kv_store)
    assert await repo.find_all() == []


@pytest.mark.asyncio
async def test_unwritable_store_still_loads_empty() -> None:
    store = FlakyKeyValueStore()
    store.fail_writes = True
    repo = PersistentTaskRepository(store)

    assert await repo.find_all() == []
    assert isinstance(repo.cache_state, InvalidCache)


@pytest.mark.asyncio
async def test_find_by_id_returns_copy(persistent_repo, milk_task) -> None:
    await persistent_repo.save(milk_task)

    found = await persistent_repo.find_by_id(MILK_ID)
    assert found == milk_task
    found.description = "changed"

    assert (await persistent_repo.find_by_id(MILK_ID)).description == "Buy milk"
    assert await persistent_repo.find_by_id("0b6a1a8e-2f0c-4c9e-9d3b-7c1e5f2a4b6d") is None


@pytest.mark.asyncio
async def test_stats_and_export(persistent_repo, milk_task) -> None:
    await persistent_repo.save(milk_task)

    stats = await persistent_repo.get_storage_stats()
    exported = await persistent_repo.export_data()

    assert stats.task_count == 1
    assert stats.version == "1.0"
    assert stats.last_updated is not None
    assert stats.storage_size == len(exported.encode("utf-8"))
    assert parse_storage_data(exported).tasks == [milk_task]


@pytest.mark.asyncio
async def test_custom_key_is_isolated(milk_task) -> None:
    store = InMemoryKeyValueStore()
    repo = PersistentTaskRepository(store, key="other-list")
    await repo.save(milk_task)

    assert store.keys() == ["other-list"]
    assert await PersistentTaskRepository(store).find_all() == []
