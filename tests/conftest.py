# tests/conftest.py

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tasklist.config import Settings
from tasklist.tasks.memory_repository import MemoryTaskRepository
from tasklist.tasks.persistent_repository import PersistentTaskRepository
from tasklist.tasks.task_models import Task

from .fakes import FlakyKeyValueStore

MILK_ID = "c1f2a3b4-5d6e-4f70-8a9b-0c1d2e3f4a5b"
MILK_CREATED = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def milk_task() -> Task:
    return Task(id=MILK_ID, description="Buy milk", completed=False, created_at=MILK_CREATED)


@pytest.fixture()
def make_task() -> Callable[..., Task]:
    """Factory for valid tasks with deterministic, distinct timestamps."""
    counter = {"n": 0}

    def _make(description: str = "task", *, completed: bool = False) -> Task:
        counter["n"] += 1
        task = Task.new(description, completed=completed)
        task.created_at = datetime(2024, 1, 1, 9, 0, counter["n"], tzinfo=timezone.utc)
        return task

    return _make


@pytest.fixture()
def memory_repo() -> MemoryTaskRepository:
    return MemoryTaskRepository(rng=random.Random(1234))


@pytest.fixture()
def kv_store() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture()
def persistent_repo(kv_store: FlakyKeyValueStore) -> PersistentTaskRepository:
    return PersistentTaskRepository(kv_store)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a tmp data dir.

    Built directly instead of from env so tests stay isolated and deterministic.
    """
    return Settings(
        app_name="tasklist-test",
        log_level="DEBUG",
        environment="PROD",
        data_dir=tmp_path / "data",
        storage_dir=tmp_path / "data" / "storage",
        storage_key="task-manager-data",
        storage_quota_bytes=0,
    )
