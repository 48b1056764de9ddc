# src/tasklist/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

STORAGE_VERSION = "1.0"
APP_VERSION = "1.0.0"
STORAGE_KEY = "task-manager-data"

MIN_DESCRIPTION_LENGTH = 1
MAX_DESCRIPTION_LENGTH = 500


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Task:
    id: str
    description: str
    completed: bool
    created_at: datetime

    @classmethod
    def new(cls, description: str, *, completed: bool = False) -> Task:
        """Fresh task with a uuid4 id, stamped now (UTC). Not validated."""
        return cls(
            id=str(uuid.uuid4()),
            description=description,
            completed=completed,
            created_at=utc_now(),
        )


@dataclass(slots=True)
class StorageMetadata:
    last_updated: datetime | None = None
    total_tasks_created: int | None = None
    app_version: str | None = None


@dataclass(slots=True)
class StorageData:
    """
    The versioned envelope persisted as a whole.

    Notes:
    - tasks keep insertion order (canonical display order)
    - metadata may be entirely absent (None), which is different from empty metadata
    """

    tasks: list[Task] = field(default_factory=list)
    version: str = STORAGE_VERSION
    metadata: StorageMetadata | None = None


@dataclass(frozen=True, slots=True)
class StorageStats:
    task_count: int
    storage_size: int  # bytes of the serialized envelope (UTF-8)
    last_updated: datetime | None
    version: str


@dataclass(frozen=True, slots=True)
class InvalidCache:
    """Nothing cached; the next read goes to the backing store."""


@dataclass(frozen=True, slots=True)
class ValidCache:
    envelope: StorageData


# Read cache of the persistent repository. A valid cache always holds an envelope.
CacheState = InvalidCache | ValidCache

INVALID_CACHE = InvalidCache()
