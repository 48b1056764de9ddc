# src/tasklist/tasks/persistent_repository.py

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.ports import KeyValueStore
from .errors import CorruptionError, NotFoundError, QuotaError
from .storage_codec import create_empty_storage, parse_storage_data, serialize_storage_data
from .task_models import (
    APP_VERSION,
    INVALID_CACHE,
    STORAGE_KEY,
    CacheState,
    StorageData,
    StorageMetadata,
    StorageStats,
    Task,
    ValidCache,
    utc_now,
)
from .validation import ensure_valid_task, ensure_valid_task_id

_module_logger = logging.getLogger(__name__)


def _copy_storage(data: StorageData) -> StorageData:
    return StorageData(
        tasks=list(data.tasks),
        version=data.version,
        metadata=replace(data.metadata) if data.metadata is not None else None,
    )


class PersistentTaskRepository:
    """
    TaskRepository backed by a textual key-value store under one fixed key.

    The whole envelope is read-modified-written on every mutation.

    Read cache:
    - starts INVALID; a successful load or write makes it VALID
    - any failure after a load (write error, quota, not-found) resets it to INVALID,
      so the next operation re-reads the backing store

    Failure policy:
    - corrupted/unreadable data is replaced by a fresh empty envelope (logged, not raised)
    - write failures, QuotaError included, are raised to the caller without retry
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = STORAGE_KEY,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._logger = logger or _module_logger
        self._cache = INVALID_CACHE

    @property
    def key(self) -> str:
        return self._key

    @property
    def cache_state(self) -> CacheState:
        return self._cache

    def invalidate_cache(self) -> None:
        self._cache = INVALID_CACHE

    # ---- load / persist ----

    def _load(self) -> StorageData:
        if isinstance(self._cache, ValidCache):
            return self._cache.envelope

        try:
            raw = self._store.get_item(self._key)
        except Exception:
            self._logger.exception("Failed to read storage key=%s; using empty storage", self._key)
            return self._fresh_storage()

        if raw is None:
            self._logger.debug("No storage data under key=%s; creating empty storage", self._key)
            return self._fresh_storage()

        try:
            data = parse_storage_data(raw)
        except CorruptionError:
            self._logger.exception(
                "Corrupted storage under key=%s; replacing with empty storage", self._key
            )
            return self._fresh_storage()

        self._cache = ValidCache(data)
        self._logger.debug(
            "Storage loaded key=%s tasks=%s version=%s", self._key, len(data.tasks), data.version
        )
        return data

    def _fresh_storage(self) -> StorageData:
        empty = create_empty_storage()
        try:
            return self._persist(empty)
        except Exception:
            # Cache stays INVALID; the next operation retries the backing store.
            self._logger.exception("Failed to persist fresh empty storage key=%s", self._key)
            return empty

    def _persist(self, data: StorageData) -> StorageData:
        meta = data.metadata or StorageMetadata()
        updated = StorageData(
            tasks=list(data.tasks),
            version=data.version,
            metadata=StorageMetadata(
                last_updated=utc_now(),
                total_tasks_created=meta.total_tasks_created or len(data.tasks),
                app_version=APP_VERSION,
            ),
        )
        text = serialize_storage_data(updated)

        try:
            self._store.set_item(self._key, text)
        except QuotaError:
            self._cache = INVALID_CACHE
            self._logger.error(
                "Storage quota exceeded key=%s tasks=%s size=%s",
                self._key,
                len(updated.tasks),
                len(text.encode("utf-8")),
            )
            raise
        except Exception:
            self._cache = INVALID_CACHE
            self._logger.error("Failed to write storage key=%s", self._key, exc_info=True)
            raise

        self._cache = ValidCache(updated)
        self._logger.debug("Storage saved key=%s tasks=%s", self._key, len(updated.tasks))
        return updated

    # ---- TaskRepository ----

    async def find_all(self) -> list[Task]:
        data = self._load()
        return [replace(t) for t in data.tasks]

    async def find_by_id(self, task_id: str) -> Task | None:
        ensure_valid_task_id(task_id)
        data = self._load()
        for t in data.tasks:
            if t.id == task_id:
                return replace(t)
        return None

    async def save(self, task: Task) -> None:
        try:
            validated = ensure_valid_task(task)
            working = _copy_storage(self._load())

            for i, existing in enumerate(working.tasks):
                if existing.id == validated.id:
                    working.tasks[i] = validated
                    self._logger.debug("Task updated id=%s", validated.id)
                    break
            else:
                meta = working.metadata or StorageMetadata()
                meta.total_tasks_created = (meta.total_tasks_created or len(working.tasks)) + 1
                working.metadata = meta
                working.tasks.append(validated)
                self._logger.debug(
                    "Task inserted id=%s total=%s", validated.id, len(working.tasks)
                )

            self._persist(working)
        except Exception:
            self.invalidate_cache()
            raise

    async def delete(self, task_id: str) -> None:
        try:
            ensure_valid_task_id(task_id)
            working = _copy_storage(self._load())

            before = len(working.tasks)
            working.tasks = [t for t in working.tasks if t.id != task_id]
            if len(working.tasks) == before:
                raise NotFoundError(task_id)

            self._persist(working)
            self._logger.debug("Task deleted id=%s remaining=%s", task_id, len(working.tasks))
        except Exception:
            self.invalidate_cache()
            raise

    async def clear(self) -> None:
        try:
            current = self._load()
            old_meta = current.metadata or StorageMetadata()

            fresh = create_empty_storage()
            fresh.metadata = StorageMetadata(
                last_updated=utc_now(),
                total_tasks_created=old_meta.total_tasks_created or 0,
                app_version=old_meta.app_version or APP_VERSION,
            )

            self._persist(fresh)
            self._logger.debug("Tasks cleared count=%s", len(current.tasks))
        except Exception:
            self.invalidate_cache()
            raise

    # ---- maintenance ----

    async def get_storage_stats(self) -> StorageStats:
        data = self._load()
        serialized = serialize_storage_data(data)
        return StorageStats(
            task_count=len(data.tasks),
            storage_size=len(serialized.encode("utf-8")),
            last_updated=data.metadata.last_updated if data.metadata else None,
            version=data.version,
        )

    async def export_data(self) -> str:
        """Serialized envelope, as it would be written (backup/debugging)."""
        return serialize_storage_data(self._load())
