# src/tasklist/cli/bootstrap.py

"""
Composition root.

- loads settings once (or takes them injected),
- ensures local (gitignored) directories exist,
- picks the repository implementation for the environment:
  TEST -> MemoryTaskRepository, PROD -> PersistentTaskRepository over a FileKeyValueStore.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import TaskRepository
from ..storage.kv_store import FileKeyValueStore
from ..tasks.memory_repository import MemoryTaskRepository
from ..tasks.persistent_repository import PersistentTaskRepository

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_dir.mkdir(parents=True, exist_ok=True)


def create_task_repository(
    settings: Settings | None = None,
    *,
    logger: logging.Logger | None = None,
) -> TaskRepository:
    """
    Build the TaskRepository for settings.environment.

    The logger is handed to the repository as-is; when None, each repository
    uses its own module logger.
    """
    if settings is None:
        settings = get_settings()

    if settings.environment == "TEST":
        repo: TaskRepository = MemoryTaskRepository(logger=logger)
        _log_wiring(settings, "MemoryTaskRepository")
        return repo

    _ensure_local_dirs(settings)
    store = FileKeyValueStore(settings.storage_dir, quota_bytes=settings.quota)
    repo = PersistentTaskRepository(store, key=settings.storage_key, logger=logger)
    _log_wiring(settings, "PersistentTaskRepository")
    return repo


def _log_wiring(settings: Settings, repository: str) -> None:
    logger.info(
        "Task repository configured env=%s repository=%s storage_dir=%s",
        settings.environment,
        repository,
        settings.storage_dir,
    )
