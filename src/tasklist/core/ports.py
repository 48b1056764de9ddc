# src/tasklist/core/ports.py

"""
Ports (interfaces) used by task repositories and their callers.

Callers depend on Protocols instead of concrete implementations, so the
in-memory and the persistent repository stay interchangeable.
"""

from __future__ import annotations

from typing import Protocol

from ..tasks.task_models import Task


class KeyValueStore(Protocol):
    """
    Textual key-value store (localStorage-like).

    set_item raises tasklist.tasks.errors.QuotaError when capacity is exhausted;
    any other failure propagates as-is.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class TaskRepository(Protocol):
    """
    Storage contract shared by MemoryTaskRepository and PersistentTaskRepository.

    - find_all: independent copies in display order
    - save: validate, then upsert by id (replace in place or append)
    - delete: NotFoundError if the id is absent, collection untouched
    - clear: drop every task
    """

    async def find_all(self) -> list[Task]: ...
    async def find_by_id(self, task_id: str) -> Task | None: ...
    async def save(self, task: Task) -> None: ...
    async def delete(self, task_id: str) -> None: ...
    async def clear(self) -> None: ...
