# src/tasklist/tasks/memory_repository.py

from __future__ import annotations

import logging
import random
from dataclasses import replace

from .errors import FaultInjectionError, NotFoundError
from .task_models import Task
from .validation import ensure_valid_task, ensure_valid_task_id

_module_logger = logging.getLogger(__name__)


class MemoryTaskRepository:
    """
    In-memory TaskRepository used by tests and the TEST composition.

    Tasks live in an ordered list (insertion order == display order).
    Every read returns copies, so callers cannot mutate internal state.

    Fault injection:
    - enable_fault_injection(True, rate) makes each operation fail with
      FaultInjectionError with probability `rate` before doing any work
    - reset() clears tasks and disables fault injection
    """

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._tasks: list[Task] = []
        self._logger = logger or _module_logger
        self._rng = rng or random.Random()
        self._fault_injection = False
        self._fault_rate = 0.0

    # ---- fault injection ----

    def enable_fault_injection(self, enabled: bool, rate: float = 0.1) -> None:
        self._fault_injection = bool(enabled)
        self._fault_rate = max(0.0, min(1.0, float(rate)))
        self._logger.debug(
            "Fault injection configured enabled=%s rate=%s", self._fault_injection, self._fault_rate
        )

    @property
    def fault_rate(self) -> float:
        return self._fault_rate if self._fault_injection else 0.0

    def _maybe_fail(self, operation: str) -> None:
        if self._fault_injection and self._rng.random() < self._fault_rate:
            self._logger.debug("Injected fault op=%s", operation)
            raise FaultInjectionError(operation)

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    # ---- TaskRepository ----

    async def find_all(self) -> list[Task]:
        self._maybe_fail("find_all")
        return [replace(t) for t in self._tasks]

    async def find_by_id(self, task_id: str) -> Task | None:
        self._maybe_fail("find_by_id")
        ensure_valid_task_id(task_id)
        idx = self._index_of(task_id)
        return replace(self._tasks[idx]) if idx >= 0 else None

    async def save(self, task: Task) -> None:
        self._maybe_fail("save")
        validated = ensure_valid_task(task)

        idx = self._index_of(validated.id)
        if idx >= 0:
            self._tasks[idx] = validated
            self._logger.debug("Task updated id=%s", validated.id)
        else:
            self._tasks.append(validated)
            self._logger.debug("Task inserted id=%s total=%s", validated.id, len(self._tasks))

    async def delete(self, task_id: str) -> None:
        self._maybe_fail("delete")
        ensure_valid_task_id(task_id)

        idx = self._index_of(task_id)
        if idx < 0:
            self._logger.debug("Delete of missing task id=%s", task_id)
            raise NotFoundError(task_id)

        del self._tasks[idx]
        self._logger.debug("Task deleted id=%s remaining=%s", task_id, len(self._tasks))

    async def clear(self) -> None:
        self._maybe_fail("clear")
        cleared = len(self._tasks)
        self._tasks = []
        self._logger.debug("Tasks cleared count=%s", cleared)

    # ---- test helpers (no fault injection) ----

    def task_count(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return replace(self._tasks[idx]) if idx >= 0 else None

    def reset(self) -> None:
        self._tasks = []
        self._fault_injection = False
        self._fault_rate = 0.0
        self._logger.debug("MemoryTaskRepository reset")
