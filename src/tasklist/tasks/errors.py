# src/tasklist/tasks/errors.py

"""
Error taxonomy for the task persistence subsystem.

Caller-visible:
- ValidationError: a record or envelope breaks schema invariants
- NotFoundError: delete/lookup targets an id that does not exist
- QuotaError: the backing store rejected a write (capacity exhausted)
- FaultInjectionError: synthetic failure from the in-memory test backend

Internal:
- CorruptionError: persisted envelope could not be parsed/validated.
  The persistent repository recovers from it; callers never see it.
"""

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(TaskStoreError):
    def __init__(self, violations: list[str] | str) -> None:
        if isinstance(violations, str):
            violations = [violations]
        self.violations: list[str] = list(violations)
        super().__init__("; ".join(self.violations) or "Validation failed")


class CorruptionError(ValidationError):
    """Raised by parse_storage_data; message is 'Invalid storage data: <cause>'."""

    def __init__(self, cause: str) -> None:
        super().__init__([cause])
        self.cause = cause
        self.args = (f"Invalid storage data: {cause}",)

    def __str__(self) -> str:
        return self.args[0]


class NotFoundError(TaskStoreError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class QuotaError(TaskStoreError):
    def __init__(self, message: str = "Storage quota exceeded") -> None:
        super().__init__(message)


class FaultInjectionError(TaskStoreError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Simulated repository error for testing (operation={operation})")
