# src/tasklist/tasks/validation.py

"""
Schema-level validation for tasks and storage envelopes.

Validators never raise on bad input: they return Ok(value) with a new,
normalized object, or Err(violations) where each violation reads
"<field>: <message>". ensure_* wrappers turn Err into ValidationError for the
repository write paths.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from .errors import ValidationError
from .task_models import (
    MAX_DESCRIPTION_LENGTH,
    STORAGE_VERSION,
    StorageData,
    StorageMetadata,
    Task,
)

T = TypeVar("T")

_UUID_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)

LONG_DESCRIPTION_WARNING_AT = 400


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err:
    violations: list[str]


Result = Ok[T] | Err


@dataclass(slots=True)
class DescriptionCheck:
    """Inline feedback for a description being typed (errors block, warnings don't)."""

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ---- field checks ----


def is_valid_task_id(task_id: Any) -> bool:
    return isinstance(task_id, str) and _UUID_RE.fullmatch(task_id) is not None


def is_empty_or_whitespace(value: str | None) -> bool:
    return not value or not value.strip()


def sanitize_task_description(description: str) -> str:
    return description.strip()[:MAX_DESCRIPTION_LENGTH]


def _description_errors(description: Any) -> list[str]:
    if not isinstance(description, str):
        return ["Task description must be a string"]
    trimmed = description.strip()
    if not trimmed:
        return ["Task description cannot be empty"]
    if len(trimmed) > MAX_DESCRIPTION_LENGTH:
        return [f"Task description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"]
    return []


def validate_task_description(description: str) -> DescriptionCheck:
    result = DescriptionCheck()
    errors = _description_errors(description)
    if errors:
        result.is_valid = False
        result.errors = errors

    if isinstance(description, str):
        if len(description) > LONG_DESCRIPTION_WARNING_AT:
            result.warnings.append("Task description is getting long")
        if description and description.strip() != description:
            result.warnings.append("Leading or trailing spaces will be removed")
    return result


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


# ---- records ----


def _task_fields(candidate: Task | Mapping[str, Any]) -> tuple[Any, Any, Any, Any] | None:
    if isinstance(candidate, Task):
        return candidate.id, candidate.description, candidate.completed, candidate.created_at
    if isinstance(candidate, Mapping):
        created = candidate.get("created_at", candidate.get("createdAt"))
        return (
            candidate.get("id"),
            candidate.get("description"),
            candidate.get("completed"),
            created,
        )
    return None


def validate_task(candidate: Task | Mapping[str, Any]) -> Result[Task]:
    fields = _task_fields(candidate)
    if fields is None:
        return Err([f"task: expected a Task or mapping, got {type(candidate).__name__}"])

    task_id, description, completed, created_at = fields
    violations: list[str] = []

    if not is_valid_task_id(task_id):
        violations.append("id: Task ID must be a valid UUID")

    violations.extend(f"description: {msg}" for msg in _description_errors(description))

    # bool only; ints like 0/1 are rejected
    if not isinstance(completed, bool):
        violations.append("completed: Expected boolean")

    if not isinstance(created_at, datetime):
        violations.append("created_at: Expected datetime")
    elif not _is_aware(created_at):
        violations.append("created_at: Expected timezone-aware datetime")

    if violations:
        return Err(violations)

    return Ok(
        Task(
            id=task_id,
            description=description.strip(),
            completed=completed,
            created_at=created_at,
        )
    )


def ensure_valid_task(candidate: Task | Mapping[str, Any]) -> Task:
    result = validate_task(candidate)
    if isinstance(result, Err):
        raise ValidationError(result.violations)
    return result.value


def ensure_valid_task_id(task_id: Any) -> str:
    if not is_valid_task_id(task_id):
        raise ValidationError([f"id: Task ID must be a valid UUID (got {task_id!r})"])
    return task_id


# ---- envelopes ----


def _validate_metadata(meta: Any) -> Result[StorageMetadata | None]:
    if meta is None:
        return Ok(None)
    if not isinstance(meta, StorageMetadata):
        return Err([f"metadata: expected StorageMetadata, got {type(meta).__name__}"])

    violations: list[str] = []
    last_updated = meta.last_updated
    if last_updated is not None:
        if not isinstance(last_updated, datetime):
            violations.append("metadata.last_updated: Expected datetime")
        elif not _is_aware(last_updated):
            violations.append("metadata.last_updated: Expected timezone-aware datetime")

    total = meta.total_tasks_created
    if total is not None and (isinstance(total, bool) or not isinstance(total, int) or total < 0):
        violations.append("metadata.total_tasks_created: Expected non-negative integer")

    if meta.app_version is not None and not isinstance(meta.app_version, str):
        violations.append("metadata.app_version: Expected string")

    if violations:
        return Err(violations)

    return Ok(
        StorageMetadata(
            last_updated=last_updated,
            total_tasks_created=total,
            app_version=meta.app_version,
        )
    )


def validate_storage_data(envelope: StorageData) -> Result[StorageData]:
    """Check a native envelope: version literal, every task, unique ids, metadata."""
    if not isinstance(envelope, StorageData):
        return Err([f"storage: expected StorageData, got {type(envelope).__name__}"])

    violations: list[str] = []

    if envelope.version != STORAGE_VERSION:
        violations.append(
            f"version: Invalid literal value, expected {STORAGE_VERSION!r} (got {envelope.version!r})"
        )

    tasks: list[Task] = []
    if not isinstance(envelope.tasks, list):
        violations.append("tasks: Expected array")
    else:
        seen: set[str] = set()
        for i, raw in enumerate(envelope.tasks):
            res = validate_task(raw)
            if isinstance(res, Err):
                violations.extend(f"tasks.{i}.{v}" for v in res.violations)
                continue
            if res.value.id in seen:
                violations.append(f"tasks.{i}.id: Duplicate task id {res.value.id}")
                continue
            seen.add(res.value.id)
            tasks.append(res.value)

    meta_res = _validate_metadata(envelope.metadata)
    if isinstance(meta_res, Err):
        violations.extend(meta_res.violations)

    if violations or isinstance(meta_res, Err):
        return Err(violations)

    return Ok(StorageData(tasks=tasks, version=envelope.version, metadata=meta_res.value))
