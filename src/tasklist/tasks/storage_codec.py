# src/tasklist/tasks/storage_codec.py

"""
Versioned storage envelope <-> JSON text.

Wire format (single JSON value under one key):
    {
      "tasks": [{"id", "description", "completed", "createdAt"}],
      "version": "1.0",
      "metadata": {"lastUpdated", "totalTasksCreated", "appVersion"}   # optional
    }

Timestamps travel as ISO-8601 UTC strings with a "Z" suffix.
parse_storage_data checks the serialized shape, converts timestamps,
then re-validates the native envelope with the same rules used on writes.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any

from .errors import CorruptionError
from .task_models import (
    APP_VERSION,
    STORAGE_VERSION,
    StorageData,
    StorageMetadata,
    Task,
    utc_now,
)
from .validation import Err, validate_storage_data

_ISO_UTC_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?Z",
    re.ASCII,
)


class _ShapeError(Exception):
    pass


def create_empty_storage() -> StorageData:
    return StorageData(
        tasks=[],
        version=STORAGE_VERSION,
        metadata=StorageMetadata(
            last_updated=utc_now(),
            total_tasks_created=0,
            app_version=APP_VERSION,
        ),
    )


# ---- timestamps ----


def format_timestamp(value: datetime) -> str:
    """2024-01-01T10:00:00.000Z; microseconds are kept when they are not whole ms."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Naive datetime {value!r} has no UTC offset")
    value = value.astimezone(timezone.utc)
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    return value.replace(tzinfo=None).isoformat(timespec=timespec) + "Z"


def parse_timestamp(raw: str) -> datetime:
    m = _ISO_UTC_RE.fullmatch(raw)
    if m is None:
        raise ValueError(f"Invalid datetime {raw!r}")
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    frac = m.group(7) or ""
    micro = int(frac[:6].ljust(6, "0")) if frac else 0
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=timezone.utc)


# ---- serialize ----


def _metadata_to_json(meta: StorageMetadata) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if meta.last_updated is not None:
        out["lastUpdated"] = format_timestamp(meta.last_updated)
    if meta.total_tasks_created is not None:
        out["totalTasksCreated"] = meta.total_tasks_created
    if meta.app_version is not None:
        out["appVersion"] = meta.app_version
    return out


def serialize_storage_data(storage: StorageData) -> str:
    payload: dict[str, Any] = {
        "tasks": [
            {
                "id": t.id,
                "description": t.description,
                "completed": t.completed,
                "createdAt": format_timestamp(t.created_at),
            }
            for t in storage.tasks
        ],
        "version": storage.version,
    }
    if storage.metadata is not None:
        payload["metadata"] = _metadata_to_json(storage.metadata)
    return json.dumps(payload, ensure_ascii=False, indent=2)


# ---- parse ----


def _require_timestamp(obj: dict[str, Any], key: str, where: str) -> datetime:
    raw = obj[key]
    if not isinstance(raw, str):
        raise _ShapeError(f"{where}.{key}: Expected string, received {type(raw).__name__}")
    try:
        return parse_timestamp(raw)
    except ValueError:
        raise _ShapeError(f"{where}.{key}: Invalid datetime") from None


def _task_from_json(item: Any, i: int) -> Task:
    where = f"tasks.{i}"
    if not isinstance(item, dict):
        raise _ShapeError(f"{where}: Expected object")
    for key, typ, label in (
        ("id", str, "string"),
        ("description", str, "string"),
        ("completed", bool, "boolean"),
    ):
        if key not in item:
            raise _ShapeError(f"{where}.{key}: Required")
        if not isinstance(item[key], typ):
            raise _ShapeError(f"{where}.{key}: Expected {label}")
    if "createdAt" not in item:
        raise _ShapeError(f"{where}.createdAt: Required")

    return Task(
        id=item["id"],
        description=item["description"],
        completed=item["completed"],
        created_at=_require_timestamp(item, "createdAt", where),
    )


def _metadata_from_json(raw: Any) -> StorageMetadata:
    if not isinstance(raw, dict):
        raise _ShapeError("metadata: Expected object")

    meta = StorageMetadata()
    if "lastUpdated" in raw:
        meta.last_updated = _require_timestamp(raw, "lastUpdated", "metadata")

    if "totalTasksCreated" in raw:
        total = raw["totalTasksCreated"]
        if isinstance(total, float) and total.is_integer():
            total = int(total)
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise _ShapeError("metadata.totalTasksCreated: Expected non-negative integer")
        meta.total_tasks_created = total

    if "appVersion" in raw:
        if not isinstance(raw["appVersion"], str):
            raise _ShapeError("metadata.appVersion: Expected string")
        meta.app_version = raw["appVersion"]

    return meta


def _storage_from_json(parsed: Any) -> StorageData:
    if not isinstance(parsed, dict):
        raise _ShapeError("Expected object at top level")

    version = parsed.get("version")
    if version != STORAGE_VERSION:
        raise _ShapeError(f"version: Invalid literal value, expected {STORAGE_VERSION!r}")

    tasks = parsed.get("tasks")
    if not isinstance(tasks, list):
        raise _ShapeError("tasks: Expected array")

    metadata = _metadata_from_json(parsed["metadata"]) if "metadata" in parsed else None

    return StorageData(
        tasks=[_task_from_json(item, i) for i, item in enumerate(tasks)],
        version=version,
        metadata=metadata,
    )


def parse_storage_data(text: str) -> StorageData:
    """
    Parse untrusted JSON text into a validated envelope.

    Raises CorruptionError("Invalid storage data: <cause>") on malformed JSON,
    a wrong version literal, malformed timestamps or any invalid task.
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        # RecursionError: deeply nested arrays/objects
        raise CorruptionError(str(e) or type(e).__name__) from e

    try:
        storage = _storage_from_json(parsed)
    except _ShapeError as e:
        raise CorruptionError(str(e)) from None

    result = validate_storage_data(storage)
    if isinstance(result, Err):
        raise CorruptionError("; ".join(result.violations))
    return result.value
