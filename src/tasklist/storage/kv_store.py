# src/tasklist/storage/kv_store.py

"""
Textual key-value stores backing PersistentTaskRepository.

- InMemoryKeyValueStore: dict-backed, optional byte quota (tests, demos)
- FileKeyValueStore: one JSON file per key under a directory (production)

Quota accounting uses the UTF-8 size of every stored value.
"""

from __future__ import annotations

import contextlib
import errno
import logging
import os
import re
from pathlib import Path

from ..tasks.errors import QuotaError

logger = logging.getLogger(__name__)

_SAFE_KEY_RE = re.compile(r"[A-Za-z0-9._-]+")
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _size(value: str) -> int:
    return len(value.encode("utf-8"))


class InMemoryKeyValueStore:
    def __init__(self, *, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            used = sum(_size(v) for k, v in self._items.items() if k != key)
            if used + _size(value) > self._quota_bytes:
                raise QuotaError(
                    f"Storage quota exceeded: {used + _size(value)} > {self._quota_bytes} bytes"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class FileKeyValueStore:
    """
    Directory-backed store: key "task-manager-data" -> <directory>/task-manager-data.json.

    Writes are atomic (tmp file + os.replace), so a crash mid-write leaves the
    previous value in place.
    """

    def __init__(self, directory: str | Path, *, quota_bytes: int | None = None) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._quota_bytes = quota_bytes
        logger.debug("FileKeyValueStore ready dir=%s quota=%s", self._dir, quota_bytes)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.fullmatch(key):
            raise ValueError(f"Unsupported storage key: {key!r}")
        return self._dir / f"{key}.json"

    def _used_bytes(self, *, excluding: Path) -> int:
        total = 0
        for p in self._dir.glob("*.json"):
            if p == excluding:
                continue
            with contextlib.suppress(OSError):
                total += p.stat().st_size
        return total

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text("utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        data = value.encode("utf-8")

        if self._quota_bytes is not None:
            used = self._used_bytes(excluding=path)
            if used + len(data) > self._quota_bytes:
                raise QuotaError(
                    f"Storage quota exceeded: {used + len(data)} > {self._quota_bytes} bytes"
                )

        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            if e.errno in _QUOTA_ERRNOS:
                raise QuotaError(f"Storage quota exceeded: {e}") from e
            raise
        with contextlib.suppress(Exception):
            # Task descriptions are private; keep the file owner-only.
            os.chmod(path, 0o600)

    def remove_item(self, key: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path(key).unlink()
