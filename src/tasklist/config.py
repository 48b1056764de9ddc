# src/tasklist/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every value has a default.
- Settings are injectable: bootstrap takes them as an argument, tests build their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKLIST"

ENVIRONMENTS = ("TEST", "PROD")
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = _env(name, default).strip().upper()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Composition ----
    environment: str  # TEST -> in-memory repository, PROD -> persistent repository

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_dir: Path

    # ---- Persistent storage ----
    storage_key: str
    storage_quota_bytes: int  # 0 = unlimited

    @property
    def quota(self) -> int | None:
        return self.storage_quota_bytes if self.storage_quota_bytes > 0 else None

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasklist") or "tasklist"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        environment = _env_choice(_k("ENV"), ENVIRONMENTS, "PROD")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasklist"))
        storage_dir = _env_path(_k("STORAGE_DIR"), data_dir / "storage")

        storage_key = _env(_k("STORAGE_KEY"), "task-manager-data").strip() or "task-manager-data"
        storage_quota_bytes = max(0, _env_int(_k("STORAGE_QUOTA_BYTES"), DEFAULT_QUOTA_BYTES))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            environment=environment,
            data_dir=data_dir,
            storage_dir=storage_dir,
            storage_key=storage_key,
            storage_quota_bytes=storage_quota_bytes,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
