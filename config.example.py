# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKLIST_APP_NAME": "App display name (default: tasklist).",
    "TASKLIST_LOG_LEVEL": "Console logging level (default: INFO).",
    # Composition
    "TASKLIST_ENV": "TEST (in-memory repository) or PROD (persistent repository, default).",
    # Paths (gitignored)
    "TASKLIST_DATA_DIR": "Local data directory (default: .local/tasklist).",
    "TASKLIST_STORAGE_DIR": "Key-value store directory (default: <data_dir>/storage).",
    # Persistent storage
    "TASKLIST_STORAGE_KEY": "Key holding the task envelope (default: task-manager-data).",
    "TASKLIST_STORAGE_QUOTA_BYTES": "Store capacity in bytes; 0 = unlimited (default: 5242880).",
}
