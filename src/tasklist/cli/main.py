# src/tasklist/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the task repository, runs one subcommand:
  tasklist list | add <text> | done <id> | delete <id> | clear | stats | export

Command output goes to stdout, logs go to stderr and <data_dir>/tasklist.log.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from ..config import Settings, get_settings
from ..core.ports import TaskRepository
from ..logging_setup import setup_logging
from ..tasks.errors import NotFoundError, TaskStoreError
from ..tasks.storage_codec import format_timestamp
from ..tasks.task_models import Task
from .bootstrap import create_task_repository

logger = logging.getLogger(__name__)


def _format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    return f"[{mark}] {task.id}  {task.description}  ({format_timestamp(task.created_at)})"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasklist", description="Manage the local task list.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show all tasks in display order.")

    p_add = sub.add_parser("add", help="Add a task.")
    p_add.add_argument("description", nargs="+")

    p_done = sub.add_parser("done", help="Toggle a task's completed flag.")
    p_done.add_argument("task_id")

    p_del = sub.add_parser("delete", help="Delete a task.")
    p_del.add_argument("task_id")

    sub.add_parser("clear", help="Delete every task (history counter is kept).")
    sub.add_parser("stats", help="Show storage statistics (persistent storage only).")
    sub.add_parser("export", help="Print the stored envelope as JSON (persistent storage only).")
    return parser


async def run_command(repo: TaskRepository, args: argparse.Namespace) -> list[str]:
    """Execute one parsed command and return the lines to print."""
    cmd = args.command

    if cmd == "list":
        tasks = await repo.find_all()
        return [_format_task(t) for t in tasks] or ["No tasks."]

    if cmd == "add":
        task = Task.new(" ".join(args.description))
        await repo.save(task)
        return [f"Added {task.id}"]

    if cmd == "done":
        found = await repo.find_by_id(args.task_id)
        if found is None:
            raise NotFoundError(args.task_id)
        await repo.save(replace(found, completed=not found.completed))
        return [f"{'Completed' if not found.completed else 'Reopened'} {found.id}"]

    if cmd == "delete":
        await repo.delete(args.task_id)
        return [f"Deleted {args.task_id}"]

    if cmd == "clear":
        await repo.clear()
        return ["All tasks cleared."]

    if cmd in ("stats", "export"):
        if not hasattr(repo, "get_storage_stats"):
            return [f"'{cmd}' needs persistent storage (TASKLIST_ENV=PROD)."]
        if cmd == "export":
            return [await repo.export_data()]  # type: ignore[attr-defined]
        stats = await repo.get_storage_stats()  # type: ignore[attr-defined]
        last = format_timestamp(stats.last_updated) if stats.last_updated else "-"
        return [
            f"tasks:        {stats.task_count}",
            f"size (bytes): {stats.storage_size}",
            f"last updated: {last}",
            f"version:      {stats.version}",
        ]

    raise ValueError(f"Unknown command: {cmd}")


def main(argv: list[str] | None = None, *, settings: Settings | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if settings is None:
        settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("%s: %s (environment=%s)", settings.app_name, args.command, settings.environment)

    repo = create_task_repository(settings)

    try:
        lines = asyncio.run(run_command(repo, args))
    except TaskStoreError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
