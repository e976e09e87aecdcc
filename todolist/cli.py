"""Command-line interface for todolist.

This module provides the CLI interface for managing tasks using argparse.
It supports the following commands:
- add: Create a new task
- list: List tasks, optionally filtered
- done: Toggle a task's completed flag
- edit: Change a task's title or due date
- delete: Delete a task
- clear-completed: Remove all completed tasks
- export: Write all tasks to a JSON file
- import: Merge tasks from a JSON file
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from todolist.errors import TodoError
from todolist.models import Filter, Task
from todolist.repository import EXPORT_FILENAME, TaskRepository
from todolist.view import format_counts


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="todo",
        description="Local to-do list manager"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("title", help="Task title")
    add_parser.add_argument("--due", default="", help="Due date (YYYY-MM-DD)")

    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument(
        "--filter",
        choices=[f.value for f in Filter],
        default=Filter.ALL.value,
        help="Which tasks to show (default: all)"
    )

    done_parser = subparsers.add_parser("done", help="Toggle a task's completed flag")
    done_parser.add_argument("id", help="Task ID")

    edit_parser = subparsers.add_parser("edit", help="Edit a task")
    edit_parser.add_argument("id", help="Task ID")
    edit_parser.add_argument("--title", default="", help="New title (blank keeps the current one)")
    edit_parser.add_argument("--due", help="New due date (YYYY-MM-DD), or \"\" to clear")

    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("id", help="Task ID")

    subparsers.add_parser("clear-completed", help="Remove all completed tasks")

    export_parser = subparsers.add_parser("export", help="Export tasks to JSON")
    export_parser.add_argument("path", nargs="?", default=EXPORT_FILENAME, help="Output file")

    import_parser = subparsers.add_parser("import", help="Import tasks from JSON")
    import_parser.add_argument("path", help="JSON file to merge")

    return parser


def format_task(task: Task) -> str:
    icon = "✓" if task.completed else " "
    due = f" (due {task.due_date})" if task.due_date else ""
    return f"[{icon}] {task.id} {task.title}{due}"


def cmd_add(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'add' command."""
    task = repo.add_task(args.title, args.due)
    if task is None:
        print("Error: Task title cannot be empty.", file=sys.stderr)
        return 1

    print(f"Task added: {format_task(task)}")
    return 0


def cmd_list(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'list' command."""
    projection = repo.view(args.filter)

    if not projection.tasks:
        print("No tasks found.")
    for task in projection.tasks:
        print(format_task(task))

    print(format_counts(projection.summary))
    return 0


def cmd_done(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'done' command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    task = repo.toggle_complete(args.id)

    if task is None:
        print(f"Error: Task {args.id} not found.", file=sys.stderr)
        return 1

    state = "done" if task.completed else "not done"
    print(f"Task {task.id} marked as {state}: {task.title}")
    return 0


def cmd_edit(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'edit' command.

    Omitting --due keeps the current due date.
    """
    current = repo.get_task(args.id)
    if current is None:
        print(f"Error: Task {args.id} not found.", file=sys.stderr)
        return 1

    due_date = current.due_date if args.due is None else args.due
    task = repo.edit_task(args.id, args.title, due_date)
    print(f"Task updated: {format_task(task)}")
    return 0


def cmd_delete(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'delete' command."""
    deleted = repo.delete_task(args.id)

    if not deleted:
        print(f"Error: Task {args.id} not found.", file=sys.stderr)
        return 1

    print(f"Task {args.id} deleted.")
    return 0


def cmd_clear_completed(args: argparse.Namespace, repo: TaskRepository) -> int:
    removed = repo.clear_completed()
    print(f"Removed {removed} completed task{'' if removed == 1 else 's'}.")
    return 0


def cmd_export(args: argparse.Namespace, repo: TaskRepository) -> int:
    path = repo.export_to_file(args.path)
    print(f"Exported {len(repo.tasks)} tasks to {path}")
    return 0


def cmd_import(args: argparse.Namespace, repo: TaskRepository) -> int:
    imported = asyncio.run(repo.import_file(args.path))
    print(f"Import complete: {len(imported)} tasks added.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    repo = TaskRepository()

    # Dispatch to command handlers
    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "done": cmd_done,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "clear-completed": cmd_clear_completed,
        "export": cmd_export,
        "import": cmd_import,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    try:
        return handler(args, repo)
    except TodoError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
