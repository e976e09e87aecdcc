"""View projection for todolist.

project() turns the task collection and a filter into the ordered tasks a
front end should display, plus counts over the whole collection. It has no
side effects.
"""

from datetime import datetime
from typing import Iterable, Tuple, Union

from todolist.errors import ValidationError
from todolist.models import Filter, Projection, Summary, Task


def parse_filter(value: Union[Filter, str]) -> Filter:
    """Convert a filter name to a Filter.

    Raises:
        ValidationError: If value is not one of all, active, completed
    """
    if isinstance(value, Filter):
        return value
    try:
        return Filter(value)
    except ValueError:
        choices = ", ".join(f.value for f in Filter)
        raise ValidationError(f"Unknown filter {value!r}; expected one of {choices}") from None


def _created_timestamp(task: Task) -> float:
    try:
        return datetime.fromisoformat(task.created_at.replace("Z", "+00:00")).timestamp()
    except (ValueError, OverflowError, OSError):
        return 0.0


def sort_key(task: Task) -> Tuple[bool, bool, str, float]:
    """Sort key: incomplete first, then dated by due date, then newest created."""
    if task.due_date:
        return (task.completed, False, task.due_date, 0.0)
    return (task.completed, True, "", -_created_timestamp(task))


def summarize(tasks: Iterable[Task]) -> Summary:
    tasks = list(tasks)
    return Summary(total=len(tasks), completed=sum(1 for t in tasks if t.completed))


def project(tasks: Iterable[Task], filter: Union[Filter, str] = Filter.ALL) -> Projection:
    """Filter and sort tasks for display.

    Args:
        tasks: The full collection, in insertion order
        filter: Filter or filter name

    Returns:
        Projection with the visible tasks and a summary of the full collection

    Raises:
        ValidationError: If filter is not recognised
    """
    selected = parse_filter(filter)
    tasks = list(tasks)
    visible = sorted((t for t in tasks if selected.matches(t)), key=sort_key)
    return Projection(tasks=tuple(visible), summary=summarize(tasks), filter=selected)


def format_counts(summary: Summary) -> str:
    plural = "" if summary.total == 1 else "s"
    return f"{summary.total} task{plural} • {summary.completed} completed"
