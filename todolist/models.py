"""Core models for todolist.

This module defines the core data structures for task management:
- Task: A dataclass representing a single to-do item
- Filter: Enum selecting which tasks a projection shows
- Summary: Counts over the whole collection
- Projection: The filtered, sorted tasks plus their summary
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

DUE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
UNTITLED = "Untitled"


def is_valid_due_date(value: str) -> bool:
    """Return True if value is empty or looks like YYYY-MM-DD.

    The check is syntactic only: "2024-13-40" passes.
    """
    return not value or bool(DUE_DATE_PATTERN.match(value))


def normalize_due_date(value: Any) -> str:
    """Return value if it is a usable due date, otherwise ""."""
    if not value or not isinstance(value, str) or not is_valid_due_date(value):
        return ""
    return value


def normalize_title(value: Any) -> str:
    """Return value as text, or UNTITLED if it is missing or blank."""
    if not value or not str(value).strip():
        return UNTITLED
    return str(value)


class Filter(Enum):
    """Which tasks a projection includes."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, task: "Task") -> bool:
        if self is Filter.ACTIVE:
            return not task.completed
        if self is Filter.COMPLETED:
            return task.completed
        return True


@dataclass
class Task:
    """Task model representing a single to-do item.

    Attributes:
        id: Opaque unique identifier, never changed after creation
        title: Display text, never blank once stored
        created_at: ISO-8601 timestamp set once at creation
        due_date: "YYYY-MM-DD" or "" for no due date
        completed: Whether the task is done
    """

    id: str
    title: str
    created_at: str
    due_date: str = ""
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape used for storage and export."""
        return {
            "id": self.id,
            "title": self.title,
            "dueDate": self.due_date,
            "completed": self.completed,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_created_at: str = "") -> "Task":
        """Build a Task from a stored or imported record.

        Missing or unusable fields are defaulted: a blank title becomes
        UNTITLED, a malformed due date becomes "", a missing createdAt
        becomes default_created_at.

        Raises:
            KeyError: If id is missing or blank
        """
        task_id = data.get("id")
        if not task_id:
            raise KeyError("id")

        created_at = data.get("createdAt")
        return cls(
            id=str(task_id),
            title=normalize_title(data.get("title")),
            created_at=str(created_at) if created_at else default_created_at,
            due_date=normalize_due_date(data.get("dueDate")),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class Summary:
    """Counts over the unfiltered collection."""

    total: int
    completed: int

    @property
    def active(self) -> int:
        return self.total - self.completed


@dataclass(frozen=True)
class Projection:
    """Display-ready view of the collection."""

    tasks: Tuple[Task, ...]
    summary: Summary
    filter: Filter = Filter.ALL
