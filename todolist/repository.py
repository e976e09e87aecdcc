"""Task repository for managing the task collection.

This module provides the TaskRepository class, which owns the in-memory task
collection and the current filter. It loads the collection from a key-value
store when constructed, saves it after every mutation, and notifies
subscribers with a fresh projection so a front end can re-render.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple, Union

from todolist.clock import Clock, IdFactory, generate_id, utc_now_iso
from todolist.codec import export_tasks, merge_import, unique_id
from todolist.errors import PersistenceReadError, ValidationError
from todolist.models import Filter, Projection, Task, is_valid_due_date
from todolist.storage import JsonFileStore, KeyValueStore
from todolist.view import parse_filter, project

logger = logging.getLogger(__name__)

STORAGE_KEY = "todo.tasks.v1"
EXPORT_FILENAME = "todo-export.json"

Listener = Callable[[Projection], None]


class TaskRepository:
    """Repository owning the task collection.

    All changes to tasks go through this class. Tasks handed out by it are
    the stored objects; callers must not modify them directly.

    Attributes:
        storage: Key-value store used for persistence
        key: Key under which the collection is stored
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
        key: str = STORAGE_KEY,
    ):
        """Initialize the repository and load saved tasks.

        Args:
            storage: Store to persist into. If None, uses JsonFileStore with
                    the default file path.
            clock: Returns the current ISO-8601 timestamp
            id_factory: Returns a new task id
            key: Storage key for the collection
        """
        self.storage = storage or JsonFileStore()
        self.key = key
        self._clock = clock or utc_now_iso
        self._id_factory = id_factory or generate_id
        self._tasks: List[Task] = []
        self._filter = Filter.ALL
        self._listeners: List[Listener] = []
        self.load()

    # Lifecycle

    def load(self) -> None:
        """Replace the collection with the saved one.

        Unreadable or malformed saved data is logged and results in an empty
        collection; no exception reaches the caller.
        """
        try:
            self._tasks = self._read()
        except PersistenceReadError as e:
            logger.error("Failed to load tasks: %s", e)
            self._tasks = []

    def _read(self) -> List[Task]:
        try:
            raw = self.storage.get(self.key)
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"storage unreadable: {e}") from e

        if not raw:
            return []
        if not isinstance(raw, str):
            raise PersistenceReadError(f"saved tasks are a {type(raw).__name__}, not a string")

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise PersistenceReadError(f"saved tasks are not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise PersistenceReadError("saved tasks are not a JSON array")

        tasks: List[Task] = []
        seen: Set[str] = set()
        for index, record in enumerate(data):
            if not isinstance(record, dict):
                raise PersistenceReadError(f"saved task {index} is not an object")
            created_at = "" if record.get("createdAt") else self._clock()
            try:
                task = Task.from_dict(record, default_created_at=created_at)
            except KeyError as e:
                raise PersistenceReadError(f"saved task {index} has no id") from e

            if task.id in seen:
                task.id = unique_id(self._id_factory, seen)
                logger.warning("Saved task %d had a duplicate id, assigned %s", index, task.id)
            seen.add(task.id)
            tasks.append(task)
        return tasks

    def save(self) -> None:
        """Write the collection to storage."""
        self.storage.set(self.key, json.dumps([task.to_dict() for task in self._tasks]))

    # Views

    @property
    def tasks(self) -> Tuple[Task, ...]:
        """The full collection in insertion order."""
        return tuple(self._tasks)

    @property
    def filter(self) -> Filter:
        return self._filter

    def set_filter(self, value: Union[Filter, str]) -> Projection:
        """Change the current filter and re-project.

        Raises:
            ValidationError: If value is not a known filter
        """
        self._filter = parse_filter(value)
        return self._notify()

    def view(self, filter: Optional[Union[Filter, str]] = None) -> Projection:
        """Project the collection with filter, or the current filter if None."""
        return project(self._tasks, self._filter if filter is None else filter)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new projection after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # Mutations

    def _notify(self) -> Projection:
        projection = self.view()
        for listener in list(self._listeners):
            listener(projection)
        return projection

    def _commit(self) -> None:
        self.save()
        self._notify()

    def add_task(self, title: str, due_date: str = "") -> Optional[Task]:
        """Create a task at the end of the collection.

        Args:
            title: Task title; surrounding whitespace is stripped
            due_date: "YYYY-MM-DD" or ""; anything else is stored as ""

        Returns:
            The created Task, or None if the title is blank
        """
        title = (title or "").strip()
        if not title:
            return None

        due_date = due_date or ""
        if not is_valid_due_date(due_date):
            logger.debug("Ignoring malformed due date %r", due_date)
            due_date = ""

        task = Task(
            id=unique_id(self._id_factory, {t.id for t in self._tasks}),
            title=title,
            due_date=due_date,
            completed=False,
            created_at=self._clock(),
        )
        self._tasks.append(task)
        self._commit()
        logger.debug("Added task %s", task.id)
        return task

    def toggle_complete(self, task_id: str) -> Optional[Task]:
        """Flip the completed flag of a task.

        Returns:
            The updated Task, or None if no task has that id
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        task.completed = not task.completed
        self._commit()
        return task

    def edit_task(self, task_id: str, title: str, due_date: str) -> Optional[Task]:
        """Update a task's title and due date.

        A blank title keeps the existing one. A blank due date clears it.

        Returns:
            The updated Task, or None if no task has that id

        Raises:
            ValidationError: If due_date is neither blank nor YYYY-MM-DD
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        due_date = due_date or ""
        if not is_valid_due_date(due_date):
            raise ValidationError(
                f"Invalid date format {due_date!r}. Use YYYY-MM-DD or leave blank."
            )

        task.title = (title or "").strip() or task.title
        task.due_date = due_date
        self._commit()
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a task by id.

        Returns:
            True if the task was deleted, False if it didn't exist
        """
        task = self.get_task(task_id)
        if task is None:
            return False

        self._tasks.remove(task)
        self._commit()
        return True

    def clear_completed(self) -> int:
        """Remove every completed task.

        Returns:
            Number of tasks removed
        """
        remaining = [t for t in self._tasks if not t.completed]
        removed = len(self._tasks) - len(remaining)
        self._tasks = remaining
        self._commit()
        return removed

    def clear_all(self) -> int:
        removed = len(self._tasks)
        self._tasks = []
        self._commit()
        return removed

    # Import / export

    def export_json(self) -> str:
        """Serialize the full, unfiltered collection."""
        return export_tasks(self._tasks)

    def export_to_file(self, path: Union[str, Path] = EXPORT_FILENAME) -> Path:
        """Write the export to path and return it."""
        path = Path(path)
        path.write_text(self.export_json(), encoding="utf-8")
        logger.info("Exported %d tasks to %s", len(self._tasks), path)
        return path

    def import_json(self, text: str) -> List[Task]:
        """Merge a JSON array of tasks into the collection.

        Returns:
            The tasks that were added

        Raises:
            FormatError: If text is not a JSON array of objects; nothing is
                        changed in that case
        """
        imported = merge_import(self._tasks, text, self._id_factory, self._clock)
        self._tasks.extend(imported)
        self._commit()
        logger.info("Imported %d tasks", len(imported))
        return imported

    async def import_file(self, path: Union[str, Path]) -> List[Task]:
        """Read path without blocking the event loop, then merge it.

        Raises:
            FormatError: If the file content is not a JSON array of objects
            OSError: If the file cannot be read
        """
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        return self.import_json(text)
