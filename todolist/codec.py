"""JSON export and import for todolist.

Export writes the full collection in the wire shape. Import merges an
external JSON array into an existing collection: it never replaces tasks,
and it re-keys any incoming task whose id is missing or already taken.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Set

from todolist.clock import Clock, IdFactory
from todolist.errors import FormatError
from todolist.models import Task

logger = logging.getLogger(__name__)


def export_tasks(tasks: Iterable[Task]) -> str:
    """Serialize tasks to a JSON array string."""
    return json.dumps([task.to_dict() for task in tasks], indent=2, ensure_ascii=False)


def unique_id(id_factory: IdFactory, taken: Set[str]) -> str:
    """Draw ids from id_factory until one is not in taken."""
    new_id = id_factory()
    while new_id in taken:
        new_id = id_factory()
    return new_id


def _normalize(item: Dict[str, Any], taken: Set[str], id_factory: IdFactory, clock: Clock) -> Task:
    raw_id = item.get("id")
    task_id = str(raw_id) if raw_id else ""
    if not task_id or task_id in taken:
        task_id = unique_id(id_factory, taken)

    created_at = "" if item.get("createdAt") else clock()
    return Task.from_dict({**item, "id": task_id}, default_created_at=created_at)


def merge_import(
    existing: Iterable[Task], text: str, id_factory: IdFactory, clock: Clock
) -> List[Task]:
    """Parse text and normalize each element into a new Task.

    Args:
        existing: Tasks already in the collection (used for id collisions)
        text: JSON text supplied by the user
        id_factory: Source of fresh ids
        clock: Source of createdAt for records that lack one

    Returns:
        The normalized tasks, in payload order, ready to be appended

    Raises:
        FormatError: If text is not JSON, or not an array of objects
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise FormatError(f"Failed to import: invalid JSON ({e})") from e

    if not isinstance(data, list):
        raise FormatError("Failed to import: expected a JSON array of tasks")

    taken = {task.id for task in existing}
    imported: List[Task] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise FormatError(f"Failed to import: item {index} is not an object")
        task = _normalize(item, taken, id_factory, clock)
        taken.add(task.id)
        imported.append(task)

    logger.debug("Parsed %d tasks from import payload", len(imported))
    return imported
