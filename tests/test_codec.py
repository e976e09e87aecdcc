"""Tests for JSON export and import."""

import itertools
import json

import pytest

from todolist.codec import export_tasks, merge_import
from todolist.errors import FormatError
from todolist.models import UNTITLED, Task

NOW = "2024-06-01T09:00:00.000Z"


class TestExport:
    """Test suite for export_tasks()."""

    def test_export_is_json_array_of_wire_records(self):
        tasks = [
            Task(id="a", title="One", created_at=NOW),
            Task(id="b", title="Two", created_at=NOW, due_date="2024-07-01", completed=True),
        ]
        data = json.loads(export_tasks(tasks))
        assert data == [task.to_dict() for task in tasks]

    def test_export_empty(self):
        assert json.loads(export_tasks([])) == []


class TestMergeImport:
    """Test suite for merge_import()."""

    @pytest.fixture
    def id_factory(self):
        counter = itertools.count(1)
        return lambda: f"new-{next(counter)}"

    @pytest.fixture
    def existing(self):
        return [Task(id="a", title="Existing", created_at=NOW)]

    def merge(self, existing, payload, id_factory):
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return merge_import(existing, text, id_factory, lambda: NOW)

    def test_full_record_kept(self, existing, id_factory):
        record = {
            "id": "b",
            "title": "Imported",
            "dueDate": "2024-07-01",
            "completed": True,
            "createdAt": "2023-12-31T00:00:00.000Z",
        }
        [task] = self.merge(existing, [record], id_factory)
        assert task.to_dict() == record

    def test_missing_fields_defaulted(self, existing, id_factory):
        [task] = self.merge(existing, [{}], id_factory)
        assert task.id == "new-1"
        assert task.title == UNTITLED
        assert task.due_date == ""
        assert task.completed is False
        assert task.created_at == NOW

    def test_colliding_id_replaced(self, existing, id_factory):
        [task] = self.merge(existing, [{"id": "a", "title": "Dup"}], id_factory)
        assert task.id == "new-1"

    def test_collision_within_payload(self, existing, id_factory):
        """Test that ids merged earlier in the same call count as taken."""
        tasks = self.merge(existing, [{"id": "x"}, {"id": "x"}], id_factory)
        assert [t.id for t in tasks] == ["x", "new-1"]

    def test_generated_id_skips_taken(self, existing):
        """Test that a generated id equal to an existing id is redrawn."""
        ids = iter(["a", "fresh"])
        [task] = self.merge(existing, [{}], lambda: next(ids))
        assert task.id == "fresh"

    def test_completed_coerced_to_bool(self, existing, id_factory):
        tasks = self.merge(existing, [{"completed": 1}, {"completed": ""}, {"completed": "yes"}], id_factory)
        assert [t.completed for t in tasks] == [True, False, True]

    def test_blank_title_becomes_untitled(self, existing, id_factory):
        [task] = self.merge(existing, [{"title": "   "}], id_factory)
        assert task.title == UNTITLED

    @pytest.mark.parametrize("title", ["", None, 0, False])
    def test_falsy_title_becomes_untitled(self, existing, id_factory, title):
        [task] = self.merge(existing, [{"title": title}], id_factory)
        assert task.title == UNTITLED

    def test_title_kept_verbatim(self, existing, id_factory):
        """Test that a non-blank title is not trimmed."""
        [task] = self.merge(existing, [{"title": "  Foo "}], id_factory)
        assert task.title == "  Foo "

    def test_deeply_nested_payload(self, existing, id_factory):
        with pytest.raises(FormatError, match="Failed to import"):
            self.merge(existing, "[" * 100000 + "]" * 100000, id_factory)

    def test_malformed_due_date_dropped(self, existing, id_factory):
        [task] = self.merge(existing, [{"dueDate": "01/02/2024"}], id_factory)
        assert task.due_date == ""

    def test_extra_fields_ignored(self, existing, id_factory):
        [task] = self.merge(existing, [{"title": "t", "priority": "high"}], id_factory)
        assert "priority" not in task.to_dict()

    def test_existing_not_modified(self, existing, id_factory):
        self.merge(existing, [{"id": "a"}], id_factory)
        assert existing == [Task(id="a", title="Existing", created_at=NOW)]

    @pytest.mark.parametrize("payload", ["{not json", "", '{"id": "a"}', '"tasks"', "42", "null"])
    def test_invalid_payload(self, existing, id_factory, payload):
        with pytest.raises(FormatError, match="Failed to import"):
            self.merge(existing, payload, id_factory)

    def test_non_object_element(self, existing, id_factory):
        with pytest.raises(FormatError, match="item 1"):
            self.merge(existing, [{"title": "ok"}, "nope"], id_factory)
