"""End-to-end integration tests for todolist.

This module tests the complete workflow using subprocess to run the CLI
as a real user would, ensuring all components work together correctly.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestIntegration:
    """E2E integration tests for the complete todolist workflow."""

    @pytest.fixture
    def temp_db(self, tmp_path):
        """Path for a database file the CLI will create."""
        return str(tmp_path / "todo.json")

    def run_cli(self, args, db_path, check=True):
        """Run the CLI with given arguments.

        Args:
            args: List of command arguments
            db_path: Path to the database file
            check: Whether to check for non-zero exit codes

        Returns:
            subprocess.CompletedProcess instance
        """
        env = {**os.environ, "TODO_DB_PATH": db_path, "PYTHONIOENCODING": "utf-8"}
        result = subprocess.run(
            [sys.executable, "-m", "todolist"] + args,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
            env=env,
            cwd=PROJECT_ROOT,
        )
        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )
        return result

    def add(self, title, db_path, *extra):
        result = self.run_cli(["add", title, *extra], db_path)
        # "Task added: [ ] <id> <title>"
        return result.stdout.split()[4]

    def test_complete_workflow_add_list_done_delete(self, temp_db):
        """Test the complete workflow: add -> list -> done -> delete."""
        task_id = self.add("Buy groceries", temp_db)

        result = self.run_cli(["list"], temp_db)
        assert "[ ] " + task_id + " Buy groceries" in result.stdout
        assert "1 task • 0 completed" in result.stdout

        result = self.run_cli(["done", task_id], temp_db)
        assert f"Task {task_id} marked as done" in result.stdout

        result = self.run_cli(["list", "--filter", "completed"], temp_db)
        assert "✓" in result.stdout
        assert "1 task • 1 completed" in result.stdout

        result = self.run_cli(["delete", task_id], temp_db)
        assert f"Task {task_id} deleted" in result.stdout

        result = self.run_cli(["list"], temp_db)
        assert "No tasks found." in result.stdout

    def test_storage_file_format(self, temp_db):
        """Test that tasks are stored as a JSON string under the storage key."""
        self.add("Stored", temp_db, "--due", "2024-09-01")

        with open(temp_db) as f:
            data = json.load(f)

        [record] = json.loads(data["todo.tasks.v1"])
        assert record["title"] == "Stored"
        assert record["dueDate"] == "2024-09-01"
        assert record["completed"] is False
        assert set(record) == {"id", "title", "dueDate", "completed", "createdAt"}

    def test_export_import_round_trip(self, temp_db, tmp_path):
        self.add("One", temp_db)
        self.add("Two", temp_db)
        export_path = str(tmp_path / "todo-export.json")

        self.run_cli(["export", export_path], temp_db)
        result = self.run_cli(["import", export_path], temp_db)
        assert "Import complete: 2 tasks added." in result.stdout

        result = self.run_cli(["list"], temp_db)
        assert "4 tasks • 0 completed" in result.stdout

    def test_invalid_edit_exits_with_error(self, temp_db):
        task_id = self.add("Task", temp_db)
        result = self.run_cli(["edit", task_id, "--due", "tomorrow"], temp_db, check=False)
        assert result.returncode == 1
        assert "Invalid date format" in result.stderr

    def test_corrupt_database_starts_empty(self, temp_db):
        """Test that a corrupt database never stops the CLI from starting."""
        Path(temp_db).write_text(json.dumps({"todo.tasks.v1": "{broken"}))
        result = self.run_cli(["list"], temp_db)
        assert "No tasks found." in result.stdout
        assert "Failed to load tasks" in result.stderr
