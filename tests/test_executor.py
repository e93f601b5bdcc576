"""Tests for the Action Executor."""

from datetime import date

import pytest

from nova_dream.directives.executor import (
    ActionExecutor,
    ExecutionError,
    NotAuthenticatedError,
    UnimplementedActionError,
)
from nova_dream.directives.parser import parse_directives
from nova_dream.models.directive import ActionType, CreateTaskAction
from nova_dream.store.records import QueryCache, RecordStore, StoreError


class FailingStore(RecordStore):
    def insert(self, collection, rows, owner_id):
        raise StoreError("database unavailable")


def _directive(text: str):
    return parse_directives(text)[0]


class TestActionExecutor:
    def setup_method(self):
        self.store = RecordStore()
        self.cache = QueryCache(self.store)
        self.executor = ActionExecutor(
            self.store, cache=self.cache, today=lambda: date(2026, 10, 18)
        )

    def test_create_task_with_defaults(self):
        result = self.executor.execute(_directive("[[ACTION:CREATE_TASK|title=Buy milk]]"), "user_1")

        assert result.action_type == ActionType.CREATE_TASK
        tasks = self.store.select("tasks", "user_1")
        assert len(tasks) == 1
        task = tasks[0]
        assert task["title"] == "Buy milk"
        assert task["priority"] == "medium"
        assert task["status"] == "todo"
        assert task["estimated_time"] == 0
        assert task["time_spent"] == 0
        assert task["project_id"] is None
        assert task["mission_id"] is None
        assert task["description"] is None
        assert task["due_date"] is None
        assert result.message == 'Task "Buy milk" created'

    def test_create_task_without_title(self):
        self.executor.execute(_directive("[[ACTION:CREATE_TASK|priority=low]]"), "user_1")
        assert self.store.select("tasks", "user_1")[0]["title"] == "New task"

    def test_add_revenue_defaults(self):
        result = self.executor.execute(
            _directive("[[ACTION:ADD_REVENUE|amount=oops|segment=crypto]]"), "user_1"
        )
        row = self.store.select("transactions", "user_1")[0]
        assert row["amount"] == 0.0
        assert row["segment"] == "other"
        assert row["date"] == "2026-10-18"
        assert row["type"] == "income"
        assert row["counts_toward_goal"] is True
        assert result.message == "Revenue of oops€ added"

    def test_add_revenue_with_values(self):
        self.executor.execute(
            _directive("[[ACTION:ADD_REVENUE|amount=2500.5|segment=consulting|date=2026-10-01]]"),
            "user_1",
        )
        row = self.store.select("transactions", "user_1")[0]
        assert row["amount"] == 2500.5
        assert row["segment"] == "consulting"
        assert row["date"] == "2026-10-01"

    def test_create_project(self):
        self.executor.execute(_directive("[[ACTION:CREATE_PROJECT|segment=tiktok]]"), "user_1")
        row = self.store.select("projects", "user_1")[0]
        assert row["name"] == "New project"
        assert row["segment"] == "tiktok"
        assert row["status"] == "planned"
        assert row["progress"] == 0

    def test_create_note_is_unimplemented(self):
        with pytest.raises(UnimplementedActionError):
            self.executor.execute(_directive("[[ACTION:CREATE_NOTE|title=Idea]]"), "user_1")
        assert self.store.select("notes", "user_1") == []

    def test_unrecognized_type_writes_nothing(self):
        directive = _directive(
            "[[ACTION:ADD_EXPENSE|amount=500|segment=formation|description=Online course]]"
        )
        with pytest.raises(UnimplementedActionError, match="ADD_EXPENSE"):
            self.executor.execute(directive, "user_1")
        for collection in ("tasks", "transactions", "projects"):
            assert self.store.select(collection, "user_1") == []

    def test_unauthenticated_rejected_before_store(self):
        store = FailingStore()
        executor = ActionExecutor(store)
        with pytest.raises(NotAuthenticatedError):
            executor.execute(CreateTaskAction(title="x"), None)

    def test_store_failure_becomes_execution_error(self):
        executor = ActionExecutor(FailingStore())
        with pytest.raises(ExecutionError, match="database unavailable"):
            executor.execute(CreateTaskAction(title="x"), "user_1")

    def test_success_invalidates_cached_collection(self):
        assert self.cache.select("tasks", "user_1") == []
        assert self.cache.is_cached("tasks")

        self.executor.execute(CreateTaskAction(title="x"), "user_1")

        assert not self.cache.is_cached("tasks")
        assert len(self.cache.select("tasks", "user_1")) == 1

    def test_register_custom_executor(self):
        calls = []
        original = self.executor._create_task

        def tracking(action, owner_id):
            calls.append(action.title)
            return original(action, owner_id)

        self.executor.register_executor(ActionType.CREATE_TASK, tracking)
        self.executor.execute(CreateTaskAction(title="Tracked"), "user_1")
        assert calls == ["Tracked"]
