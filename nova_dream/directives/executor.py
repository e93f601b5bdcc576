"""
Action Executor — performs a confirmed action against the record store.

Behavioral Contract:
- Never touches the store without an authenticated owner.
- Each action performs exactly one insert, with defaults applied.
- Successful writes invalidate the cached collection they changed.
- Store failures surface as ExecutionError; nothing is swallowed.
- Note creation and unrecognized types have no executor and are reported
  as unimplemented.
"""

import logging
from datetime import date
from typing import Callable, Dict, Optional, Union

from pydantic import BaseModel

from nova_dream.directives.actions import build_action
from nova_dream.models.directive import (
    Action,
    ActionDirective,
    ActionType,
    AddRevenueAction,
    CreateProjectAction,
    CreateTaskAction,
)
from nova_dream.store.records import QueryCache, RecordStore, StoreError

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """Raised when an action is attempted without an owner."""
    pass


class ExecutionError(Exception):
    """Raised when an action fails to execute."""
    pass


class UnimplementedActionError(ExecutionError):
    """Raised for recognized action types that have no executor."""
    pass


class ExecutionResult(BaseModel):
    """Outcome of a successful action."""

    action_type: ActionType
    collection: str
    record: dict
    message: str


class ActionExecutor:
    """Dispatches typed actions to per-type store writes."""

    def __init__(
        self,
        store: RecordStore,
        cache: Optional[QueryCache] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.cache = cache
        self._today = today or date.today
        self._executors: Dict[ActionType, Callable] = {}
        self._register_default_executors()

    def _register_default_executors(self) -> None:
        self._executors[ActionType.CREATE_TASK] = self._create_task
        self._executors[ActionType.ADD_REVENUE] = self._add_revenue
        self._executors[ActionType.CREATE_PROJECT] = self._create_project
        self._executors[ActionType.CREATE_NOTE] = self._unimplemented

    def register_executor(self, action_type: ActionType, executor: Callable) -> None:
        """Register a custom executor for an action type."""
        self._executors[action_type] = executor

    def execute(
        self,
        action: Union[Action, ActionDirective],
        owner_id: Optional[str],
    ) -> ExecutionResult:
        """
        Execute one action for an owner.

        GUARD: no owner, no store call.
        """
        if not owner_id:
            raise NotAuthenticatedError("You must be signed in to run this action")

        if isinstance(action, ActionDirective):
            if action.action_type is None:
                logger.warning("Action %s is not recognized; nothing written", action.type)
                raise UnimplementedActionError(
                    f"{action.type} is not supported yet; nothing was saved"
                )
            action = build_action(action)

        executor = self._executors[action.kind]
        try:
            result = executor(action, owner_id)
        except ExecutionError:
            raise
        except StoreError as e:
            logger.error("Action %s failed for %s: %s", action.kind.value, owner_id, e)
            raise ExecutionError(f"Could not run {action.kind.value}: {e}") from e

        if self.cache is not None:
            self.cache.invalidate(result.collection)
        logger.info(
            "Action %s executed for %s (%s %s)",
            action.kind.value, owner_id, result.collection, result.record.get("id"),
        )
        return result

    # --- Executors ---

    def _create_task(self, action: CreateTaskAction, owner_id: str) -> ExecutionResult:
        row = {
            "title": action.title,
            "mode": "work",
            "priority": action.priority.value,
            "status": "todo",
            "estimated_time": 0,
            "time_spent": 0,
            "subtasks": [],
            "required_tools": [],
            "project_id": None,
            "mission_id": None,
            "description": action.description,
            "due_date": action.due_date,
            "completed_at": None,
        }
        record = self.store.insert("tasks", row, owner_id)[0]
        return ExecutionResult(
            action_type=ActionType.CREATE_TASK,
            collection="tasks",
            record=record,
            message=f'Task "{action.title}" created',
        )

    def _add_revenue(self, action: AddRevenueAction, owner_id: str) -> ExecutionResult:
        row = {
            "type": "income",
            "amount": action.amount,
            "segment": action.segment.value,
            "date": action.date or self._today().isoformat(),
            "mode": "work",
            "counts_toward_goal": True,
            "description": action.description,
            "category": None,
            "project_id": None,
        }
        record = self.store.insert("transactions", row, owner_id)[0]
        shown = action.amount_text or f"{action.amount:g}"
        return ExecutionResult(
            action_type=ActionType.ADD_REVENUE,
            collection="transactions",
            record=record,
            message=f"Revenue of {shown}€ added",
        )

    def _create_project(self, action: CreateProjectAction, owner_id: str) -> ExecutionResult:
        row = {
            "name": action.title,
            "segment": action.segment.value,
            "mode": "work",
            "status": "planned",
            "progress": 0,
            "description": action.description,
            "deadline": action.deadline,
            "budget": None,
            "revenue_generated": None,
        }
        record = self.store.insert("projects", row, owner_id)[0]
        return ExecutionResult(
            action_type=ActionType.CREATE_PROJECT,
            collection="projects",
            record=record,
            message=f'Project "{action.title}" created',
        )

    def _unimplemented(self, action: Action, owner_id: str) -> ExecutionResult:
        logger.warning("Action %s has no executor; nothing written", action.kind.value)
        raise UnimplementedActionError(
            f"{action.kind.value} is not supported yet; nothing was saved"
        )
