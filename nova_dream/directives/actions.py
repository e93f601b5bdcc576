"""
Typed actions — validated construction from raw directives, and card rendering.

Unknown type tokens render with the task card but never build an action,
so nothing is ever written for them. Parameters are validated here so
executors only ever see well-formed typed actions.
"""

import math
import re
from typing import Dict, List, Optional

from nova_dream.models.directive import (
    Action,
    ActionCard,
    ActionDirective,
    ActionType,
    AddRevenueAction,
    CardField,
    CreateNoteAction,
    CreateProjectAction,
    CreateTaskAction,
    DirectiveState,
    Segment,
    TaskPriority,
)

DEFAULT_ACTION_TYPE = ActionType.CREATE_TASK

CARD_CONFIGS: Dict[ActionType, Dict[str, str]] = {
    ActionType.CREATE_TASK: {"label": "Create a task", "icon": "list-todo"},
    ActionType.ADD_REVENUE: {"label": "Add revenue", "icon": "dollar-sign"},
    ActionType.CREATE_PROJECT: {"label": "Create a project", "icon": "folder-plus"},
    ActionType.CREATE_NOTE: {"label": "Create a note", "icon": "sticky-note"},
}

# Leading decimal number, the way a lenient float parse reads "5000€"
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def parse_amount(value: Optional[str]) -> float:
    """Parse an amount; missing or unparseable values give 0."""
    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    amount = float(match.group(0))
    return amount if math.isfinite(amount) else 0.0


def parse_segment(value: Optional[str]) -> Segment:
    """Restrict a segment to the known set, falling back to OTHER."""
    if not value:
        return Segment.OTHER
    try:
        return Segment(value.strip().lower())
    except ValueError:
        return Segment.OTHER


def parse_priority(value: Optional[str]) -> TaskPriority:
    if not value:
        return TaskPriority.MEDIUM
    try:
        return TaskPriority(value.strip().lower())
    except ValueError:
        return TaskPriority.MEDIUM


def resolve_type(directive: ActionDirective) -> ActionType:
    """The type a directive is displayed as: its own, or the default."""
    return directive.action_type or DEFAULT_ACTION_TYPE


def build_action(directive: ActionDirective) -> Action:
    """Validated construction of a typed action from a raw directive."""
    params = directive.parameters
    action_type = directive.action_type
    if action_type is None:
        raise ValueError(f"Unknown action type: {directive.type}")

    if action_type == ActionType.ADD_REVENUE:
        return AddRevenueAction(
            amount=parse_amount(params.get("amount")),
            amount_text=params.get("amount"),
            segment=parse_segment(params.get("segment")),
            date=params.get("date"),
            description=params.get("description"),
        )

    if action_type == ActionType.CREATE_PROJECT:
        project = CreateProjectAction(
            segment=parse_segment(params.get("segment")),
            description=params.get("description"),
            deadline=params.get("date"),
        )
        if params.get("title"):
            project.title = params["title"]
        return project

    if action_type == ActionType.CREATE_NOTE:
        return CreateNoteAction(
            title=params.get("title"),
            content=params.get("content"),
        )

    task = CreateTaskAction(
        priority=parse_priority(params.get("priority")),
        description=params.get("description"),
        due_date=params.get("date") or params.get("due_date"),
    )
    if params.get("title"):
        task.title = params["title"]
    return task


def card_fields(directive: ActionDirective) -> List[CardField]:
    """Displayed parameters, in fixed order, only when present."""
    params = directive.parameters
    fields = []
    if params.get("title"):
        fields.append(CardField(label="Title", value=params["title"]))
    if params.get("amount"):
        fields.append(CardField(label="Amount", value=f"{params['amount']} €"))
    if params.get("segment"):
        fields.append(CardField(label="Segment", value=params["segment"]))
    if params.get("priority"):
        fields.append(CardField(label="Priority", value=params["priority"]))
    if params.get("date"):
        fields.append(CardField(label="Date", value=params["date"]))
    return fields


def render_card(
    directive: ActionDirective,
    state: DirectiveState = DirectiveState.PENDING,
) -> ActionCard:
    config = CARD_CONFIGS[resolve_type(directive)]
    return ActionCard(
        key=directive.key,
        type=directive.type,
        label=config["label"],
        icon=config["icon"],
        fields=card_fields(directive),
        state=state,
    )
