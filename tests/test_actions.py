"""Tests for typed action construction and card rendering."""

import pytest

from nova_dream.directives.actions import (
    build_action,
    parse_amount,
    parse_segment,
    render_card,
)
from nova_dream.directives.parser import parse_directives
from nova_dream.models.directive import (
    ActionType,
    AddRevenueAction,
    CreateNoteAction,
    CreateProjectAction,
    CreateTaskAction,
    DirectiveState,
    Segment,
    TaskPriority,
)


def _directive(text: str):
    return parse_directives(text)[0]


class TestParsing:
    def test_amount_parsing(self):
        assert parse_amount("5000") == 5000.0
        assert parse_amount("1500.50") == 1500.5
        assert parse_amount("5000€") == 5000.0
        assert parse_amount("abc") == 0.0
        assert parse_amount(None) == 0.0

    def test_segment_fallback(self):
        assert parse_segment("consulting") == Segment.CONSULTING
        assert parse_segment("TikTok") == Segment.TIKTOK
        assert parse_segment("freelance") == Segment.OTHER
        assert parse_segment(None) == Segment.OTHER


class TestBuildAction:
    def test_task_defaults(self):
        action = build_action(_directive("[[ACTION:CREATE_TASK|description=x]]"))
        assert isinstance(action, CreateTaskAction)
        assert action.title == "New task"
        assert action.priority == TaskPriority.MEDIUM
        assert action.due_date is None

    def test_task_accepts_due_date_alias(self):
        action = build_action(_directive(
            "[[ACTION:CREATE_TASK|title=Call|priority=high|due_date=2026-01-30]]"
        ))
        assert action.priority == TaskPriority.HIGH
        assert action.due_date == "2026-01-30"

    def test_invalid_priority_falls_back(self):
        action = build_action(_directive("[[ACTION:CREATE_TASK|title=A|priority=urgent]]"))
        assert action.priority == TaskPriority.MEDIUM

    def test_revenue(self):
        action = build_action(_directive(
            "[[ACTION:ADD_REVENUE|amount=2000|segment=freelance|description=Client]]"
        ))
        assert isinstance(action, AddRevenueAction)
        assert action.amount == 2000.0
        assert action.segment == Segment.OTHER
        assert action.date is None

    def test_project(self):
        action = build_action(_directive("[[ACTION:CREATE_PROJECT|title=Podcast|segment=tech]]"))
        assert isinstance(action, CreateProjectAction)
        assert action.title == "Podcast"
        assert action.segment == Segment.TECH

    def test_note_is_typed_unimplemented_variant(self):
        action = build_action(_directive("[[ACTION:CREATE_NOTE|title=Idea|content=Text]]"))
        assert isinstance(action, CreateNoteAction)
        assert action.kind == ActionType.CREATE_NOTE

    def test_unknown_type_builds_no_action(self):
        with pytest.raises(ValueError, match="ADD_EXPENSE"):
            build_action(_directive("[[ACTION:ADD_EXPENSE|amount=500|title=Course]]"))


class TestRenderCard:
    def test_card_fields_in_order(self):
        card = render_card(_directive(
            "[[ACTION:ADD_REVENUE|date=2026-02-01|segment=data|amount=300|title=Survey]]"
        ))
        assert card.label == "Add revenue"
        assert card.icon == "dollar-sign"
        assert [f.label for f in card.fields] == ["Title", "Amount", "Segment", "Date"]
        assert card.fields[1].value == "300 €"
        assert card.state == DirectiveState.PENDING

    def test_unknown_type_uses_task_card(self):
        card = render_card(_directive("[[ACTION:MYSTERY|title=A]]"))
        assert card.type == "MYSTERY"
        assert card.label == "Create a task"
