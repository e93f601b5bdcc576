"""Nova Dream data models."""

from nova_dream.models.config import AssistantConfig, ReconcileConfig, Settings
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
    DirectiveKey,
    DirectiveState,
    Segment,
    TaskPriority,
)
from nova_dream.models.document import (
    DocumentAnalysis,
    ExtractedAmount,
    ExtractedData,
    ExtractedDate,
)
from nova_dream.models.mission import (
    ApplyResult,
    DiffClassification,
    DiffSummary,
    FieldChange,
    ImportChange,
    ImportHistoryEntry,
    MissionChanges,
    MissionDiff,
    MissionStatus,
    ProposedMission,
    StoredMission,
)

__all__ = [
    "Action",
    "ActionCard",
    "ActionDirective",
    "ActionType",
    "AddRevenueAction",
    "ApplyResult",
    "AssistantConfig",
    "CardField",
    "CreateNoteAction",
    "CreateProjectAction",
    "CreateTaskAction",
    "DiffClassification",
    "DiffSummary",
    "DirectiveKey",
    "DirectiveState",
    "DocumentAnalysis",
    "ExtractedAmount",
    "ExtractedData",
    "ExtractedDate",
    "FieldChange",
    "ImportChange",
    "ImportHistoryEntry",
    "MissionChanges",
    "MissionDiff",
    "MissionStatus",
    "ProposedMission",
    "ReconcileConfig",
    "Segment",
    "Settings",
    "StoredMission",
    "TaskPriority",
]
