"""Missions — proposed (from a roadmap) and stored, plus reconciliation output."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MissionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ProposedMission(BaseModel):
    """One item of an imported roadmap. Exists only during an import."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: str = ""
    estimated_duration: Optional[str] = Field(default=None, alias="estimatedDuration")


class StoredMission(BaseModel):
    """A persisted mission row."""

    id: str
    project_id: str
    user_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: MissionStatus = MissionStatus.PENDING
    order_index: int = 0
    deadline: Optional[str] = None
    estimated_duration: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DiffClassification(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    IDENTICAL = "identical"


class FieldChange(BaseModel):
    old: Optional[str] = None
    new: Optional[str] = None


class MissionChanges(BaseModel):
    """Field-level change set. Only changed fields are set."""

    model_config = ConfigDict(populate_by_name=True)

    description: Optional[FieldChange] = None
    estimated_duration: Optional[FieldChange] = Field(default=None, alias="estimatedDuration")

    def is_empty(self) -> bool:
        return self.description is None and self.estimated_duration is None

    def changed_fields(self) -> List[str]:
        fields = []
        if self.description is not None:
            fields.append("description")
        if self.estimated_duration is not None:
            fields.append("estimated_duration")
        return fields


class MissionDiff(BaseModel):
    """Reconciliation verdict for one proposed mission."""

    classification: DiffClassification
    proposed: ProposedMission
    existing: Optional[StoredMission] = None
    changes: Optional[MissionChanges] = None
    similarity: Optional[float] = None      # None for creates

    @property
    def existing_id(self) -> Optional[str]:
        return self.existing.id if self.existing else None


class DiffSummary(BaseModel):
    to_create: int = 0
    to_update: int = 0
    identical: int = 0
    total: int = 0


class ApplyResult(BaseModel):
    """What a bulk apply actually committed."""

    created: int = 0
    updated: int = 0
    created_ids: List[str] = []
    updated_ids: List[str] = []


class ImportChange(BaseModel):
    type: DiffClassification
    mission_title: str
    details: Optional[Dict[str, Dict[str, Optional[str]]]] = None   # before / after


class ImportHistoryEntry(BaseModel):
    """Audit record of one roadmap import."""

    project_id: str
    project_name: str
    created_count: int
    updated_count: int
    identical_count: int
    total_count: int
    changes: List[ImportChange] = []
    imported_at: datetime
