"""
Bulk Apply — commits the create and update diffs of a roadmap import.

Creates go in as one batch insert appended after the project's highest
order_index. Updates are independent per-row writes of only the changed
fields plus updated_at. Identical diffs are never written.

The two stages are independent: a failed insert batch does not stop the
updates. Any failure is raised as BulkApplyError once both stages have run,
carrying the counts that actually committed.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from nova_dream.directives.executor import NotAuthenticatedError
from nova_dream.models.mission import (
    ApplyResult,
    DiffClassification,
    MissionDiff,
    MissionStatus,
)
from nova_dream.store.records import QueryCache, RecordStore, StoreError

logger = logging.getLogger(__name__)


class BulkApplyError(Exception):
    """Raised when part of a bulk apply failed to commit."""

    def __init__(self, result: ApplyResult, errors: List[Exception]):
        self.result = result
        self.errors = errors
        super().__init__(
            f"Bulk apply partially failed ({len(errors)} error(s)); "
            f"committed {result.created} create(s) and {result.updated} update(s)"
        )


class BulkApplier:
    """Writes approved mission diffs for one project."""

    def __init__(self, store: RecordStore, cache: Optional[QueryCache] = None):
        self.store = store
        self.cache = cache

    def next_order_index(self, project_id: str, owner_id: str) -> int:
        """One past the highest order_index in the project, or 0."""
        rows = self.store.select(
            "missions",
            owner_id,
            filters={"project_id": project_id},
            order_by="order_index",
            descending=True,
            limit=1,
        )
        if not rows or rows[0].get("order_index") is None:
            return 0
        return rows[0]["order_index"] + 1

    def apply(
        self,
        project_id: str,
        diffs: Sequence[MissionDiff],
        owner_id: Optional[str],
    ) -> ApplyResult:
        if not owner_id:
            raise NotAuthenticatedError("User not authenticated")

        to_create = [d for d in diffs if d.classification == DiffClassification.CREATE]
        to_update = [d for d in diffs if d.classification == DiffClassification.UPDATE]
        result = ApplyResult()
        errors: List[Exception] = []

        if to_create:
            try:
                created = self._insert_batch(project_id, to_create, owner_id)
                result.created = len(created)
                result.created_ids = [row["id"] for row in created]
            except StoreError as e:
                logger.error("Mission insert batch failed for project %s: %s", project_id, e)
                errors.append(e)

        for diff in to_update:
            try:
                row = self._update_one(diff, owner_id)
                result.updated += 1
                result.updated_ids.append(row["id"])
            except StoreError as e:
                logger.error("Mission update %s failed: %s", diff.existing_id, e)
                errors.append(e)

        if self.cache is not None and (result.created or result.updated):
            self.cache.invalidate("missions")

        if errors:
            raise BulkApplyError(result, errors)
        return result

    def _insert_batch(
        self, project_id: str, diffs: List[MissionDiff], owner_id: str
    ) -> List[dict]:
        start = self.next_order_index(project_id, owner_id)
        rows = [
            {
                "project_id": project_id,
                "title": diff.proposed.title,
                "description": diff.proposed.description,
                "estimated_duration": diff.proposed.estimated_duration or None,
                "status": MissionStatus.PENDING.value,
                "order_index": start + offset,
                "deadline": None,
            }
            for offset, diff in enumerate(diffs)
        ]
        return self.store.insert("missions", rows, owner_id)

    def _update_one(self, diff: MissionDiff, owner_id: str) -> dict:
        if diff.existing is None:
            raise StoreError(f"Update diff for '{diff.proposed.title}' has no target mission")

        updates: dict = {"updated_at": datetime.utcnow()}
        if diff.changes is not None:
            if diff.changes.description is not None:
                updates["description"] = diff.proposed.description
            if diff.changes.estimated_duration is not None:
                updates["estimated_duration"] = diff.proposed.estimated_duration
        return self.store.update("missions", diff.existing.id, updates, owner_id)
