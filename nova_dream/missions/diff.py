"""
Mission Diff Engine — classifies each proposed mission as create, update
or identical against the missions already stored for a project.

Behavioral Contract:
- Exactly one diff per proposed mission, in input order.
- A stored mission is the match target of at most one diff; earlier
  proposed missions claim their match first.
- Description changes count only when the proposed description is
  non-empty. Estimated duration changes count on any difference,
  including null against a value.
"""

from typing import List, Optional, Sequence, Set

from nova_dream.missions.similarity import MissionMatcher
from nova_dream.models.config import ReconcileConfig
from nova_dream.models.mission import (
    DiffClassification,
    DiffSummary,
    FieldChange,
    MissionChanges,
    MissionDiff,
    ProposedMission,
    StoredMission,
)


def detect_changes(
    proposed: ProposedMission, existing: StoredMission
) -> Optional[MissionChanges]:
    """Field-level changes, or None when nothing differs."""
    changes = MissionChanges()

    proposed_desc = proposed.description.strip()
    existing_desc = (existing.description or "").strip()
    if proposed_desc and proposed_desc != existing_desc:
        changes.description = FieldChange(old=existing_desc, new=proposed_desc)

    if proposed.estimated_duration != existing.estimated_duration:
        changes.estimated_duration = FieldChange(
            old=existing.estimated_duration,
            new=proposed.estimated_duration,
        )

    return None if changes.is_empty() else changes


def compare_missions(
    proposed: Sequence[ProposedMission],
    existing: Sequence[StoredMission],
    config: Optional[ReconcileConfig] = None,
) -> List[MissionDiff]:
    """Diff a roadmap against stored missions. Greedy O(N×M) scan."""
    matcher = MissionMatcher(config)
    claimed: Set[str] = set()
    diffs = []

    for mission in proposed:
        match = matcher.find_match(mission.title, existing, exclude_ids=claimed)
        if match is None:
            diffs.append(MissionDiff(
                classification=DiffClassification.CREATE,
                proposed=mission,
            ))
            continue

        claimed.add(match.mission.id)
        changes = detect_changes(mission, match.mission)
        diffs.append(MissionDiff(
            classification=(
                DiffClassification.UPDATE if changes else DiffClassification.IDENTICAL
            ),
            proposed=mission,
            existing=match.mission,
            changes=changes,
            similarity=match.score,
        ))

    return diffs


def summarize_diffs(diffs: Sequence[MissionDiff]) -> DiffSummary:
    """Counts per classification, in one pass."""
    summary = DiffSummary()
    for diff in diffs:
        if diff.classification == DiffClassification.CREATE:
            summary.to_create += 1
        elif diff.classification == DiffClassification.UPDATE:
            summary.to_update += 1
        else:
            summary.identical += 1
        summary.total += 1
    return summary
