"""Tests for the Mission Diff Engine."""

from nova_dream.missions.diff import compare_missions, detect_changes, summarize_diffs
from nova_dream.models.mission import (
    DiffClassification,
    ProposedMission,
    StoredMission,
)


def _stored(mission_id: str, title: str, description=None, duration=None, order=0) -> StoredMission:
    return StoredMission(
        id=mission_id,
        project_id="proj_1",
        title=title,
        description=description,
        estimated_duration=duration,
        order_index=order,
    )


class TestDetectChanges:
    def test_empty_description_is_ignored(self):
        existing = _stored("m1", "Launch", description="Old text", duration="2h")
        proposed = ProposedMission(title="Launch", description="", estimatedDuration="3h")

        changes = detect_changes(proposed, existing)

        assert changes.description is None
        assert changes.estimated_duration.old == "2h"
        assert changes.estimated_duration.new == "3h"
        assert changes.changed_fields() == ["estimated_duration"]

    def test_description_compared_trimmed(self):
        existing = _stored("m1", "Launch", description="  Same text ")
        proposed = ProposedMission(title="Launch", description="Same text")
        assert detect_changes(proposed, existing) is None

    def test_duration_null_against_value_is_a_change(self):
        existing = _stored("m1", "Launch", duration="1 week")
        proposed = ProposedMission(title="Launch")
        changes = detect_changes(proposed, existing)
        assert changes.estimated_duration.old == "1 week"
        assert changes.estimated_duration.new is None


class TestCompareMissions:
    def setup_method(self):
        self.existing = [
            _stored("m1", "Design the logo", description="Brand identity", duration="2 days"),
            _stored("m2", "Build the landing page", description="", duration=None),
        ]

    def test_classifications(self):
        proposed = [
            ProposedMission(title="Design the logo!", description="Brand identity", estimatedDuration="2 days"),
            ProposedMission(title="Build the landing pages", description="Hero and pricing"),
            ProposedMission(title="Set up analytics"),
        ]

        diffs = compare_missions(proposed, self.existing)

        assert [d.classification for d in diffs] == [
            DiffClassification.IDENTICAL,
            DiffClassification.UPDATE,
            DiffClassification.CREATE,
        ]
        assert diffs[0].existing_id == "m1"
        assert diffs[1].existing_id == "m2"
        assert diffs[1].changes.description.new == "Hero and pricing"
        assert diffs[1].changes.estimated_duration is None
        assert diffs[2].existing is None
        assert diffs[2].changes is None

    def test_one_diff_per_proposed_mission(self):
        proposed = [ProposedMission(title=f"Mission {i}") for i in range(7)]
        diffs = compare_missions(proposed, self.existing)
        summary = summarize_diffs(diffs)

        assert len(diffs) == 7
        assert summary.total == 7
        assert summary.to_create + summary.to_update + summary.identical == 7

    def test_stored_mission_matched_at_most_once(self):
        proposed = [
            ProposedMission(title="Design the logo", description="Brand identity", estimatedDuration="2 days"),
            ProposedMission(title="Design the logo", description="Brand identity", estimatedDuration="2 days"),
        ]
        diffs = compare_missions(proposed, self.existing)

        assert diffs[0].classification == DiffClassification.IDENTICAL
        assert diffs[1].classification == DiffClassification.CREATE

    def test_empty_inputs(self):
        assert compare_missions([], self.existing) == []
        diffs = compare_missions([ProposedMission(title="Only")], [])
        assert diffs[0].classification == DiffClassification.CREATE

    def test_summary_counts(self):
        proposed = [
            ProposedMission(title="Design the logo", description="New brief", estimatedDuration="2 days"),
            ProposedMission(title="Write blog post"),
            ProposedMission(title="Record video"),
        ]
        summary = summarize_diffs(compare_missions(proposed, self.existing))
        assert summary.model_dump() == {"to_create": 2, "to_update": 1, "identical": 0, "total": 3}
