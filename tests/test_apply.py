"""Tests for Bulk Apply."""

import pytest

from nova_dream.directives.executor import NotAuthenticatedError
from nova_dream.missions.apply import BulkApplier, BulkApplyError
from nova_dream.missions.diff import compare_missions
from nova_dream.models.mission import (
    DiffClassification,
    ProposedMission,
    StoredMission,
)
from nova_dream.store.records import QueryCache, RecordStore, StoreError

OWNER = "user_1"


class SelectiveFailStore(RecordStore):
    def __init__(self, fail_insert=False, fail_update_ids=()):
        super().__init__()
        self.fail_insert = fail_insert
        self.fail_update_ids = set(fail_update_ids)
        self.update_calls = []

    def insert(self, collection, rows, owner_id):
        if collection == "missions" and self.fail_insert:
            raise StoreError("insert rejected")
        return super().insert(collection, rows, owner_id)

    def update(self, collection, record_id, partial, owner_id):
        self.update_calls.append((record_id, dict(partial)))
        if record_id in self.fail_update_ids:
            raise StoreError(f"update rejected for {record_id}")
        return super().update(collection, record_id, partial, owner_id)


def _seed(store: RecordStore, titles, project_id="proj_1", start=0):
    rows = [
        {
            "id": f"m{start + i}",
            "project_id": project_id,
            "title": title,
            "description": "Existing",
            "estimated_duration": "1 day",
            "status": "pending",
            "order_index": start + i,
        }
        for i, title in enumerate(titles)
    ]
    store.insert("missions", rows, OWNER)


def _stored(store: RecordStore, project_id="proj_1"):
    return [
        StoredMission.model_validate(r)
        for r in store.select("missions", OWNER, filters={"project_id": project_id}, order_by="order_index")
    ]


class TestBulkApplier:
    def test_order_index_continues_after_max(self):
        store = RecordStore()
        _seed(store, ["Alpha", "Beta", "Gamma", "Delta", "Epsilon", "Zeta"])
        applier = BulkApplier(store)
        proposed = [ProposedMission(title=t) for t in ("Kickoff call", "Write brief", "Ship v1")]
        diffs = compare_missions(proposed, _stored(store))

        result = applier.apply("proj_1", diffs, OWNER)

        assert result.created == 3
        created = [m for m in _stored(store) if m.id in result.created_ids]
        assert [(m.title, m.order_index) for m in created] == [
            ("Kickoff call", 6),
            ("Write brief", 7),
            ("Ship v1", 8),
        ]
        assert all(m.status.value == "pending" for m in created)

    def test_first_missions_start_at_zero(self):
        store = RecordStore()
        applier = BulkApplier(store)
        diffs = compare_missions([ProposedMission(title="First"), ProposedMission(title="Second")], [])

        applier.apply("proj_new", diffs, OWNER)

        assert [m.order_index for m in _stored(store, "proj_new")] == [0, 1]

    def test_order_index_is_per_project(self):
        store = RecordStore()
        _seed(store, ["Other project mission"], project_id="proj_2", start=40)
        applier = BulkApplier(store)
        assert applier.next_order_index("proj_1", OWNER) == 0
        assert applier.next_order_index("proj_2", OWNER) == 41

    def test_updates_write_only_changed_fields(self):
        store = SelectiveFailStore()
        _seed(store, ["Design the logo", "Build the site"])
        proposed = [
            ProposedMission(title="Design the logo", description="", estimatedDuration="3 days"),
            ProposedMission(title="Build the site", description="Existing", estimatedDuration="1 day"),
        ]
        diffs = compare_missions(proposed, _stored(store))
        assert [d.classification for d in diffs] == [
            DiffClassification.UPDATE,
            DiffClassification.IDENTICAL,
        ]

        result = BulkApplier(store).apply("proj_1", diffs, OWNER)

        assert result.updated == 1
        assert result.created == 0
        record_id, partial = store.update_calls[0]
        assert record_id == "m0"
        assert set(partial) == {"estimated_duration", "updated_at"}
        assert len(store.update_calls) == 1
        logo = store.get("missions", "m0", OWNER)
        assert logo["estimated_duration"] == "3 days"
        assert logo["description"] == "Existing"

    def test_insert_failure_does_not_block_updates(self):
        store = SelectiveFailStore(fail_insert=True)
        _seed(store, ["Design the logo"])
        proposed = [
            ProposedMission(title="Design the logo", description="New brief", estimatedDuration="1 day"),
            ProposedMission(title="Brand new mission"),
        ]
        diffs = compare_missions(proposed, _stored(store))

        with pytest.raises(BulkApplyError) as exc_info:
            BulkApplier(store).apply("proj_1", diffs, OWNER)

        error = exc_info.value
        assert error.result.created == 0
        assert error.result.updated == 1
        assert len(error.errors) == 1
        assert store.get("missions", "m0", OWNER)["description"] == "New brief"

    def test_update_failure_reports_committed_counts(self):
        store = SelectiveFailStore(fail_update_ids={"m1"})
        _seed(store, ["Design the logo", "Build the site", "Write the copy"])
        proposed = [
            ProposedMission(title=t, description="Changed")
            for t in ("Design the logo", "Build the site", "Write the copy")
        ] + [ProposedMission(title="Extra mission")]
        diffs = compare_missions(proposed, _stored(store))

        with pytest.raises(BulkApplyError) as exc_info:
            BulkApplier(store).apply("proj_1", diffs, OWNER)

        result = exc_info.value.result
        assert result.created == 1
        assert result.updated == 2
        assert result.updated_ids == ["m0", "m2"]

    def test_unauthenticated_apply_is_rejected(self):
        store = SelectiveFailStore()
        diffs = compare_missions([ProposedMission(title="x")], [])
        with pytest.raises(NotAuthenticatedError):
            BulkApplier(store).apply("proj_1", diffs, None)
        assert store.select("missions", OWNER) == []

    def test_identical_diffs_are_not_written(self):
        store = SelectiveFailStore()
        _seed(store, ["Design the logo"])
        diffs = compare_missions(
            [ProposedMission(title="Design the logo", description="Existing", estimatedDuration="1 day")],
            _stored(store),
        )
        result = BulkApplier(store).apply("proj_1", diffs, OWNER)
        assert result.created == 0 and result.updated == 0
        assert store.update_calls == []

    def test_apply_invalidates_mission_cache(self):
        store = RecordStore()
        cache = QueryCache(store)
        cache.select("missions", OWNER, project_id="proj_1")
        BulkApplier(store, cache=cache).apply(
            "proj_1", compare_missions([ProposedMission(title="x")], []), OWNER
        )
        assert not cache.is_cached("missions")
