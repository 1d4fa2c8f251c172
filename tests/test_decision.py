"""Tests for the replication decision engine."""

import pytest

from common.constants import DELETE_MARKER_FIELD, SOURCE_REGION_FIELD, TIMESTAMP_FIELD
from common.types import BooleanValue, IntegerValue, StringValue, Timestamp
from replicator.replication.decision import (
    has_delete_marker,
    provenance_region,
    provenance_timestamp,
    should_replicate,
)
from replicator.replication.mode import ReplicationMode
from tests.factories import (
    LOCAL_REGION,
    REMOTE_REGION,
    delete_event,
    insert_event,
    provenance,
    snapshot,
    update_event,
)

MULTI = ReplicationMode.MULTI_REGION_PRIMARY
SINGLE = ReplicationMode.SINGLE_REGION_PRIMARY

T1 = Timestamp(1700000000, 0)
T2 = Timestamp(1700000050, 10)


def _plain(**extra):
    fields = {"status": StringValue("open")}
    fields.update(extra)
    return snapshot(fields=fields)


def _replicated(region, timestamp, deleted=False):
    fields = {"status": StringValue("open")}
    fields.update(provenance(region, timestamp, deleted=deleted))
    return snapshot(fields=fields)


ALL_EVENTS = [
    insert_event(_plain()),
    insert_event(_replicated(REMOTE_REGION, T1)),
    update_event(_plain(), _plain()),
    update_event(_replicated(REMOTE_REGION, T1), _replicated(REMOTE_REGION, T2)),
    delete_event(_plain()),
    delete_event(_replicated(REMOTE_REGION, T1, deleted=True)),
]


class TestSingleRegionPrimary:
    """Every local write propagates with a single primary."""

    @pytest.mark.parametrize("event", ALL_EVENTS)
    def test_always_replicates(self, event):
        assert should_replicate(event, LOCAL_REGION, SINGLE) is True


class TestNoneMode:
    """An unconfigured mode never replicates and never raises."""

    @pytest.mark.parametrize("event", ALL_EVENTS)
    def test_never_replicates(self, event):
        assert should_replicate(event, LOCAL_REGION, ReplicationMode.NONE) is False


class TestMultiRegionInsert:
    """Inserts under multi-region primary."""

    def test_insert_without_provenance(self):
        assert should_replicate(insert_event(_plain()), LOCAL_REGION, MULTI) is True

    def test_insert_with_only_source_region(self):
        after = _plain(**{SOURCE_REGION_FIELD: StringValue(REMOTE_REGION)})
        assert should_replicate(insert_event(after), LOCAL_REGION, MULTI) is True

    def test_insert_with_only_timestamp(self):
        after = snapshot(fields={TIMESTAMP_FIELD: provenance(REMOTE_REGION, T1)[TIMESTAMP_FIELD]})
        assert should_replicate(insert_event(after), LOCAL_REGION, MULTI) is True

    def test_replicated_insert_from_remote_region(self):
        event = insert_event(_replicated(REMOTE_REGION, T1))
        assert should_replicate(event, LOCAL_REGION, MULTI) is False

    def test_replicated_insert_declaring_local_region(self):
        event = insert_event(_replicated(LOCAL_REGION, T1))
        assert should_replicate(event, LOCAL_REGION, MULTI) is True


class TestMultiRegionUpdate:
    """Updates under multi-region primary."""

    def test_plain_user_edit(self):
        event = update_event(_plain(), _plain(status=StringValue("closed")))
        assert should_replicate(event, LOCAL_REGION, MULTI) is True

    def test_after_missing_timestamp(self):
        before = _replicated(REMOTE_REGION, T1)
        after = _plain(**{SOURCE_REGION_FIELD: StringValue(REMOTE_REGION)})
        assert should_replicate(update_event(before, after), LOCAL_REGION, MULTI) is True

    def test_after_missing_source_region(self):
        before = _replicated(REMOTE_REGION, T1)
        after = snapshot(fields={TIMESTAMP_FIELD: provenance(REMOTE_REGION, T1)[TIMESTAMP_FIELD]})
        assert should_replicate(update_event(before, after), LOCAL_REGION, MULTI) is True

    def test_first_replicated_write_on_local_document(self):
        event = update_event(_plain(), _replicated(REMOTE_REGION, T1))
        assert should_replicate(event, LOCAL_REGION, MULTI) is False

    def test_user_edit_of_replicated_document(self):
        before = _replicated(REMOTE_REGION, T1)
        after = snapshot(fields={
            "status": StringValue("closed"),
            **provenance(REMOTE_REGION, T1),
        })
        assert should_replicate(update_event(before, after), LOCAL_REGION, MULTI) is True

    def test_applied_write_with_newer_timestamp(self):
        event = update_event(_replicated(REMOTE_REGION, T1), _replicated(REMOTE_REGION, T2))
        assert should_replicate(event, LOCAL_REGION, MULTI) is False

    def test_applied_write_with_older_timestamp(self):
        event = update_event(_replicated(REMOTE_REGION, T2), _replicated(REMOTE_REGION, T1))
        assert should_replicate(event, LOCAL_REGION, MULTI) is False

    def test_nanos_difference_counts_as_change(self):
        event = update_event(
            _replicated(REMOTE_REGION, Timestamp(10, 1)),
            _replicated(REMOTE_REGION, Timestamp(10, 2))
        )
        assert should_replicate(event, LOCAL_REGION, MULTI) is False


class TestMultiRegionDelete:
    """Deletes under multi-region primary."""

    def test_plain_delete(self):
        assert should_replicate(delete_event(_plain()), LOCAL_REGION, MULTI) is True

    def test_delete_of_replicated_document_without_marker(self):
        event = delete_event(_replicated(REMOTE_REGION, T1))
        assert should_replicate(event, LOCAL_REGION, MULTI) is True

    def test_delete_consuming_marker(self):
        event = delete_event(_replicated(REMOTE_REGION, T1, deleted=True))
        assert should_replicate(event, LOCAL_REGION, MULTI) is False

    def test_false_marker_still_replicates(self):
        event = delete_event(_plain(**{DELETE_MARKER_FIELD: BooleanValue(False)}))
        assert should_replicate(event, LOCAL_REGION, MULTI) is True


class TestProvenanceAccessors:
    """Test provenance field readers."""

    def test_wrong_types_are_ignored(self):
        doc = snapshot(fields={
            TIMESTAMP_FIELD: IntegerValue(5),
            SOURCE_REGION_FIELD: IntegerValue(7),
        })

        assert provenance_timestamp(doc) is None
        assert provenance_region(doc) is None
        assert has_delete_marker(doc) is False

    def test_missing_snapshot(self):
        assert provenance_timestamp(None) is None
        assert provenance_region(None) is None
        assert has_delete_marker(None) is False
