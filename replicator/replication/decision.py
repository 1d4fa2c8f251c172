"""
Replication decision engine.

Decides, for every local change, whether it originated locally and must be
forwarded to the bus, or was written by the apply path and must not be
forwarded again.
"""

from typing import Optional

from common.constants import DELETE_MARKER_FIELD, SOURCE_REGION_FIELD, TIMESTAMP_FIELD
from common.protocol import ChangeEvent
from common.types import (
    BooleanValue,
    DocumentSnapshot,
    Operation,
    StringValue,
    Timestamp,
    TimestampValue,
)
from replicator.replication.mode import ReplicationMode


def provenance_timestamp(snapshot: Optional[DocumentSnapshot]) -> Optional[Timestamp]:
    if snapshot is None:
        return None
    value = snapshot.get(TIMESTAMP_FIELD)
    if isinstance(value, TimestampValue):
        return value.value
    return None


def provenance_region(snapshot: Optional[DocumentSnapshot]) -> Optional[str]:
    if snapshot is None:
        return None
    value = snapshot.get(SOURCE_REGION_FIELD)
    if isinstance(value, StringValue):
        return value.value
    return None


def has_delete_marker(snapshot: Optional[DocumentSnapshot]) -> bool:
    if snapshot is None:
        return False
    value = snapshot.get(DELETE_MARKER_FIELD)
    return isinstance(value, BooleanValue) and value.value


def should_replicate(event: ChangeEvent, local_region: str, mode: ReplicationMode) -> bool:
    """
    Decide whether a local change must be published to the bus.

    Args:
        event: Change observed on the local change feed
        local_region: Region this process runs in
        mode: Configured replication mode

    Returns:
        True if the change must be forwarded to other regions
    """
    if mode == ReplicationMode.SINGLE_REGION_PRIMARY:
        return True

    if mode != ReplicationMode.MULTI_REGION_PRIMARY:
        return False

    if event.operation == Operation.INSERT:
        return _should_replicate_insert(event.after, local_region)
    if event.operation == Operation.UPDATE:
        return _should_replicate_update(event.before, event.after)
    if event.operation == Operation.DELETE:
        return not has_delete_marker(event.before)
    return False


def _should_replicate_insert(after: Optional[DocumentSnapshot], local_region: str) -> bool:
    source_region = provenance_region(after)
    if source_region is None or provenance_timestamp(after) is None:
        return True

    # Inserted by the apply path; only re-forward when this region is the declared source
    return source_region == local_region


def _should_replicate_update(
    before: Optional[DocumentSnapshot],
    after: Optional[DocumentSnapshot]
) -> bool:
    after_timestamp = provenance_timestamp(after)
    if provenance_region(after) is None or after_timestamp is None:
        return True

    before_timestamp = provenance_timestamp(before)
    if before_timestamp is None:
        # First replicated write landing on a previously local document
        return False

    # Unchanged provenance means a user edited a replicated record
    return after_timestamp == before_timestamp
