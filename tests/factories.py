"""Builders for snapshots and change events used across tests."""

from typing import Dict, Optional

from common.constants import DELETE_MARKER_FIELD, SOURCE_REGION_FIELD, TIMESTAMP_FIELD
from common.protocol import ChangeEvent
from common.types import (
    BooleanValue,
    DocumentSnapshot,
    StringValue,
    Timestamp,
    TimestampValue,
    Value,
)
from replicator.resource_names import build_resource_id

PREFIX = "projects/demo"
LOCAL_REGION = "us"
REMOTE_REGION = "eu"


def resource_id(path: str, region: str = LOCAL_REGION) -> str:
    return build_resource_id(PREFIX, region, path)


def provenance(
    region: str,
    timestamp: Timestamp,
    deleted: bool = False
) -> Dict[str, Value]:
    fields = {
        SOURCE_REGION_FIELD: StringValue(region),
        TIMESTAMP_FIELD: TimestampValue(timestamp),
    }
    if deleted:
        fields[DELETE_MARKER_FIELD] = BooleanValue(True)
    return fields


def snapshot(
    path: str = "orders/42",
    fields: Optional[Dict[str, Value]] = None,
    region: str = LOCAL_REGION,
    update_time: Optional[Timestamp] = None
) -> DocumentSnapshot:
    return DocumentSnapshot(
        name=resource_id(path, region),
        fields=dict(fields or {}),
        create_time=Timestamp(1700000000, 0),
        update_time=update_time or Timestamp(1700000000, 0)
    )


def insert_event(after: DocumentSnapshot) -> ChangeEvent:
    return ChangeEvent.from_snapshots(None, after)


def update_event(before: DocumentSnapshot, after: DocumentSnapshot) -> ChangeEvent:
    return ChangeEvent.from_snapshots(before, after)


def delete_event(before: DocumentSnapshot) -> ChangeEvent:
    return ChangeEvent.from_snapshots(before, None)
