"""
Change applier for replication.

Applies changes received from other regions to the local document store with
last-writer-wins conflict resolution. Every write is conditioned on the
provenance timestamp already stored, so redelivered or out-of-order changes
for the same document never regress its state.
"""

from enum import Enum
from typing import Any, Dict, Optional

from common.constants import DELETE_MARKER_FIELD, SOURCE_REGION_FIELD, TIMESTAMP_FIELD
from common.logging_config import get_logger
from common.protocol import ChangeEvent
from common.types import Operation, Timestamp
from replicator.config import validate_replication
from replicator.document_store import DocumentStore
from replicator.exceptions import ResourceNameError
from replicator.replication.mode import ReplicationMode
from replicator.replication.value_codec import to_store
from replicator.resource_names import extract_path, replace_region

logger = get_logger(__name__)


class ApplyOutcome(str, Enum):
    SAME_REGION = "same_region"
    DROPPED = "dropped"
    WRITTEN = "written"
    STALE = "stale"
    FLAGGED = "flagged"
    DELETED = "deleted"
    ABSENT = "absent"


def is_newer_than_existing(incoming: Optional[Timestamp]):
    """
    Build the conditional-write predicate for an incoming write.

    The write wins when the existing record is absent, carries no provenance
    timestamp, or carries a strictly older one.
    """
    def _predicate(existing: Optional[Dict[str, Any]]) -> bool:
        if existing is None:
            return True
        existing_timestamp = existing.get(TIMESTAMP_FIELD)
        if not isinstance(existing_timestamp, Timestamp):
            return True
        if incoming is None:
            return False
        return existing_timestamp < incoming

    return _predicate


def document_exists(existing: Optional[Dict[str, Any]]) -> bool:
    return existing is not None


class ChangeApplier:
    """
    Applies remote change events to the local store.
    """

    def __init__(self, store: DocumentStore, local_region: str, mode: ReplicationMode):
        """
        Raises:
            MisconfiguredError: If mode is NONE or local_region is empty
        """
        validate_replication(mode, local_region)
        self.store = store
        self.local_region = local_region
        self.mode = mode

    def apply(self, event: ChangeEvent, remote_region: str) -> ApplyOutcome:
        """
        Apply a change published by another region.

        Args:
            event: Change event decoded from the bus payload
            remote_region: Region that published the change

        Returns:
            What happened to the local document

        Raises:
            StoreUnavailableError: If the store fails during the transaction
        """
        if remote_region == self.local_region:
            logger.info(f"Same region {self.local_region}, skipping [resource_id={event.resource_id}]")
            return ApplyOutcome.SAME_REGION

        try:
            path = extract_path(event.resource_id)
        except ResourceNameError as e:
            logger.warning(f"Dropping change with malformed resource id: {e}")
            return ApplyOutcome.DROPPED

        local_resource_id = replace_region(event.resource_id, self.local_region)

        if event.operation in (Operation.INSERT, Operation.UPDATE):
            return self._apply_write(event, path, remote_region, local_resource_id)
        return self._apply_delete(path, remote_region, local_resource_id)

    def _apply_write(
        self,
        event: ChangeEvent,
        path: str,
        remote_region: str,
        local_resource_id: str
    ) -> ApplyOutcome:
        after = event.after
        try:
            record = to_store(after.fields, self.store)
        except ResourceNameError as e:
            logger.warning(f"Dropping change with malformed reference [path={path}]: {e}")
            return ApplyOutcome.DROPPED

        incoming = after.update_time
        if self.mode == ReplicationMode.MULTI_REGION_PRIMARY:
            if incoming is None:
                logger.warning(f"Dropping change without update time [path={path}]")
                return ApplyOutcome.DROPPED
            record[TIMESTAMP_FIELD] = incoming
            record[SOURCE_REGION_FIELD] = remote_region

        written = self.store.conditional_write(path, record, is_newer_than_existing(incoming))

        if not written:
            logger.debug(
                f"Stale {event.operation.value} ignored [path={path}, "
                f"source_region={remote_region}, timestamp={incoming}]"
            )
            return ApplyOutcome.STALE

        logger.info(
            f"Applied {event.operation.value} [resource_id={local_resource_id}, "
            f"source_region={remote_region}]"
        )
        return ApplyOutcome.WRITTEN

    def _apply_delete(self, path: str, remote_region: str, local_resource_id: str) -> ApplyOutcome:
        if self.mode == ReplicationMode.SINGLE_REGION_PRIMARY:
            self.store.delete(path)
            logger.info(f"Applied DELETE [resource_id={local_resource_id}, source_region={remote_region}]")
            return ApplyOutcome.DELETED

        # The feed does not carry the deletion instant; apply time stands in for it
        updates = {
            DELETE_MARKER_FIELD: True,
            SOURCE_REGION_FIELD: remote_region,
            TIMESTAMP_FIELD: self.store.now(),
        }

        flagged = self.store.conditional_flag_update(path, updates, document_exists)
        if not flagged:
            logger.debug(f"Document already absent, nothing to flag [path={path}]")
            return ApplyOutcome.ABSENT

        logger.info(
            f"Flagged document for delete [resource_id={local_resource_id}, "
            f"source_region={remote_region}]"
        )
        return ApplyOutcome.FLAGGED
