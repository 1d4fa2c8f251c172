"""
Publish path: forwards local change-feed notifications to the message bus.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.constants import REGION_ATTRIBUTE
from common.logging_config import get_logger
from common.protocol import BusMessage, ChangeEvent
from replicator.bus_client import MessageBus
from replicator.config import validate_replication
from replicator.document_store import DocumentStore
from replicator.exceptions import ResourceNameError
from replicator.replication.decision import has_delete_marker, should_replicate
from replicator.replication.mode import ReplicationMode
from replicator.resource_names import extract_path, extract_region

logger = get_logger(__name__)


class PublishOutcome(str, Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    DELETED = "deleted"
    DROPPED = "dropped"


@dataclass(frozen=True)
class PublishResult:
    outcome: PublishOutcome
    message_id: Optional[str] = None


class ChangePublisher:
    """
    Decides for each local change whether to publish it, and publishes it.
    """

    def __init__(
        self,
        store: DocumentStore,
        bus: MessageBus,
        local_region: str,
        mode: ReplicationMode
    ):
        """
        Raises:
            MisconfiguredError: If mode is NONE or local_region is empty
        """
        validate_replication(mode, local_region)
        self.store = store
        self.bus = bus
        self.local_region = local_region
        self.mode = mode

    async def handle_notification(self, data: bytes) -> PublishResult:
        """
        Handle one raw change-feed notification.

        Args:
            data: Notification payload (JSON change event)

        Returns:
            PublishResult describing what was done

        Raises:
            BusUnavailableError: If publishing fails
            StoreUnavailableError: If the local hard delete fails
        """
        try:
            event = ChangeEvent.from_json(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Dropping unreadable change notification: {e}")
            return PublishResult(PublishOutcome.DROPPED)

        return await self.publish_change(event, data)

    async def publish_change(self, event: ChangeEvent, payload: bytes) -> PublishResult:
        """
        Publish a decoded change event.

        Args:
            event: Decoded change event
            payload: Raw notification bytes, forwarded unchanged as the message payload
        """
        try:
            region = extract_region(event.resource_id)
            path = extract_path(event.resource_id)
        except ResourceNameError as e:
            logger.warning(f"Dropping change notification: {e}")
            return PublishResult(PublishOutcome.DROPPED)

        if region != self.local_region:
            logger.debug(
                f"Change notification names region {region}, publishing as {self.local_region} "
                f"[path={path}]"
            )

        if self.mode == ReplicationMode.MULTI_REGION_PRIMARY and has_delete_marker(event.after):
            # A remote delete was staged as a flag; finish it locally without publishing
            self.store.delete(path)
            logger.info(f"Completed replicated delete [path={path}]")
            return PublishResult(PublishOutcome.DELETED)

        if not should_replicate(event, self.local_region, self.mode):
            logger.debug(f"Not replicating {event.operation.value} [path={path}]")
            return PublishResult(PublishOutcome.SKIPPED)

        message = BusMessage(
            ordering_key=path,
            attributes={REGION_ATTRIBUTE: self.local_region},
            payload=payload
        )

        message_id = await self.bus.publish(message)

        logger.info(
            f"Published {event.operation.value} [path={path}, region={self.local_region}, "
            f"message_id={message_id}]"
        )

        return PublishResult(PublishOutcome.PUBLISHED, message_id=message_id)
