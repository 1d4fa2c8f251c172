"""
Apply path: applies messages delivered by the bus to the local store.
"""

from typing import Dict

from common.constants import REGION_ATTRIBUTE
from common.logging_config import get_logger
from common.protocol import ChangeEvent
from replicator.replication.applier import ApplyOutcome, ChangeApplier

logger = get_logger(__name__)


class ChangeConsumer:
    """
    Decodes bus messages and hands them to the change applier.
    """

    def __init__(self, applier: ChangeApplier):
        self.applier = applier

    def handle_message(self, attributes: Dict[str, str], payload: bytes) -> ApplyOutcome:
        """
        Handle one bus message.

        Args:
            attributes: Message attributes; `region` names the publishing region
            payload: Serialized change event

        Returns:
            Outcome of the apply

        Raises:
            StoreUnavailableError: If the store fails during the apply
        """
        remote_region = (attributes or {}).get(REGION_ATTRIBUTE)
        if not remote_region:
            logger.info(f"Bus message missing '{REGION_ATTRIBUTE}' attribute, dropping")
            return ApplyOutcome.DROPPED

        try:
            event = ChangeEvent.from_json(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Dropping unreadable bus message from {remote_region}: {e}")
            return ApplyOutcome.DROPPED

        return self.applier.apply(event, remote_region)
