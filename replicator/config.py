"""Configuration settings for the replicator service."""

import os
from dataclasses import dataclass
from typing import Optional

from common.constants import BUS_TIMEOUT_SECONDS, DEFAULT_BUS_PORT, DEFAULT_SERVICE_PORT
from replicator.exceptions import MisconfiguredError
from replicator.replication.mode import ReplicationMode


DATABASE_PATH = os.environ.get("REGIONSYNC_DATABASE_PATH", "/app/data/documents.db")

REPLICATOR_HOST = os.environ.get("REGIONSYNC_HOST", "0.0.0.0")

REPLICATOR_PORT = int(os.environ.get("REGIONSYNC_PORT", str(DEFAULT_SERVICE_PORT)))


@dataclass(frozen=True)
class ReplicationSettings:
    """
    Plain values handed to the replication core.

    The core never reads the environment itself; `from_env` is used by the
    hosting application only.
    """
    mode: ReplicationMode
    region: Optional[str]
    resource_prefix: str = ""
    database_path: str = DATABASE_PATH
    bus_address: str = f"localhost:{DEFAULT_BUS_PORT}"
    bus_topic: str = "regionsync"
    bus_timeout_seconds: float = BUS_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> 'ReplicationSettings':
        return cls(
            mode=ReplicationMode.parse_fallback_to_none(os.environ.get("REPLICATION_MODE")),
            region=os.environ.get("REGION") or None,
            resource_prefix=os.environ.get("REGIONSYNC_RESOURCE_PREFIX", ""),
            database_path=os.environ.get("REGIONSYNC_DATABASE_PATH", DATABASE_PATH),
            bus_address=os.environ.get("BUS_ADDRESS", f"localhost:{DEFAULT_BUS_PORT}"),
            bus_topic=os.environ.get("BUS_TOPIC", "regionsync"),
            bus_timeout_seconds=float(os.environ.get("BUS_TIMEOUT_SECONDS", str(BUS_TIMEOUT_SECONDS)))
        )

    def validate(self) -> None:
        """
        Raises:
            MisconfiguredError: If the mode is NONE or the region is missing
        """
        validate_replication(self.mode, self.region)


def validate_replication(mode: ReplicationMode, region: Optional[str]) -> None:
    """
    Reject configurations the replication core must not run with.

    Raises:
        MisconfiguredError: If the mode is NONE or the region is missing
    """
    if not isinstance(mode, ReplicationMode):
        raise MisconfiguredError(f"Unknown replication mode: {mode!r}")
    if mode == ReplicationMode.NONE:
        raise MisconfiguredError("Replication mode is not configured (REPLICATION_MODE)")
    if not region:
        raise MisconfiguredError("Local region is not configured (REGION)")
