"""Replication mode: which regions accept direct writes."""

from enum import Enum
from typing import Optional


class ReplicationMode(str, Enum):
    """
    NONE means the service is not configured and must refuse to operate.

    SINGLE_REGION_PRIMARY: one region accepts writes, the rest are read
    replicas fed only by replication.

    MULTI_REGION_PRIMARY: every region accepts writes; provenance fields are
    written to every replicated document to prevent replication loops.
    """
    NONE = "NONE"
    SINGLE_REGION_PRIMARY = "SINGLE_REGION_PRIMARY"
    MULTI_REGION_PRIMARY = "MULTI_REGION_PRIMARY"

    @classmethod
    def parse_fallback_to_none(cls, value: Optional[str]) -> 'ReplicationMode':
        """
        Parse a mode name, falling back to NONE when missing or unknown.

        Args:
            value: Mode name such as "MULTI_REGION_PRIMARY" (case-insensitive)

        Returns:
            Parsed ReplicationMode
        """
        if value is None:
            return cls.NONE
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.NONE
