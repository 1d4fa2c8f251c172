"""Shared data type definitions (Timestamp, GeoPoint, document values, snapshots)."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class Timestamp:
    """
    Point in time with nanosecond precision.

    Ordering compares seconds first, then nanos.
    """
    seconds: int
    nanos: int = 0

    @classmethod
    def from_nanoseconds(cls, total_nanos: int) -> Timestamp:
        seconds, nanos = divmod(total_nanos, NANOS_PER_SECOND)
        return cls(seconds=seconds, nanos=nanos)

    @classmethod
    def now(cls) -> Timestamp:
        return cls.from_nanoseconds(time.time_ns())


@dataclass(frozen=True)
class GeoPoint:
    """Latitude/longitude pair."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DocumentHandle:
    """
    Store-local reference to a document.

    Created by the document store from a document path; carries the
    fully-qualified resource id of the document in the store's own region.
    """
    path: str
    resource_id: str


class Value:
    """Base class of the closed set of document value types."""
    __slots__ = ()


@dataclass(frozen=True)
class NullValue(Value):
    pass


@dataclass(frozen=True)
class BooleanValue(Value):
    value: bool


@dataclass(frozen=True)
class BytesValue(Value):
    value: bytes


@dataclass(frozen=True)
class DoubleValue(Value):
    value: float


@dataclass(frozen=True)
class IntegerValue(Value):
    value: int


@dataclass(frozen=True)
class StringValue(Value):
    value: str


@dataclass(frozen=True)
class TimestampValue(Value):
    value: Timestamp


@dataclass(frozen=True)
class GeoPointValue(Value):
    value: GeoPoint


@dataclass(frozen=True)
class ArrayValue(Value):
    values: Tuple[Value, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class MapValue(Value):
    fields: Dict[str, Value] = field(default_factory=dict)


@dataclass(frozen=True)
class ReferenceValue(Value):
    resource_id: str


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    State of a single document as delivered by the change feed.
    """
    name: str
    fields: Dict[str, Value] = field(default_factory=dict)
    create_time: Optional[Timestamp] = None
    update_time: Optional[Timestamp] = None

    def get(self, field_name: str) -> Optional[Value]:
        return self.fields.get(field_name)


class Operation(str, Enum):
    """Kind of mutation described by a change event."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
