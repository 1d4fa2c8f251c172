"""
Wire message definitions (change events, bus messages) and their JSON formats.

Change-feed notifications use the document-event JSON layout:

    {"value": <document>, "oldValue": <document>}

where a document is `{"name", "fields", "createTime", "updateTime"}` and each
field value is an object keyed by its type tag (`stringValue`, `mapValue`, ...).
Unknown or unset type tags are dropped while decoding.
"""

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from common.types import (
    NANOS_PER_SECOND,
    ArrayValue,
    BooleanValue,
    BytesValue,
    DocumentSnapshot,
    DoubleValue,
    GeoPoint,
    GeoPointValue,
    IntegerValue,
    MapValue,
    NullValue,
    Operation,
    ReferenceValue,
    StringValue,
    Timestamp,
    TimestampValue,
    Value,
)

INTEGER_PATTERN = re.compile(r"^-?\d+$")


def _strict_int(raw: Any, what: str) -> int:
    # bool is an int subclass
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and INTEGER_PATTERN.match(raw):
        return int(raw)
    raise ValueError(f"Invalid {what}: {raw!r}")


def timestamp_to_json(timestamp: Timestamp) -> Dict[str, int]:
    return {"seconds": timestamp.seconds, "nanos": timestamp.nanos}


def timestamp_from_json(obj: Optional[Dict[str, Any]]) -> Optional[Timestamp]:
    """
    Raises:
        ValueError: If seconds or nanos are not integers, or nanos is outside [0, 1e9)
    """
    if obj is None:
        return None
    seconds = _strict_int(obj.get("seconds", 0), "timestamp seconds")
    nanos = _strict_int(obj.get("nanos", 0), "timestamp nanos")
    if not 0 <= nanos < NANOS_PER_SECOND:
        raise ValueError(f"Timestamp nanos out of range: {nanos}")
    return Timestamp(seconds=seconds, nanos=nanos)


def value_to_json(value: Value) -> Dict[str, Any]:
    """
    Encode a document value into its tagged JSON object.

    Raises:
        TypeError: If value is not one of the document value types
    """
    if isinstance(value, NullValue):
        return {"nullValue": None}
    if isinstance(value, BooleanValue):
        return {"booleanValue": value.value}
    if isinstance(value, BytesValue):
        return {"bytesValue": base64.b64encode(value.value).decode("ascii")}
    if isinstance(value, DoubleValue):
        return {"doubleValue": value.value}
    if isinstance(value, IntegerValue):
        return {"integerValue": str(value.value)}
    if isinstance(value, StringValue):
        return {"stringValue": value.value}
    if isinstance(value, TimestampValue):
        return {"timestampValue": timestamp_to_json(value.value)}
    if isinstance(value, GeoPointValue):
        return {"geoPointValue": {
            "latitude": value.value.latitude,
            "longitude": value.value.longitude
        }}
    if isinstance(value, ArrayValue):
        return {"arrayValue": {"values": [value_to_json(v) for v in value.values]}}
    if isinstance(value, MapValue):
        return {"mapValue": {"fields": fields_to_json(value.fields)}}
    if isinstance(value, ReferenceValue):
        return {"referenceValue": value.resource_id}
    raise TypeError(f"Unsupported document value: {type(value).__name__}")


def value_from_json(obj: Dict[str, Any]) -> Optional[Value]:
    """
    Decode a tagged JSON object into a document value.

    Returns:
        The decoded value, or None when the type tag is unset or unknown

    Raises:
        ValueError: If a boolean, integer or timestamp payload has the wrong JSON type
    """
    if "nullValue" in obj:
        return NullValue()
    if "booleanValue" in obj:
        raw = obj["booleanValue"]
        if not isinstance(raw, bool):
            raise ValueError(f"Invalid booleanValue: {raw!r}")
        return BooleanValue(raw)
    if "bytesValue" in obj:
        return BytesValue(base64.b64decode(obj["bytesValue"]))
    if "doubleValue" in obj:
        return DoubleValue(float(obj["doubleValue"]))
    if "integerValue" in obj:
        return IntegerValue(_strict_int(obj["integerValue"], "integerValue"))
    if "stringValue" in obj:
        return StringValue(obj["stringValue"])
    if "timestampValue" in obj:
        return TimestampValue(timestamp_from_json(obj["timestampValue"]))
    if "geoPointValue" in obj:
        point = obj["geoPointValue"]
        return GeoPointValue(GeoPoint(
            latitude=float(point.get("latitude", 0.0)),
            longitude=float(point.get("longitude", 0.0))
        ))
    if "arrayValue" in obj:
        decoded = (value_from_json(v) for v in obj["arrayValue"].get("values", []))
        return ArrayValue(tuple(v for v in decoded if v is not None))
    if "mapValue" in obj:
        return MapValue(fields_from_json(obj["mapValue"].get("fields", {})))
    if "referenceValue" in obj:
        return ReferenceValue(obj["referenceValue"])
    return None


def fields_to_json(fields: Dict[str, Value]) -> Dict[str, Any]:
    return {name: value_to_json(value) for name, value in fields.items()}


def fields_from_json(obj: Dict[str, Any]) -> Dict[str, Value]:
    fields = {}
    for name, raw in obj.items():
        value = value_from_json(raw)
        if value is not None:
            fields[name] = value
    return fields


def document_to_json(document: DocumentSnapshot) -> Dict[str, Any]:
    obj = {"name": document.name, "fields": fields_to_json(document.fields)}
    if document.create_time is not None:
        obj["createTime"] = timestamp_to_json(document.create_time)
    if document.update_time is not None:
        obj["updateTime"] = timestamp_to_json(document.update_time)
    return obj


def document_from_json(obj: Dict[str, Any]) -> DocumentSnapshot:
    return DocumentSnapshot(
        name=obj.get("name", ""),
        fields=fields_from_json(obj.get("fields", {})),
        create_time=timestamp_from_json(obj.get("createTime")),
        update_time=timestamp_from_json(obj.get("updateTime"))
    )


@dataclass(frozen=True)
class ChangeEvent:
    """One document mutation as delivered by the change feed."""
    operation: Operation
    resource_id: str
    before: Optional[DocumentSnapshot] = None
    after: Optional[DocumentSnapshot] = None

    @classmethod
    def from_snapshots(
        cls,
        before: Optional[DocumentSnapshot],
        after: Optional[DocumentSnapshot]
    ) -> 'ChangeEvent':
        """
        Build an event, inferring the operation from the snapshots present.

        Raises:
            ValueError: If neither snapshot is present or the resource id is missing
        """
        if after is not None and before is not None:
            operation = Operation.UPDATE
        elif after is not None:
            operation = Operation.INSERT
        elif before is not None:
            operation = Operation.DELETE
        else:
            raise ValueError("Change event carries neither a value nor an old value")

        resource_id = after.name if after is not None and after.name else None
        if resource_id is None and before is not None and before.name:
            resource_id = before.name
        if not resource_id:
            raise ValueError("Change event is missing the document resource id")

        return cls(operation=operation, resource_id=resource_id, before=before, after=after)

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        obj = {}
        if self.after is not None:
            obj["value"] = document_to_json(self.after)
        if self.before is not None:
            obj["oldValue"] = document_to_json(self.before)
        return json.dumps(obj).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes) -> 'ChangeEvent':
        """
        Deserialize from JSON bytes.

        Raises:
            ValueError: If the payload is not a valid change event
        """
        obj = json.loads(data)
        if not isinstance(obj, dict):
            raise ValueError("Change event payload must be a JSON object")
        after = document_from_json(obj["value"]) if obj.get("value") else None
        before = document_from_json(obj["oldValue"]) if obj.get("oldValue") else None
        return cls.from_snapshots(before, after)


@dataclass
class BusMessage:
    """Message published to the ordered bus."""
    ordering_key: str
    payload: bytes
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return json.dumps({
            'ordering_key': self.ordering_key,
            'attributes': self.attributes,
            'payload': base64.b64encode(self.payload).decode('ascii')
        }).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes) -> 'BusMessage':
        """Deserialize from JSON bytes."""
        obj = json.loads(data)
        return cls(
            ordering_key=obj['ordering_key'],
            attributes=dict(obj.get('attributes', {})),
            payload=base64.b64decode(obj['payload'])
        )


@dataclass
class PublishResponse:
    """Response message for the bus Publish RPC."""
    message_id: str

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return json.dumps({'message_id': self.message_id}).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes) -> 'PublishResponse':
        """Deserialize from JSON bytes."""
        obj = json.loads(data)
        return cls(message_id=obj['message_id'])
