"""
Conversion between wire document values and store-native records.

Store-native values are plain Python objects: None, bool, bytes, float, int,
str, Timestamp, GeoPoint, DocumentHandle, list and dict.
"""

from typing import Any, Dict

from common.types import (
    ArrayValue,
    BooleanValue,
    BytesValue,
    DocumentHandle,
    DoubleValue,
    GeoPoint,
    GeoPointValue,
    IntegerValue,
    MapValue,
    NullValue,
    ReferenceValue,
    StringValue,
    Timestamp,
    TimestampValue,
    Value,
)
from replicator.document_store import DocumentStore
from replicator.resource_names import extract_path


def to_store(fields: Dict[str, Value], store: DocumentStore) -> Dict[str, Any]:
    """
    Convert wire document fields into a store record.

    Args:
        fields: Document fields keyed by name
        store: Store used to create document handles for reference values

    Returns:
        Record of store-native values

    Raises:
        ResourceNameError: If a reference value is not a valid resource id
    """
    return {name: value_to_store(value, store) for name, value in fields.items()}


def value_to_store(value: Value, store: DocumentStore) -> Any:
    if isinstance(value, NullValue):
        return None
    if isinstance(value, BooleanValue):
        return value.value
    if isinstance(value, BytesValue):
        return value.value
    if isinstance(value, DoubleValue):
        return value.value
    if isinstance(value, IntegerValue):
        return value.value
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, TimestampValue):
        return Timestamp(seconds=value.value.seconds, nanos=value.value.nanos)
    if isinstance(value, GeoPointValue):
        return GeoPoint(latitude=value.value.latitude, longitude=value.value.longitude)
    if isinstance(value, ArrayValue):
        return [value_to_store(item, store) for item in value.values]
    if isinstance(value, MapValue):
        return to_store(value.fields, store)
    if isinstance(value, ReferenceValue):
        return store.new_reference(extract_path(value.resource_id))
    raise TypeError(f"Unsupported document value: {type(value).__name__}")


def to_wire(record: Dict[str, Any]) -> Dict[str, Value]:
    """
    Convert a store record back into wire document fields.
    """
    return {name: value_to_wire(value) for name, value in record.items()}


def value_to_wire(value: Any) -> Value:
    # bool before int, bool is an int subclass
    if value is None:
        return NullValue()
    if isinstance(value, bool):
        return BooleanValue(value)
    if isinstance(value, int):
        return IntegerValue(value)
    if isinstance(value, float):
        return DoubleValue(value)
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, (bytes, bytearray)):
        return BytesValue(bytes(value))
    if isinstance(value, Timestamp):
        return TimestampValue(value)
    if isinstance(value, GeoPoint):
        return GeoPointValue(value)
    if isinstance(value, DocumentHandle):
        return ReferenceValue(value.resource_id)
    if isinstance(value, (list, tuple)):
        return ArrayValue(tuple(value_to_wire(item) for item in value))
    if isinstance(value, dict):
        return MapValue(to_wire(value))
    raise TypeError(f"Unsupported store value: {type(value).__name__}")
