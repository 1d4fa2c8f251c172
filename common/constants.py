"""Project-wide constants (provenance field names, bus attributes, default ports)."""

PROVENANCE_PREFIX: str = "regionsync:"

# Store-assigned modification time of the write being replicated
TIMESTAMP_FIELD: str = PROVENANCE_PREFIX + "timestamp"

# Region that produced the write being replicated
SOURCE_REGION_FIELD: str = PROVENANCE_PREFIX + "source-region"

# Soft-delete flag awaiting the local hard delete
DELETE_MARKER_FIELD: str = PROVENANCE_PREFIX + "delete-marker"

REGION_ATTRIBUTE: str = "region"

BUS_SERVICE_NAME: str = "regionsync.MessageBus"
BUS_PUBLISH_METHOD: str = f"/{BUS_SERVICE_NAME}/Publish"

DEFAULT_BUS_PORT: int = 50061
DEFAULT_SERVICE_PORT: int = 8080
BUS_TIMEOUT_SECONDS: float = 10.0
