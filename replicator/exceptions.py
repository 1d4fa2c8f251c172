"""Custom exception classes for the replicator."""


class RegionSyncException(Exception):
    """
    Base exception class for all replication errors.
    """
    pass


class MalformedInputError(RegionSyncException):
    """
    Raised when a notification, bus message or resource id cannot be parsed.

    Malformed input is dropped and logged, never retried.
    """
    pass


class ResourceNameError(MalformedInputError):
    """
    Raised when a resource id does not match
    `<prefix>/regions/<region>/documents/<path>`.
    """
    pass


class StoreUnavailableError(RegionSyncException):
    """
    Raised when the document store fails during a read or transaction.
    """
    pass


class BusUnavailableError(RegionSyncException):
    """
    Raised when the message bus cannot be reached or rejects a publish.
    """
    pass


class MisconfiguredError(RegionSyncException):
    """
    Raised when the replication mode is NONE or the local region is missing.
    """
    pass
