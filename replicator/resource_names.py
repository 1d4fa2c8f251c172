"""
Parsing and rewriting of fully-qualified document resource ids.

A resource id has the shape `<prefix>/regions/<region>/documents/<path>`,
for example `proj/x/regions/us/documents/orders/42`.
"""

import re

from replicator.exceptions import ResourceNameError

RESOURCE_ID_PATTERN = re.compile(
    r"^(?P<prefix>(?:.+?/)?regions/)(?P<region>[^/]+)(?P<documents>/documents/)(?P<path>.+)$"
)


def _match(resource_id: str):
    if not isinstance(resource_id, str):
        return None
    return RESOURCE_ID_PATTERN.match(resource_id)


def extract_path(resource_id: str) -> str:
    """
    Extract the document path from a resource id.

    Args:
        resource_id: Fully-qualified resource id

    Returns:
        The `<path>` segment, e.g. `orders/42`

    Raises:
        ResourceNameError: If the resource id does not match the expected shape
    """
    match = _match(resource_id)
    if match is None:
        raise ResourceNameError(f"Resource id does not contain a document path: {resource_id!r}")
    return match.group("path")


def extract_region(resource_id: str) -> str:
    """
    Extract the region segment from a resource id.

    Raises:
        ResourceNameError: If the resource id does not match the expected shape
    """
    match = _match(resource_id)
    if match is None:
        raise ResourceNameError(f"Resource id does not contain a region: {resource_id!r}")
    return match.group("region")


def replace_region(resource_id: str, new_region: str) -> str:
    """
    Rewrite the region segment of a resource id.

    Returns the resource id unchanged when it does not match the expected shape.
    """
    match = _match(resource_id)
    if match is None:
        return resource_id
    return (
        match.group("prefix")
        + new_region
        + match.group("documents")
        + match.group("path")
    )


def build_resource_id(prefix: str, region: str, path: str) -> str:
    """Compose a resource id from its parts."""
    prefix = prefix.strip("/")
    head = f"{prefix}/regions/" if prefix else "regions/"
    return f"{head}{region}/documents/{path.strip('/')}"
