"""Shared pytest fixtures for all tests."""

from unittest.mock import AsyncMock

import pytest

from replicator.document_store import SqliteDocumentStore
from tests.factories import LOCAL_REGION, PREFIX


@pytest.fixture
def store(tmp_path):
    """
    Create a document store for the local region in a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        SqliteDocumentStore instance
    """
    return SqliteDocumentStore(
        str(tmp_path / "documents.db"),
        region=LOCAL_REGION,
        resource_prefix=PREFIX
    )


@pytest.fixture
def bus():
    """
    Create a fake message bus that acknowledges every publish.

    Returns:
        AsyncMock with publish/close coroutines
    """
    fake = AsyncMock()
    fake.publish.return_value = "message-1"
    return fake
