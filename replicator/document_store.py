"""
Document store capability and its SQLite implementation.

Records are plain dicts of store-native values: None, bool, int, float, str,
bytes, Timestamp, GeoPoint, DocumentHandle, lists and nested dicts.
"""

import base64
import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from common.logging_config import get_logger
from common.types import DocumentHandle, GeoPoint, Timestamp
from replicator.database import get_db_connection, init_database
from replicator.exceptions import StoreUnavailableError
from replicator.resource_names import build_resource_id

logger = get_logger(__name__)

Record = Dict[str, Any]
Predicate = Callable[[Optional[Record]], bool]


class DocumentStore(Protocol):
    """Capabilities the replication core needs from a document store."""

    def get(self, path: str) -> Optional[Record]:
        ...

    def conditional_write(self, path: str, record: Record, predicate: Predicate) -> bool:
        ...

    def conditional_flag_update(self, path: str, fields: Record, predicate: Predicate) -> bool:
        ...

    def delete(self, path: str) -> bool:
        ...

    def now(self) -> Timestamp:
        ...

    def new_reference(self, path: str) -> DocumentHandle:
        ...


class SqliteDocumentStore:
    """
    Document store backed by a single SQLite table.

    Conditional operations read, evaluate the predicate and write inside one
    `BEGIN IMMEDIATE` transaction, so concurrent appliers for the same path
    are serialized by the database.
    """

    def __init__(self, db_path: str, region: str, resource_prefix: str = ""):
        self.db_path = db_path
        self.region = region
        self.resource_prefix = resource_prefix
        try:
            init_database(db_path)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to initialize document store at {db_path}: {e}") from e

    def get(self, path: str) -> Optional[Record]:
        try:
            with get_db_connection(self.db_path) as conn:
                return self._read(conn, path)
        except sqlite3.Error as e:
            logger.error(f"Failed to read document [path={path}]: {e}")
            raise StoreUnavailableError(f"Failed to read document {path}") from e

    def put(self, path: str, record: Record) -> None:
        """Unconditionally write a record, as a local writer would."""
        self._run_transaction(path, lambda conn: self._write(conn, path, record))

    def conditional_write(self, path: str, record: Record, predicate: Predicate) -> bool:
        """
        Replace the record at path if predicate(existing) holds.

        Returns:
            True if the record was written
        """
        def _work(conn: sqlite3.Connection) -> bool:
            existing = self._read(conn, path)
            if not predicate(existing):
                return False
            self._write(conn, path, record)
            return True

        return self._run_transaction(path, _work)

    def conditional_flag_update(self, path: str, fields: Record, predicate: Predicate) -> bool:
        """
        Merge fields into the record at path if predicate(existing) holds.

        Returns:
            True if the record was updated
        """
        def _work(conn: sqlite3.Connection) -> bool:
            existing = self._read(conn, path)
            if not predicate(existing):
                return False
            merged = dict(existing or {})
            merged.update(fields)
            self._write(conn, path, merged)
            return True

        return self._run_transaction(path, _work)

    def delete(self, path: str) -> bool:
        """
        Hard-delete the record at path.

        Returns:
            True if a record was removed
        """
        def _work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM documents WHERE path = ?", (path,))
            return cursor.rowcount > 0

        deleted = self._run_transaction(path, _work)
        if deleted:
            logger.info(f"Deleted document [path={path}]")
        return deleted

    def now(self) -> Timestamp:
        return Timestamp.now()

    def new_reference(self, path: str) -> DocumentHandle:
        return DocumentHandle(
            path=path,
            resource_id=build_resource_id(self.resource_prefix, self.region, path)
        )

    def list_paths(self) -> List[str]:
        try:
            with get_db_connection(self.db_path) as conn:
                rows = conn.execute("SELECT path FROM documents ORDER BY path").fetchall()
                return [row["path"] for row in rows]
        except sqlite3.Error as e:
            raise StoreUnavailableError("Failed to list documents") from e

    def ping(self) -> None:
        try:
            with get_db_connection(self.db_path) as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Document store unavailable: {e}") from e

    def close(self) -> None:
        # Connections are opened per operation
        logger.debug(f"Document store closed [db_path={self.db_path}]")

    def _run_transaction(self, path: str, work: Callable[[sqlite3.Connection], Any]) -> Any:
        try:
            with get_db_connection(self.db_path, autocommit=True) as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    result = work(conn)
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
                return result
        except sqlite3.Error as e:
            logger.error(f"Document transaction failed [path={path}]: {e}")
            raise StoreUnavailableError(f"Document transaction failed for {path}") from e

    def _read(self, conn: sqlite3.Connection, path: str) -> Optional[Record]:
        row = conn.execute(
            "SELECT fields FROM documents WHERE path = ?",
            (path,)
        ).fetchone()
        if row is None:
            return None
        return {
            name: self._decode(value)
            for name, value in json.loads(row["fields"]).items()
        }

    def _write(self, conn: sqlite3.Connection, path: str, record: Record) -> None:
        encoded = json.dumps({name: self._encode(value) for name, value in record.items()})
        conn.execute(
            """
            INSERT INTO documents (path, fields, written_at)
            VALUES (?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                fields = excluded.fields,
                written_at = excluded.written_at
            """,
            (path, encoded, datetime.now(timezone.utc).isoformat())
        )

    def _encode(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, bytes):
            return {"__bytes__": base64.b64encode(value).decode("ascii")}
        if isinstance(value, Timestamp):
            return {"__timestamp__": [value.seconds, value.nanos]}
        if isinstance(value, GeoPoint):
            return {"__geopoint__": [value.latitude, value.longitude]}
        if isinstance(value, DocumentHandle):
            return {"__reference__": value.path}
        if isinstance(value, (list, tuple)):
            return [self._encode(item) for item in value]
        if isinstance(value, dict):
            return {"__map__": {k: self._encode(v) for k, v in value.items()}}
        raise TypeError(f"Unsupported store value: {type(value).__name__}")

    def _decode(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._decode(item) for item in value]
        if not isinstance(value, dict):
            return value
        if "__bytes__" in value:
            return base64.b64decode(value["__bytes__"])
        if "__timestamp__" in value:
            seconds, nanos = value["__timestamp__"]
            return Timestamp(seconds=seconds, nanos=nanos)
        if "__geopoint__" in value:
            latitude, longitude = value["__geopoint__"]
            return GeoPoint(latitude=latitude, longitude=longitude)
        if "__reference__" in value:
            return self.new_reference(value["__reference__"])
        if "__map__" in value:
            return {k: self._decode(v) for k, v in value["__map__"].items()}
        raise ValueError(f"Unrecognized stored value: {value!r}")
