"""SQLite-backed document store with live queries."""

import asyncio
import json
import logging
import re
import uuid
from collections.abc import Iterable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from freshcut.core.config import settings
from freshcut.core.remote_store import (
    SERVER_TIMESTAMP,
    DatabaseError,
    ErrorCallback,
    PermissionDeniedError,
    RecordNotFoundError,
    SnapshotCallback,
    StoreDocument,
)
from freshcut.core.schema import COLLECTIONS, init_db


logger = logging.getLogger(__name__)


def _validate_field_name(field: str) -> None:
    """Validate that a field name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", field):
        msg = f"Invalid field name: {field}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _resolve_value(value: Any, now: datetime) -> Any:
    """Convert a field value to its stored JSON form."""
    if value is SERVER_TIMESTAMP:
        return now.isoformat()
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _resolve_value(val, now) for key, val in value.items()}
    if isinstance(value, list | tuple):
        return [_resolve_value(val, now) for val in value]
    return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


class _LiveQuery:
    """Registered subscription of one owner's documents in one collection."""

    def __init__(
        self,
        store: "SQLiteCollectionStore",
        *,
        collection: str,
        owner_field: str,
        owner_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._store = store
        self.collection = collection
        self.owner_field = owner_field
        self.owner_id = owner_id
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        if self._active:
            self._active = False
            self._store._forget(self)


class SQLiteCollectionStore:
    """Document store on a single SQLite file.

    Every committed write re-runs the live queries of the affected
    collection and pushes the full result to their listeners. Deliveries are
    serialized, so each subscription sees snapshots in commit order.

    Usage:
        async with SQLiteCollectionStore("./data/freshcut.db") as store:
            sub = store.subscribe(collection="inventory_items", ...)
    """

    def __init__(
        self,
        db_path: str | None = None,
        *,
        read_only: Iterable[str] = (),
        unreadable: Iterable[str] = (),
    ) -> None:
        self._path = get_db_path(db_path) if db_path != ":memory:" else None
        self._read_only = set(read_only)
        self._unreadable = set(unreadable)
        self._conn: aiosqlite.Connection | None = None
        self._live: list[_LiveQuery] = []
        self._delivery_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    async def open(self) -> None:
        """Open the connection and make sure the schema exists."""
        if self._conn is not None:
            return
        if self._path is None:
            target = ":memory:"
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self._path)

        self._conn = await aiosqlite.connect(target)
        await self._conn.execute("PRAGMA journal_mode = WAL")
        await init_db(self._conn)
        logger.info("Opened document store", extra={"db_path": target})

    async def close(self) -> None:
        """Cancel live queries and close the connection."""
        for live in list(self._live):
            live.close()
        for task in list(self._tasks):
            task.cancel()
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("Closed document store")

    async def __aenter__(self) -> "SQLiteCollectionStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Document store is not open. Call open() first."
            raise DatabaseError(msg)
        return self._conn

    def _check_collection(self, collection: str, *, write: bool) -> None:
        if collection not in COLLECTIONS:
            msg = f"Missing or insufficient permissions for unknown collection: {collection}"
            raise PermissionDeniedError(msg)
        if collection in self._unreadable:
            msg = f"Missing or insufficient permissions to access {collection}"
            raise PermissionDeniedError(msg)
        if write and collection in self._read_only:
            msg = f"Missing or insufficient permissions to write {collection}"
            raise PermissionDeniedError(msg)

    # Live queries

    def subscribe(
        self,
        *,
        collection: str,
        owner_field: str,
        owner_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> _LiveQuery:
        """Start a live query; the first snapshot is delivered asynchronously."""
        _validate_field_name(owner_field)
        live = _LiveQuery(
            self,
            collection=collection,
            owner_field=owner_field,
            owner_id=owner_id,
            on_snapshot=on_snapshot,
            on_error=on_error,
        )
        self._live.append(live)
        self._spawn(self._deliver([live]))
        logger.info("Subscribed", extra={"collection": collection, "owner_id": owner_id})
        return live

    def _forget(self, live: _LiveQuery) -> None:
        if live in self._live:
            self._live.remove(live)
            logger.info("Unsubscribed", extra={"collection": live.collection, "owner_id": live.owner_id})

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, targets: list[_LiveQuery]) -> None:
        async with self._delivery_lock:
            for live in targets:
                if not live.active:
                    continue
                try:
                    self._check_collection(live.collection, write=False)
                    documents = await self._query(live)
                except (DatabaseError, aiosqlite.Error) as e:
                    logger.warning(
                        "Live query failed",
                        extra={"collection": live.collection, "owner_id": live.owner_id, "error": str(e)},
                    )
                    live.close()
                    live.on_error(e)
                    continue
                if live.active:
                    live.on_snapshot(documents)

    async def _query(self, live: _LiveQuery) -> list[StoreDocument]:
        conn = self._connection()
        cursor = await conn.execute(
            "SELECT id, data FROM documents WHERE collection = ? AND json_extract(data, ?) = ? "
            "ORDER BY created_at DESC, seq DESC",
            (live.collection, f"$.{live.owner_field}", live.owner_id),
        )
        rows = await cursor.fetchall()
        return [StoreDocument(id=row[0], fields=json.loads(row[1])) for row in rows]

    async def _broadcast(self, collection: str) -> None:
        await self._deliver([live for live in self._live if live.collection == collection])

    # Writes

    async def create(self, *, collection: str, data: dict[str, Any]) -> str:
        """Insert a document and return its server-assigned id."""
        self._check_collection(collection, write=True)
        now = datetime.now(UTC)
        resolved = _resolve_value(data, now)
        record_id = uuid.uuid4().hex
        created_at = resolved.get("created_at") or now.isoformat()

        try:
            conn = self._connection()
            await conn.execute(
                "INSERT INTO documents (collection, id, created_at, data) VALUES (?, ?, ?, ?)",
                (collection, record_id, created_at, json.dumps(resolved)),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        await self._broadcast(collection)
        return record_id

    async def update(self, *, collection: str, record_id: str, data: dict[str, Any]) -> None:
        """Merge the given fields into an existing document."""
        self._check_collection(collection, write=True)
        resolved = _resolve_value(data, datetime.now(UTC))

        try:
            conn = self._connection()
            cursor = await conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, record_id),
            )
            row = await cursor.fetchone()
            if row is None:
                msg = f"Record not found in {collection}: {record_id}"
                raise RecordNotFoundError(msg)

            merged = {**json.loads(row[0]), **resolved}
            await conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (json.dumps(merged), collection, record_id),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        await self._broadcast(collection)

    async def delete(self, *, collection: str, record_id: str) -> None:
        """Delete a document, raising RecordNotFoundError if it does not exist."""
        self._check_collection(collection, write=True)

        try:
            conn = self._connection()
            cursor = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, record_id),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error(
                "delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
        await self._broadcast(collection)
