"""Contract of the remote document store consumed by the collection stores."""

from collections.abc import Callable
from typing import Any, Final, Protocol

from pydantic import BaseModel, Field


class DatabaseError(RuntimeError):
    """Store operation failed."""


class PermissionDeniedError(DatabaseError):
    """Store refused the operation for the current credentials."""


class RecordNotFoundError(DatabaseError):
    """Target document does not exist."""


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock when a write is applied."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Final = _ServerTimestamp()


class StoreDocument(BaseModel):
    """One document of a snapshot: server id plus raw fields."""

    id: str = Field(..., description="Server-assigned document id")
    fields: dict[str, Any] = Field(default_factory=dict, description="Stored field values")


SnapshotCallback = Callable[[list[StoreDocument]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    """Handle of a live query."""

    @property
    def active(self) -> bool:
        """False once closed."""
        ...

    def close(self) -> None:
        """Stop delivering snapshots. Idempotent."""
        ...


class RemoteCollectionStore(Protocol):
    """Document store with live queries.

    subscribe() delivers the full, ordered result set (newest created first)
    every time it changes, starting with an initial snapshot delivered
    asynchronously after the call returns. Writes resolve the SERVER_TIMESTAMP
    placeholder and raise PermissionDeniedError, RecordNotFoundError or
    DatabaseError on failure.
    """

    def subscribe(
        self,
        *,
        collection: str,
        owner_field: str,
        owner_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription: ...

    async def create(self, *, collection: str, data: dict[str, Any]) -> str: ...

    async def update(self, *, collection: str, record_id: str, data: dict[str, Any]) -> None: ...

    async def delete(self, *, collection: str, record_id: str) -> None: ...
