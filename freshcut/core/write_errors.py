"""Process-wide channel for store access failures.

The channel carries permission and authorization failures from any store
operation to diagnostic listeners, independently of the call site that
triggered the operation. It is constructed once at start-up and passed by
reference to every store.

A failure published here says nothing about whether the same failure was
also raised to the caller: create and update do both, delete and list only
publish.
"""

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from freshcut.core.broadcast import Broadcaster


logger = logging.getLogger(__name__)


class WriteOperation(StrEnum):
    """Kind of store operation that failed."""

    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class WriteFailure(BaseModel):
    """A rejected store operation, published for diagnosis."""

    resource_path: str = Field(..., description="Collection or document path, e.g. 'inventory_items/abc'")
    operation: WriteOperation = Field(..., description="Operation that was attempted")
    payload: dict[str, Any] | None = Field(default=None, description="Data the rejected write attempted to store")
    error: str = Field(default="", description="Error message reported by the store")
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class WriteErrorChannel:
    """Publish/subscribe channel for WriteFailure events.

    Events are ephemeral: listeners registered after an emit never see it.
    """

    def __init__(self) -> None:
        self._broadcaster: Broadcaster[WriteFailure] = Broadcaster("write_errors")

    def emit(self, failure: WriteFailure) -> None:
        """Deliver a failure to every current listener."""
        logger.debug(
            "write_failure_emitted",
            extra={"resource_path": failure.resource_path, "operation": failure.operation},
        )
        self._broadcaster.publish(failure)

    def on_failure(self, listener: Callable[[WriteFailure], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        return self._broadcaster.add_listener(listener)

    @property
    def listener_count(self) -> int:
        """Number of registered listeners."""
        return self._broadcaster.listener_count


class DiagnosticsLog:
    """Application-wide failure listener backing the diagnostic overlay.

    Logs every failure and keeps a bounded history of the most recent ones.
    """

    def __init__(self, maxlen: int = 50) -> None:
        self._recent: deque[WriteFailure] = deque(maxlen=maxlen)
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, channel: WriteErrorChannel) -> None:
        """Start listening on a channel. Attaching twice is a no-op."""
        if self._unsubscribe is None:
            self._unsubscribe = channel.on_failure(self.record)

    def detach(self) -> None:
        """Stop listening."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def record(self, failure: WriteFailure) -> None:
        """Log a failure and keep it in the recent history."""
        logger.error(
            "Store operation rejected",
            extra={
                "resource_path": failure.resource_path,
                "operation": failure.operation.value,
                "error": failure.error,
                "has_payload": failure.payload is not None,
            },
        )
        self._recent.append(failure)

    def recent(self) -> list[WriteFailure]:
        """Most recent failures, newest last."""
        return list(self._recent)

    def clear(self) -> None:
        """Drop the recorded history."""
        self._recent.clear()
