"""Write protocol shared by the inventory and needs stores.

Writes go straight to the remote store; the in-memory list only changes
when the subscription delivers the next snapshot. A rejected write has two
independent effects:

1. it is published once on the WriteErrorChannel (for diagnosis), and
2. for create and update, it is re-raised from the pending task so an open
   form can stay open and show the message. Delete never re-raises; the
   user learns about it through a toast instead.

Callers must not infer one effect from the other.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from pydantic import BaseModel

from freshcut.core.errors import NotSignedInError
from freshcut.core.identity import AppUser, IdentityProvider
from freshcut.core.logging import log_with_user_context, span
from freshcut.core.notifications import ToastChannel
from freshcut.core.remote_store import SERVER_TIMESTAMP, DatabaseError, RemoteCollectionStore
from freshcut.core.write_errors import WriteErrorChannel, WriteFailure, WriteOperation
from freshcut.services.collection_sync import CollectionSync


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
ResultT = TypeVar("ResultT")


class CollectionStore(CollectionSync[RecordT]):
    """CollectionSync plus fire-and-forget writes with dual failure reporting."""

    def __init__(
        self,
        *,
        store: RemoteCollectionStore,
        identity: IdentityProvider,
        error_channel: WriteErrorChannel,
        toasts: ToastChannel,
        collection: str,
        owner_field: str,
        record_type: type[RecordT],
    ) -> None:
        super().__init__(
            store=store,
            identity=identity,
            error_channel=error_channel,
            collection=collection,
            owner_field=owner_field,
            record_type=record_type,
        )
        self._toasts = toasts
        self._pending: set[asyncio.Task[Any]] = set()

    def _require_user(self, action: str) -> AppUser:
        """Return the signed-in user or fail before touching the store."""
        user = self._identity.current_user()
        if user is None:
            self._toasts.error(f"You must be logged in to {action}.")
            msg = f"Sign-in required to {action}"
            raise NotSignedInError(msg)
        return user

    @staticmethod
    def _payload(data: dict[str, Any]) -> dict[str, Any]:
        """Copy of the write data that can be published and serialized."""
        return {key: repr(value) if value is SERVER_TIMESTAMP else value for key, value in data.items()}

    def _path(self, record_id: str | None = None) -> str:
        return f"{self._collection}/{record_id}" if record_id else self._collection

    def _spawn(self, coro: Awaitable[ResultT]) -> "asyncio.Task[ResultT]":
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_write_done)
        return task

    def _on_write_done(self, task: "asyncio.Task[Any]") -> None:
        self._pending.discard(task)
        # Already logged and published; callers that await the task still get it.
        if not task.cancelled():
            task.exception()

    async def drain(self) -> None:
        """Wait for every write started so far to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _run_write(
        self,
        write: Awaitable[ResultT],
        *,
        operation: WriteOperation,
        resource_path: str,
        payload: dict[str, Any] | None,
        user_id: str,
        success_message: str,
        failure_message: str,
        reraise: bool,
    ) -> ResultT | None:
        with span(f"{self._collection}.{operation.value}"):
            try:
                result = await write
            except DatabaseError as e:
                log_with_user_context(
                    logger,
                    "error",
                    "Store write rejected",
                    user_id=user_id,
                    resource_path=resource_path,
                    operation=operation.value,
                    error=str(e),
                )
                self._error_channel.emit(
                    WriteFailure(resource_path=resource_path, operation=operation, payload=payload, error=str(e))
                )
                if reraise:
                    raise
                self._toasts.error(failure_message)
                return None

            log_with_user_context(
                logger, "info", "Store write applied", user_id=user_id, resource_path=resource_path, operation=operation.value
            )
            self._toasts.success(success_message)
            return result
