"""Live, user-scoped mirror of one remote collection.

A CollectionSync owns at most one subscription at a time: the signed-in
user's documents, newest created first. Each snapshot from the store replaces
the in-memory list wholesale; nothing is patched in place, and nothing
outside this class mutates it. Consumers read `records` or register a
listener that receives every new list.

Switching or signing out the user tears the current subscription down before
anything else happens. Snapshots that arrive afterwards for the old
subscription are dropped.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from freshcut.core.broadcast import Broadcaster
from freshcut.core.identity import AppUser, IdentityProvider
from freshcut.core.remote_store import DatabaseError, RemoteCollectionStore, StoreDocument, Subscription
from freshcut.core.write_errors import WriteErrorChannel, WriteFailure, WriteOperation


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class CollectionSync(Generic[RecordT]):
    """Reactive adapter between a live query and an immutable in-memory list."""

    def __init__(
        self,
        *,
        store: RemoteCollectionStore,
        identity: IdentityProvider,
        error_channel: WriteErrorChannel,
        collection: str,
        owner_field: str,
        record_type: type[RecordT],
    ) -> None:
        self._store = store
        self._identity = identity
        self._error_channel = error_channel
        self._collection = collection
        self._owner_field = owner_field
        self._record_type = record_type

        self._records: tuple[RecordT, ...] = ()
        self._loading = False
        self._error: Exception | None = None
        self._version = 0
        self._owner_id: str | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._started = False
        self._loaded = asyncio.Event()
        self._listeners: Broadcaster[tuple[RecordT, ...]] = Broadcaster(f"sync:{collection}")
        self._identity_unsubscribe: Callable[[], None] | None = None

    # Read side

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def records(self) -> tuple[RecordT, ...]:
        """Latest snapshot, newest created first."""
        return self._records

    @property
    def loading(self) -> bool:
        """True between subscribing and the first snapshot or error."""
        return self._loading

    @property
    def error(self) -> Exception | None:
        """Failure of the current subscription, if any."""
        return self._error

    @property
    def version(self) -> int:
        """Incremented every time `records` is replaced."""
        return self._version

    @property
    def owner_id(self) -> str | None:
        """User whose documents are mirrored."""
        return self._owner_id

    def add_listener(self, listener: Callable[[tuple[RecordT, ...]], None]) -> Callable[[], None]:
        """Call `listener` with the full list after every replacement."""
        return self._listeners.add_listener(listener)

    async def wait_until_loaded(self) -> None:
        """Wait for the first snapshot (or error) of the current subscription."""
        await self._loaded.wait()

    # Lifecycle

    def start(self) -> None:
        """Follow the identity provider and subscribe for the current user."""
        if self._identity_unsubscribe is not None:
            return
        self._identity_unsubscribe = self._identity.on_change(self._on_user_changed)
        self._on_user_changed(self._identity.current_user())

    def close(self) -> None:
        """Stop following the identity provider and drop the subscription."""
        if self._identity_unsubscribe is not None:
            self._identity_unsubscribe()
            self._identity_unsubscribe = None
        self._teardown()
        self._owner_id = None
        self._started = False
        self._error = None
        self._replace((), loading=False)

    def __enter__(self) -> "CollectionSync[RecordT]":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _on_user_changed(self, user: AppUser | None) -> None:
        uid = user.uid if user else None
        if self._started and uid == self._owner_id:
            return

        self._teardown()
        self._owner_id = uid
        self._started = True
        self._error = None

        if uid is None:
            self._replace((), loading=False)
            return

        self._loaded.clear()
        self._replace((), loading=True)
        generation = self._generation
        try:
            self._subscription = self._store.subscribe(
                collection=self._collection,
                owner_field=self._owner_field,
                owner_id=uid,
                on_snapshot=lambda documents: self._apply_snapshot(generation, documents),
                on_error=lambda exc: self._apply_error(generation, exc),
            )
        except DatabaseError as e:
            self._apply_error(generation, e)
            return

        logger.info("Collection sync subscribed", extra={"collection": self._collection, "user_id": uid})

    def _teardown(self) -> None:
        self._generation += 1
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    # Snapshot handling

    def _decode(self, document: StoreDocument) -> RecordT | None:
        try:
            return self._record_type.model_validate({**document.fields, "id": document.id})
        except ValidationError as e:
            logger.warning(
                "Skipping undecodable document",
                extra={"collection": self._collection, "record_id": document.id, "error": str(e)},
            )
            return None

    def _apply_snapshot(self, generation: int, documents: list[StoreDocument]) -> None:
        if generation != self._generation:
            logger.debug("Dropping snapshot from closed subscription", extra={"collection": self._collection})
            return

        decoded = (self._decode(document) for document in documents)
        self._error = None
        self._replace(tuple(record for record in decoded if record is not None), loading=False)

    def _apply_error(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            return

        logger.warning(
            "Collection subscription failed",
            extra={"collection": self._collection, "user_id": self._owner_id, "error": str(exc)},
        )
        self._error = exc
        self._subscription = None
        self._replace((), loading=False)
        self._error_channel.emit(
            WriteFailure(resource_path=self._collection, operation=WriteOperation.LIST, error=str(exc))
        )

    def _replace(self, records: tuple[RecordT, ...], *, loading: bool) -> None:
        self._records = records
        self._loading = loading
        self._version += 1
        if not loading:
            self._loaded.set()
        self._listeners.publish(records)
