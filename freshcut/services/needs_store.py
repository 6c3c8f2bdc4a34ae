"""Reorder list ("needs") collection."""

import asyncio
from typing import Any

from freshcut.core.config import Constants
from freshcut.core.identity import IdentityProvider
from freshcut.core.notifications import ToastChannel
from freshcut.core.remote_store import SERVER_TIMESTAMP, RemoteCollectionStore
from freshcut.core.write_errors import WriteErrorChannel, WriteOperation
from freshcut.domain.needs import NeedCreate, NeedRecord, NeedUpdate
from freshcut.services.collection_store import CollectionStore


class NeedsStore(CollectionStore[NeedRecord]):
    """Items the signed-in user has marked for reordering."""

    def __init__(
        self,
        *,
        store: RemoteCollectionStore,
        identity: IdentityProvider,
        error_channel: WriteErrorChannel,
        toasts: ToastChannel,
    ) -> None:
        super().__init__(
            store=store,
            identity=identity,
            error_channel=error_channel,
            toasts=toasts,
            collection=Constants.NEEDS_COLLECTION,
            owner_field=Constants.NEEDS_OWNER_FIELD,
            record_type=NeedRecord,
        )

    def add_need(self, fields: NeedCreate | dict[str, Any]) -> "asyncio.Task[str]":
        """Add an item to the reorder list, stamped with the user's current display name."""
        user = self._require_user("add to the needs list")
        need = NeedCreate.model_validate(fields)

        data: dict[str, Any] = {
            **need.model_dump(mode="json"),
            "added_by": user.uid,
            "added_by_name": user.display_name or Constants.ANONYMOUS_DISPLAY_NAME,
            "created_at": SERVER_TIMESTAMP,
        }
        return self._spawn(
            self._run_write(
                self._store.create(collection=self._collection, data=data),
                operation=WriteOperation.CREATE,
                resource_path=self._path(),
                payload=self._payload(data),
                user_id=user.uid,
                success_message="Item added to needs list.",
                failure_message="Failed to add need item.",
                reraise=True,
            )
        )

    def update_need(self, record_id: str, fields: NeedUpdate | dict[str, Any]) -> "asyncio.Task[None]":
        user = self._require_user("update the needs list")
        changes = NeedUpdate.model_validate(fields)

        data: dict[str, Any] = {
            **changes.model_dump(mode="json", exclude_unset=True),
            "updated_at": SERVER_TIMESTAMP,
        }
        return self._spawn(
            self._run_write(
                self._store.update(collection=self._collection, record_id=record_id, data=data),
                operation=WriteOperation.UPDATE,
                resource_path=self._path(record_id),
                payload=self._payload(data),
                user_id=user.uid,
                success_message="Need item updated.",
                failure_message="Failed to update need item.",
                reraise=True,
            )
        )

    def delete_need(self, record_id: str) -> "asyncio.Task[None] | None":
        user = self._identity.current_user()
        if user is None:
            self._toasts.error("You must be logged in to remove an item.")
            return None

        return self._spawn(
            self._run_write(
                self._store.delete(collection=self._collection, record_id=record_id),
                operation=WriteOperation.DELETE,
                resource_path=self._path(record_id),
                payload=None,
                user_id=user.uid,
                success_message="Item removed from needs list.",
                failure_message="Failed to remove need item.",
                reraise=False,
            )
        )
