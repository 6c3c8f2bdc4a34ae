"""Inventory collection: live list, derived status, and writes."""

import asyncio
from datetime import datetime
from typing import Any

from freshcut.core.config import Constants
from freshcut.core.identity import IdentityProvider
from freshcut.core.notifications import ToastChannel
from freshcut.core.remote_store import SERVER_TIMESTAMP, RemoteCollectionStore
from freshcut.core.write_errors import WriteErrorChannel, WriteOperation
from freshcut.domain.inventory import InventoryCreate, InventoryRecord, InventoryUpdate, InventoryViewItem
from freshcut.services.collection_store import CollectionStore
from freshcut.services.status_classifier import classify, local_now


class InventoryStore(CollectionStore[InventoryRecord]):
    """The signed-in user's inventory items."""

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
            collection=Constants.INVENTORY_COLLECTION,
            owner_field=Constants.INVENTORY_OWNER_FIELD,
            record_type=InventoryRecord,
        )

    def view_items(self, now: datetime | None = None) -> list[InventoryViewItem]:
        """Current records with status derived at `now` (default: the current instant)."""
        now = now or local_now()
        return [
            InventoryViewItem(
                **record.model_dump(),
                status=classify(record.quantity, record.expiry_date, now),
            )
            for record in self.records
        ]

    def create(self, fields: InventoryCreate | dict[str, Any]) -> "asyncio.Task[str]":
        """Add an item for the signed-in user.

        Raises NotSignedInError or ValidationError immediately. The returned
        task resolves to the new document id, or raises the store error after
        it has been published on the write error channel.
        """
        user = self._require_user("add an item")
        item = InventoryCreate.model_validate(fields)

        data: dict[str, Any] = {
            **item.model_dump(mode="json"),
            "user_id": user.uid,
            "last_updated_by": user.uid,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }
        return self._spawn(
            self._run_write(
                self._store.create(collection=self._collection, data=data),
                operation=WriteOperation.CREATE,
                resource_path=self._path(),
                payload=self._payload(data),
                user_id=user.uid,
                success_message="Item added successfully.",
                failure_message="Failed to add item.",
                reraise=True,
            )
        )

    def update(self, record_id: str, fields: InventoryUpdate | dict[str, Any]) -> "asyncio.Task[None]":
        """Change the given fields of an item; fields not provided are left alone."""
        user = self._require_user("update an item")
        changes = InventoryUpdate.model_validate(fields)

        data: dict[str, Any] = {
            **changes.model_dump(mode="json", exclude_unset=True),
            "updated_at": SERVER_TIMESTAMP,
            "last_updated_by": user.uid,
        }
        return self._spawn(
            self._run_write(
                self._store.update(collection=self._collection, record_id=record_id, data=data),
                operation=WriteOperation.UPDATE,
                resource_path=self._path(record_id),
                payload=self._payload(data),
                user_id=user.uid,
                success_message="Item updated successfully.",
                failure_message="Failed to update item.",
                reraise=True,
            )
        )

    def delete(self, record_id: str) -> "asyncio.Task[None] | None":
        """Remove an item in the background. Failures surface as toasts, never as exceptions."""
        user = self._identity.current_user()
        if user is None:
            self._toasts.error("You must be logged in to delete an item.")
            return None

        return self._spawn(
            self._run_write(
                self._store.delete(collection=self._collection, record_id=record_id),
                operation=WriteOperation.DELETE,
                resource_path=self._path(record_id),
                payload=None,
                user_id=user.uid,
                success_message="Item deleted successfully.",
                failure_message="Failed to delete item.",
                reraise=False,
            )
        )
