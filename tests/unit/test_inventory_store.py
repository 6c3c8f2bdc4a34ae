"""Unit tests for InventoryStore writes and status derivation."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from freshcut.core.config import Constants
from freshcut.core.errors import NotSignedInError
from freshcut.core.identity import LocalIdentityProvider
from freshcut.core.notifications import ToastVariant
from freshcut.core.remote_store import PermissionDeniedError, RecordNotFoundError
from freshcut.core.write_errors import WriteOperation
from freshcut.domain.inventory import InventoryCreate, ItemStatus
from freshcut.services.inventory_store import InventoryStore
from tests.unit.conftest import NOW, inventory_fields


COLLECTION = Constants.INVENTORY_COLLECTION


@pytest.mark.unit
class TestViewItems:
    """Tests for status derivation at read time."""

    async def test_status_derived_for_each_record(self, store, inventory):
        store.seed(COLLECTION, "gone", inventory_fields("Pork Belly", quantity=0))
        store.seed(COLLECTION, "soon", inventory_fields("Ribeye Steak", expiry_date=NOW + timedelta(days=1)))
        store.seed(COLLECTION, "fine", inventory_fields("Lamb Shank", expiry_date=NOW + timedelta(days=10)))
        store.broadcast(COLLECTION)

        statuses = {item.id: item.status for item in inventory.view_items(NOW)}

        assert statuses == {
            "gone": ItemStatus.OUT_OF_STOCK,
            "soon": ItemStatus.EXPIRING_SOON,
            "fine": ItemStatus.GOOD,
        }

    async def test_status_changes_with_time_without_new_snapshot(self, store, inventory):
        """Test an item expiring today moves to EXPIRED after three days with no write."""
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak", expiry_date=NOW + timedelta(hours=6)))
        store.broadcast(COLLECTION)
        version = inventory.version

        assert inventory.view_items(NOW)[0].status == ItemStatus.EXPIRING_SOON
        assert inventory.view_items(NOW + timedelta(days=3))[0].status == ItemStatus.EXPIRED
        assert inventory.version == version

    async def test_status_is_not_stored(self, store, inventory):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))
        store.broadcast(COLLECTION)

        assert "status" not in inventory.records[0].model_dump()


@pytest.mark.unit
class TestCreate:
    """Tests for InventoryStore.create."""

    async def test_create_stamps_owner_and_timestamps(self, store, inventory, alice):
        record_id = await inventory.create({"item_name": "Ribeye Steak", "category": "Beef", "quantity": 2})

        stored = store.documents(COLLECTION)[record_id]
        assert stored["user_id"] == alice.uid
        assert stored["last_updated_by"] == alice.uid
        assert stored["created_at"] == NOW.isoformat()
        assert stored["updated_at"] == NOW.isoformat()
        assert stored["quantity"] == 2

    async def test_created_item_arrives_through_snapshot(self, inventory):
        record_id = await inventory.create(InventoryCreate(item_name="Ribeye Steak", category="Beef"))

        assert [record.id for record in inventory.records] == [record_id]
        assert inventory.records[0].quantity == 1

    async def test_create_success_toast(self, inventory, toasts):
        await inventory.create({"item_name": "Ribeye Steak", "category": "Beef"})

        assert toasts.history()[-1].title == "Success"
        assert toasts.history()[-1].description == "Item added successfully."

    async def test_create_without_user_fails_before_store(self, store, error_channel, toasts, failures):
        inventory = InventoryStore(
            store=store, identity=LocalIdentityProvider(), error_channel=error_channel, toasts=toasts
        )

        with pytest.raises(NotSignedInError):
            inventory.create({"item_name": "Ribeye Steak", "category": "Beef"})

        assert store.calls == []
        assert failures == []
        assert toasts.history()[-1].description == "You must be logged in to add an item."
        assert toasts.history()[-1].variant == ToastVariant.DESTRUCTIVE

    @pytest.mark.parametrize(
        "fields",
        [
            {"item_name": "", "category": "Beef"},
            {"item_name": "   ", "category": "Beef"},
            {"item_name": "Ribeye Steak", "category": ""},
            {"item_name": "Ribeye Steak", "category": "Beef", "quantity": -1},
            {"item_name": "Ribeye Steak", "category": "Beef", "quantity": 1.5},
        ],
    )
    async def test_invalid_fields_rejected_before_store(self, store, inventory, failures, fields):
        calls_before = list(store.calls)

        with pytest.raises(ValidationError):
            inventory.create(fields)

        assert store.calls == calls_before
        assert failures == []

    async def test_rejected_create_raises_and_publishes_once(self, store, inventory, failures, toasts):
        """Test a rejected create reaches both the caller and the channel."""
        store.fail("create", PermissionDeniedError("Missing or insufficient permissions"))

        task = inventory.create({"item_name": "Ribeye Steak", "category": "Beef"})
        with pytest.raises(PermissionDeniedError):
            await task

        assert len(failures) == 1
        assert failures[0].operation == WriteOperation.CREATE
        assert failures[0].resource_path == COLLECTION
        assert failures[0].payload["item_name"] == "Ribeye Steak"
        assert failures[0].payload["created_at"] == "SERVER_TIMESTAMP"
        assert "insufficient permissions" in failures[0].error
        assert all(toast.title != "Success" for toast in toasts.history())

    async def test_rejected_create_leaves_list_untouched(self, store, inventory):
        store.seed(COLLECTION, "a", inventory_fields("Lamb Shank"))
        store.broadcast(COLLECTION)
        store.fail("create", PermissionDeniedError("denied"))

        with pytest.raises(PermissionDeniedError):
            await inventory.create({"item_name": "Ribeye Steak", "category": "Beef"})

        assert [record.id for record in inventory.records] == ["a"]


@pytest.mark.unit
class TestUpdate:
    """Tests for InventoryStore.update."""

    async def test_update_changes_only_given_fields(self, store, inventory, alice):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak", quantity=3, user_id=alice.uid))
        store.broadcast(COLLECTION)

        await inventory.update("a", {"quantity": 0})

        stored = store.documents(COLLECTION)["a"]
        assert stored["quantity"] == 0
        assert stored["item_name"] == "Ribeye Steak"
        assert stored["last_updated_by"] == alice.uid
        assert inventory.view_items(NOW)[0].status == ItemStatus.OUT_OF_STOCK

    async def test_update_sends_partial_payload(self, store, inventory):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))

        await inventory.update("a", {"notes": "Dry aged"})

        _, path, data = store.calls[-1]
        assert path == f"{COLLECTION}/a"
        assert set(data) == {"notes", "updated_at", "last_updated_by"}

    async def test_update_success_toast(self, store, inventory, toasts):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))

        await inventory.update("a", {"quantity": 4})

        assert toasts.history()[-1].description == "Item updated successfully."

    async def test_rejected_update_raises_and_publishes_once(self, store, inventory, failures):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))
        store.fail("update", PermissionDeniedError("denied"))

        with pytest.raises(PermissionDeniedError):
            await inventory.update("a", {"quantity": 4})

        assert len(failures) == 1
        assert failures[0].operation == WriteOperation.UPDATE
        assert failures[0].resource_path == f"{COLLECTION}/a"
        assert failures[0].payload["quantity"] == 4

    async def test_update_missing_record(self, inventory, failures):
        with pytest.raises(RecordNotFoundError):
            await inventory.update("missing", {"quantity": 4})

        assert failures[0].resource_path == f"{COLLECTION}/missing"

    async def test_update_blank_name_rejected(self, store, inventory):
        with pytest.raises(ValidationError):
            inventory.update("a", {"item_name": " "})

        assert all(call[0] != "update" for call in store.calls)

    @pytest.mark.parametrize(
        "fields",
        [
            {"item_name": None},
            {"category": None},
            {"quantity": None},
        ],
    )
    async def test_update_cannot_clear_required_fields(self, store, inventory, failures, fields):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak", quantity=3))
        store.broadcast(COLLECTION)

        with pytest.raises(ValidationError):
            inventory.update("a", fields)

        assert all(call[0] != "update" for call in store.calls)
        assert failures == []
        assert [record.id for record in inventory.records] == ["a"]

    async def test_update_can_clear_optional_fields(self, store, inventory):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak", quantity=3))
        store.broadcast(COLLECTION)

        await inventory.update("a", {"notes": None, "expiry_date": None})

        _, _, data = store.calls[-1]
        assert data["notes"] is None
        assert data["expiry_date"] is None
        assert [record.quantity for record in inventory.records] == [3]


@pytest.mark.unit
class TestDelete:
    """Tests for InventoryStore.delete."""

    async def test_delete_removes_item(self, store, inventory, toasts):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))
        store.broadcast(COLLECTION)

        await inventory.delete("a")

        assert inventory.records == ()
        assert toasts.history()[-1].description == "Item deleted successfully."

    async def test_rejected_delete_publishes_but_does_not_raise(self, store, inventory, failures, toasts):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))
        store.fail("delete", PermissionDeniedError("denied"))

        result = await inventory.delete("a")

        assert result is None
        assert len(failures) == 1
        assert failures[0].operation == WriteOperation.DELETE
        assert failures[0].resource_path == f"{COLLECTION}/a"
        assert failures[0].payload is None
        assert toasts.history()[-1].variant == ToastVariant.DESTRUCTIVE
        assert toasts.history()[-1].description == "Failed to delete item."

    async def test_delete_without_user_does_nothing(self, store, error_channel, toasts):
        inventory = InventoryStore(
            store=store, identity=LocalIdentityProvider(), error_channel=error_channel, toasts=toasts
        )

        assert inventory.delete("a") is None
        assert store.calls == []
        assert toasts.history()[-1].description == "You must be logged in to delete an item."

    async def test_drain_waits_for_fire_and_forget_delete(self, store, inventory):
        store.seed(COLLECTION, "a", inventory_fields("Ribeye Steak"))

        inventory.delete("a")
        await inventory.drain()

        assert store.documents(COLLECTION) == {}
