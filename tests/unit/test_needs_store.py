"""Unit tests for NeedsStore."""

import pytest
from pydantic import ValidationError

from freshcut.core.config import Constants
from freshcut.core.errors import NotSignedInError
from freshcut.core.identity import AppUser, LocalIdentityProvider
from freshcut.core.remote_store import PermissionDeniedError
from freshcut.core.write_errors import WriteOperation
from freshcut.services.needs_store import NeedsStore
from tests.unit.conftest import NOW


COLLECTION = Constants.NEEDS_COLLECTION


def need_fields(item_name: str, added_by: str = "user-alice", added_by_name: str | None = "Alice") -> dict:
    return {
        "item_name": item_name,
        "category": "Beef",
        "created_at": NOW.isoformat(),
        "added_by": added_by,
        "added_by_name": added_by_name,
    }


@pytest.mark.unit
class TestAddNeed:
    """Tests for NeedsStore.add_need."""

    async def test_add_need_stamps_author(self, store, needs, alice):
        record_id = await needs.add_need({"item_name": "Brisket", "category": "Beef"})

        stored = store.documents(COLLECTION)[record_id]
        assert stored["added_by"] == alice.uid
        assert stored["added_by_name"] == "Alice"
        assert stored["created_at"] == NOW.isoformat()
        assert "updated_at" not in stored
        assert [need.item_name for need in needs.records] == ["Brisket"]

    async def test_missing_display_name_is_anonymous(self, store, error_channel, toasts):
        identity = LocalIdentityProvider(AppUser(uid="user-carol"))
        needs = NeedsStore(store=store, identity=identity, error_channel=error_channel, toasts=toasts)

        record_id = await needs.add_need({"item_name": "Brisket", "category": "Beef"})

        assert store.documents(COLLECTION)[record_id]["added_by_name"] == "Anonymous"

    async def test_display_name_is_not_repaired_later(self, store, needs, identity):
        record_id = await needs.add_need({"item_name": "Brisket", "category": "Beef"})

        identity.update_display_name("Alice B.")

        assert store.documents(COLLECTION)[record_id]["added_by_name"] == "Alice"
        assert needs.records[0].added_by_name == "Alice"

    async def test_add_need_success_toast(self, needs, toasts):
        await needs.add_need({"item_name": "Brisket", "category": "Beef"})

        assert toasts.history()[-1].description == "Item added to needs list."

    async def test_add_need_requires_user(self, store, error_channel, toasts):
        needs = NeedsStore(store=store, identity=LocalIdentityProvider(), error_channel=error_channel, toasts=toasts)

        with pytest.raises(NotSignedInError):
            needs.add_need({"item_name": "Brisket", "category": "Beef"})

        assert store.calls == []

    async def test_blank_name_rejected(self, store, needs):
        with pytest.raises(ValidationError):
            needs.add_need({"item_name": "", "category": "Beef"})

        assert all(call[0] != "create" for call in store.calls)

    async def test_rejected_add_raises_and_publishes_once(self, store, needs, failures):
        store.fail("create", PermissionDeniedError("denied"))

        with pytest.raises(PermissionDeniedError):
            await needs.add_need({"item_name": "Brisket", "category": "Beef"})

        assert len(failures) == 1
        assert failures[0].operation == WriteOperation.CREATE
        assert failures[0].resource_path == COLLECTION
        assert failures[0].payload["added_by_name"] == "Alice"


@pytest.mark.unit
class TestUpdateNeed:
    """Tests for NeedsStore.update_need."""

    async def test_update_need_stamps_updated_at(self, store, needs):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))

        await needs.update_need("n1", {"item_name": "Beef Brisket"})

        stored = store.documents(COLLECTION)["n1"]
        assert stored["item_name"] == "Beef Brisket"
        assert stored["updated_at"] == NOW.isoformat()
        assert stored["added_by"] == "user-alice"
        assert stored["created_at"] == NOW.isoformat()

    async def test_owner_fields_not_updatable(self, store, needs):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))

        await needs.update_need("n1", {"added_by": "user-mallory", "created_at": "2000-01-01T00:00:00"})

        _, _, data = store.calls[-1]
        assert set(data) == {"updated_at"}
        assert store.documents(COLLECTION)["n1"]["added_by"] == "user-alice"

    async def test_rejected_update_raises_and_publishes_once(self, store, needs, failures):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))
        store.fail("update", PermissionDeniedError("denied"))

        with pytest.raises(PermissionDeniedError):
            await needs.update_need("n1", {"category": "Pork"})

        assert [failure.operation for failure in failures] == [WriteOperation.UPDATE]
        assert failures[0].resource_path == f"{COLLECTION}/n1"

    @pytest.mark.parametrize("fields", [{"item_name": None}, {"category": None}])
    async def test_update_cannot_clear_fields(self, store, needs, failures, fields):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))

        with pytest.raises(ValidationError):
            needs.update_need("n1", fields)

        assert all(call[0] != "update" for call in store.calls)
        assert failures == []


@pytest.mark.unit
class TestDeleteNeed:
    """Tests for NeedsStore.delete_need."""

    async def test_delete_need(self, store, needs, toasts):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))
        store.broadcast(COLLECTION)

        await needs.delete_need("n1")

        assert needs.records == ()
        assert toasts.history()[-1].description == "Item removed from needs list."

    async def test_rejected_delete_is_swallowed(self, store, needs, failures, toasts):
        store.seed(COLLECTION, "n1", need_fields("Brisket"))
        store.fail("delete", PermissionDeniedError("denied"))

        await needs.delete_need("n1")

        assert len(failures) == 1
        assert failures[0].operation == WriteOperation.DELETE
        assert toasts.history()[-1].title == "Error"

    async def test_delete_without_user_shows_remove_message(self, store, error_channel, toasts):
        needs = NeedsStore(store=store, identity=LocalIdentityProvider(), error_channel=error_channel, toasts=toasts)

        assert needs.delete_need("n1") is None

        assert toasts.history()[-1].description == "You must be logged in to remove an item."
        assert store.calls == []

    async def test_other_users_needs_are_not_listed(self, store, needs):
        store.seed(COLLECTION, "mine", need_fields("Brisket"))
        store.seed(COLLECTION, "theirs", need_fields("Oxtail", added_by="user-bob", added_by_name="Bob"))
        store.broadcast(COLLECTION)

        assert [need.id for need in needs.records] == ["mine"]
