"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime

import pytest

from freshcut.core.identity import AppUser, LocalIdentityProvider
from freshcut.core.notifications import ToastChannel
from freshcut.core.write_errors import WriteErrorChannel, WriteFailure
from freshcut.services.inventory_store import InventoryStore
from freshcut.services.needs_store import NeedsStore
from tests.unit.mocks import InMemoryCollectionStore


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Fixed instant used as 'now' across unit tests."""
    return NOW


@pytest.fixture
def store():
    """Provides a fresh InMemoryCollectionStore for each test."""
    return InMemoryCollectionStore(now=NOW)


@pytest.fixture
def alice():
    return AppUser(uid="user-alice", display_name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return AppUser(uid="user-bob", display_name="Bob", email="bob@example.com")


@pytest.fixture
def identity(alice):
    """Identity provider with Alice signed in."""
    return LocalIdentityProvider(alice)


@pytest.fixture
def error_channel():
    return WriteErrorChannel()


@pytest.fixture
def failures(error_channel):
    """List collecting every WriteFailure published during the test."""
    received: list[WriteFailure] = []
    error_channel.on_failure(received.append)
    return received


@pytest.fixture
def toasts():
    return ToastChannel()


@pytest.fixture
async def inventory(store, identity, error_channel, toasts):
    """Started InventoryStore whose first snapshot has been delivered."""
    inventory_store = InventoryStore(store=store, identity=identity, error_channel=error_channel, toasts=toasts)
    inventory_store.start()
    await inventory_store.wait_until_loaded()
    yield inventory_store
    await inventory_store.drain()
    inventory_store.close()


@pytest.fixture
async def needs(store, identity, error_channel, toasts):
    """Started NeedsStore whose first snapshot has been delivered."""
    needs_store = NeedsStore(store=store, identity=identity, error_channel=error_channel, toasts=toasts)
    needs_store.start()
    await needs_store.wait_until_loaded()
    yield needs_store
    await needs_store.drain()
    needs_store.close()


def inventory_fields(
    item_name: str,
    *,
    quantity: int = 1,
    expiry_date: datetime | None = None,
    category: str = "Beef",
    user_id: str = "user-alice",
    created_at: datetime = NOW,
) -> dict:
    """Stored field values of an inventory document."""
    return {
        "item_name": item_name,
        "category": category,
        "quantity": quantity,
        "expiry_date": expiry_date.isoformat() if expiry_date else None,
        "created_at": created_at.isoformat(),
        "updated_at": created_at.isoformat(),
        "last_updated_by": user_id,
        "user_id": user_id,
    }
