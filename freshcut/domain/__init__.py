"""Domain models and DTOs."""

from freshcut.domain.inventory import (
    InventoryCreate,
    InventoryRecord,
    InventoryUpdate,
    InventoryViewItem,
    ItemStatus,
    StatusBucket,
)
from freshcut.domain.needs import NeedCreate, NeedRecord, NeedUpdate
from freshcut.domain.scan import InventoryDraft, ScannedItem


__all__ = [
    "InventoryCreate",
    "InventoryDraft",
    "InventoryRecord",
    "InventoryUpdate",
    "InventoryViewItem",
    "ItemStatus",
    "NeedCreate",
    "NeedRecord",
    "NeedUpdate",
    "ScannedItem",
    "StatusBucket",
]
