"""Inventory domain models and enums."""

from datetime import datetime
from enum import StrEnum

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ItemStatus(StrEnum):
    """Freshness and stock status, derived from quantity and expiry. Never stored."""

    GOOD = "GOOD"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class StatusBucket(StrEnum):
    """Status filter choices, including the synthetic ALL bucket (everything in stock)."""

    ALL = "ALL"
    GOOD = "GOOD"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    OUT_OF_STOCK = "OUT_OF_STOCK"


def _strip_required(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required.")
    return value


class InventoryRecord(BaseModel):
    """Inventory item as stored in the remote collection."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Document id assigned by the store")
    item_name: str = Field(..., description="Cut name (e.g., 'Ribeye Steak')")
    category: str = Field(..., description="Category label (e.g., 'Beef')")
    quantity: int = Field(..., ge=0, description="Units in stock")
    expiry_date: datetime | None = Field(default=None, description="Use-by instant")
    purchase_date: datetime | None = Field(default=None, description="When the stock was bought")
    notes: str | None = Field(default=None, description="Free-form notes")
    image_url: str | None = Field(default=None, description="Optional photo of the item")
    created_at: datetime = Field(..., description="Server timestamp of creation")
    updated_at: datetime = Field(..., description="Server timestamp of the last write")
    last_updated_by: str = Field(..., description="User ID of the last writer")
    user_id: str = Field(..., description="User ID of the owner")


class InventoryViewItem(InventoryRecord):
    """Inventory record with its status derived at read time."""

    status: ItemStatus


class InventoryCreate(BaseModel):
    """Fields supplied by the user when adding an item."""

    item_name: str = Field(..., description="Item name")
    category: str = Field(..., description="Category label")
    quantity: int = Field(default=1, ge=0, description="Units in stock")
    expiry_date: datetime | None = None
    purchase_date: datetime | None = None
    notes: str | None = None
    image_url: str | None = None

    @field_validator("item_name")
    @classmethod
    def validate_item_name(cls, v: str) -> str:
        """Item name must not be blank."""
        return _strip_required(v, "Item name")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Category must not be blank."""
        return _strip_required(v, "Category")


class InventoryUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""

    item_name: str | None = None
    category: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None
    purchase_date: datetime | None = None
    notes: str | None = None
    image_url: str | None = None

    @field_validator("item_name")
    @classmethod
    def validate_item_name(cls, v: str | None) -> str | None:
        """Item name, when given, must not be blank."""
        return None if v is None else _strip_required(v, "Item name")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str | None) -> str | None:
        """Category, when given, must not be blank."""
        return None if v is None else _strip_required(v, "Category")

    @model_validator(mode="after")
    def reject_cleared_required_fields(self) -> Self:
        """Name, category and quantity can be changed but never cleared."""
        required = ("item_name", "category", "quantity")
        cleared = sorted(name for name in required if name in self.model_fields_set and getattr(self, name) is None)
        if cleared:
            raise ValueError(f"Cannot clear required fields: {', '.join(cleared)}.")
        return self
