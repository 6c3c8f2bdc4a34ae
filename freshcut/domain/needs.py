"""Reorder list domain models."""

from datetime import datetime

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NeedRecord(BaseModel):
    """Item on the reorder list."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Document id assigned by the store")
    item_name: str = Field(..., description="Item to reorder")
    category: str = Field(..., description="Category label")
    created_at: datetime = Field(..., description="Server timestamp of creation")
    updated_at: datetime | None = Field(default=None, description="Server timestamp of the last edit")
    added_by: str = Field(..., description="User ID who added the item")
    # Display name as it was when the need was added; not kept in sync.
    added_by_name: str | None = Field(default=None, description="Display name of the user who added it")


class NeedCreate(BaseModel):
    """Fields supplied by the user when adding a need."""

    item_name: str
    category: str

    @field_validator("item_name", "category")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Name and category must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("Field is required.")
        return v


class NeedUpdate(BaseModel):
    """Partial update of a need. Owner and creation time are not editable."""

    item_name: str | None = None
    category: str | None = None

    @field_validator("item_name", "category")
    @classmethod
    def validate_not_blank(cls, v: str | None) -> str | None:
        """Fields, when given, must not be blank."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank.")
        return v

    @model_validator(mode="after")
    def reject_cleared_fields(self) -> Self:
        """Name and category can be changed but never cleared."""
        editable = ("item_name", "category")
        cleared = sorted(name for name in editable if name in self.model_fields_set and getattr(self, name) is None)
        if cleared:
            raise ValueError(f"Cannot clear required fields: {', '.join(cleared)}.")
        return self
