"""Models for label scanning."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class ScannedItem(BaseModel):
    """Best-effort attributes read from a photo of a packaged cut."""

    item_name: str = Field(
        ...,
        description='The name of the scanned cut of meat (e.g., "Ribeye Steak", "Pork Belly").',
    )
    category: str = Field(
        ...,
        description='A suitable category for the meat (e.g., "Beef", "Pork", "Poultry", "Lamb", "Seafood").',
    )
    expiry_date: str | None = Field(
        default=None,
        description="The Best Before or pack date in YYYY-MM-DD format if visible, otherwise null.",
    )

    @field_validator("expiry_date")
    @classmethod
    def validate_expiry_format(cls, v: str | None) -> str | None:
        """Drop dates the model could not format as YYYY-MM-DD."""
        if not v:
            return None
        try:
            date.fromisoformat(v)
        except ValueError:
            return None
        return v


class InventoryDraft(BaseModel):
    """Pre-filled values for the add-item form."""

    item_name: str
    category: str
    quantity: int
    expiry_date: datetime | None = None
    notes: str
