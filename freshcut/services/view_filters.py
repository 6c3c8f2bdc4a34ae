"""Derived views over the inventory and needs lists.

Everything here is a pure function of (records, now, filter inputs). The
ViewFilters class only adds a single-entry memo so repeated reads of the same
snapshot with the same inputs return the same object.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from freshcut.core.config import settings
from freshcut.domain.inventory import InventoryViewItem, ItemStatus, StatusBucket
from freshcut.domain.needs import NeedRecord
from freshcut.services.inventory_store import InventoryStore
from freshcut.services.status_classifier import calendar_days_between, local_now


class CategoryTotal(BaseModel):
    """Total quantity of visible items in one category."""

    category: str
    quantity: int


class InventorySummary(BaseModel):
    """Headline counts, always over the unfiltered list."""

    total_items: int = Field(..., description="Sum of quantities over items that are in stock")
    good: int
    expiring_soon: int
    expired: int


class InventoryView(BaseModel):
    """Everything a list or dashboard screen renders for one set of filter inputs."""

    model_config = ConfigDict(frozen=True)

    bucket: StatusBucket
    query: str
    items: list[InventoryViewItem]
    category_totals: list[CategoryTotal]
    nearing_expiry: list[InventoryViewItem]
    summary: InventorySummary
    status_breakdown: dict[ItemStatus, int]


def in_bucket(item: InventoryViewItem, bucket: StatusBucket) -> bool:
    """ALL means every item still in stock; any other bucket is an exact status match."""
    if bucket is StatusBucket.ALL:
        return item.status is not ItemStatus.OUT_OF_STOCK
    return item.status.value == bucket.value


def is_stale_expired(item: InventoryViewItem, now: datetime, stale_days: int | None = None) -> bool:
    """True for expired items whose expiry is more than `stale_days` calendar days ago."""
    if item.status is not ItemStatus.EXPIRED or item.expiry_date is None:
        return False
    limit = settings.stale_expired_days if stale_days is None else stale_days
    return calendar_days_between(item.expiry_date, now) > limit


def filter_by_bucket(
    items: Iterable[InventoryViewItem], bucket: StatusBucket, now: datetime
) -> list[InventoryViewItem]:
    """Apply the bucket, hiding stale expired items everywhere except the EXPIRED bucket."""
    return [
        item
        for item in items
        if in_bucket(item, bucket) and (bucket is StatusBucket.EXPIRED or not is_stale_expired(item, now))
    ]


def _matches(name: str, query: str) -> bool:
    return query.casefold() in name.casefold()


def search_items(items: Iterable[InventoryViewItem], query: str) -> list[InventoryViewItem]:
    """Case-insensitive substring match on the item name. Blank query keeps everything."""
    query = query.strip()
    if not query:
        return list(items)
    return [item for item in items if _matches(item.item_name, query)]


def filter_needs(needs: Iterable[NeedRecord], query: str) -> list[NeedRecord]:
    query = query.strip()
    if not query:
        return list(needs)
    return [need for need in needs if _matches(need.item_name, query)]


def category_totals(items: Iterable[InventoryViewItem]) -> list[CategoryTotal]:
    """Quantity per category, largest first. Ties keep the order categories were first seen."""
    totals: dict[str, int] = {}
    for item in items:
        totals[item.category] = totals.get(item.category, 0) + item.quantity
    ranked = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
    return [CategoryTotal(category=category, quantity=quantity) for category, quantity in ranked]


def nearing_expiry(items: Iterable[InventoryViewItem], limit: int | None = None) -> list[InventoryViewItem]:
    """The EXPIRING_SOON items closest to expiry, soonest first."""
    limit = settings.nearing_expiry_limit if limit is None else limit
    soon = [item for item in items if item.status is ItemStatus.EXPIRING_SOON and item.expiry_date is not None]
    soon.sort(key=lambda item: item.expiry_date.timestamp())  # type: ignore[union-attr]
    return soon[:limit]


def summarize(items: Sequence[InventoryViewItem]) -> InventorySummary:
    counts = {status: 0 for status in ItemStatus}
    for item in items:
        counts[item.status] += 1
    return InventorySummary(
        total_items=sum(item.quantity for item in items if item.status is not ItemStatus.OUT_OF_STOCK),
        good=counts[ItemStatus.GOOD],
        expiring_soon=counts[ItemStatus.EXPIRING_SOON],
        expired=counts[ItemStatus.EXPIRED],
    )


def status_breakdown(
    all_items: Sequence[InventoryViewItem],
    visible: Sequence[InventoryViewItem],
    bucket: StatusBucket,
) -> dict[ItemStatus, int]:
    """Counts for the status chart.

    Unfiltered: GOOD, EXPIRING_SOON and EXPIRED over every in-stock item.
    Filtered: only the active status, counted over the visible items.
    Out-of-stock items are never charted.
    """
    if bucket is StatusBucket.OUT_OF_STOCK:
        return {}
    if bucket is not StatusBucket.ALL:
        return {ItemStatus(bucket.value): len(visible)}

    counts = {ItemStatus.GOOD: 0, ItemStatus.EXPIRING_SOON: 0, ItemStatus.EXPIRED: 0}
    for item in all_items:
        if item.status in counts:
            counts[item.status] += 1
    return counts


def build_view(
    all_items: Sequence[InventoryViewItem],
    *,
    bucket: StatusBucket = StatusBucket.ALL,
    query: str = "",
    now: datetime,
) -> InventoryView:
    """Project a full, already-classified list into one screen's worth of data."""
    visible = search_items(filter_by_bucket(all_items, bucket, now), query)
    return InventoryView(
        bucket=bucket,
        query=query,
        items=visible,
        category_totals=category_totals(visible),
        nearing_expiry=nearing_expiry(all_items),
        summary=summarize(all_items),
        status_breakdown=status_breakdown(all_items, visible, bucket),
    )


class ViewFilters:
    """Memoized views over an InventoryStore.

    The memo holds one entry keyed on the snapshot version, `now` and the
    filter inputs; any change recomputes.
    """

    def __init__(self, inventory: InventoryStore) -> None:
        self._inventory = inventory
        self._memo_key: tuple[int, datetime, StatusBucket, str] | None = None
        self._memo_value: InventoryView | None = None

    def view(
        self,
        bucket: StatusBucket = StatusBucket.ALL,
        query: str = "",
        now: datetime | None = None,
    ) -> InventoryView:
        now = now or local_now()
        key = (self._inventory.version, now, bucket, query)
        if key == self._memo_key and self._memo_value is not None:
            return self._memo_value

        result = build_view(self._inventory.view_items(now), bucket=bucket, query=query, now=now)
        self._memo_key = key
        self._memo_value = result
        return result
