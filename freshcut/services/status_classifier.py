"""Freshness classification of inventory items.

Status is a pure function of (quantity, expiry, now). It is recomputed at
every read and never stored on the record.

Rules, first match wins:
    1. quantity == 0                              -> OUT_OF_STOCK
    2. no expiry                                  -> GOOD
    3. expiry instant strictly before now         -> EXPIRED
    4. calendar days until expiry <= soon window  -> EXPIRING_SOON
    5. otherwise                                  -> GOOD

Rule 3 compares instants while rule 4 compares local calendar days, so an
item expiring later today is EXPIRING_SOON until the exact instant passes.
"""

from datetime import datetime, tzinfo

from freshcut.core.config import settings
from freshcut.domain.inventory import ItemStatus


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Return an aware datetime in the local timezone.

    Naive datetimes are taken to already be local time.
    """
    tz = tz or settings.tzinfo
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz) if tz else moment.astimezone()
    return moment.astimezone(tz)


def local_now(tz: tzinfo | None = None) -> datetime:
    """Current wall-clock time as an aware local datetime."""
    return to_local(datetime.now().astimezone(), tz)


def calendar_days_between(earlier: datetime, later: datetime, tz: tzinfo | None = None) -> int:
    """Whole local calendar days from `earlier` to `later` (negative if reversed).

    Both sides are truncated to local midnight first, so 23:59 -> 00:01 the
    next day counts as one day.
    """
    return (to_local(later, tz).date() - to_local(earlier, tz).date()).days


def classify(
    quantity: int,
    expiry_date: datetime | None,
    now: datetime,
    *,
    expiring_soon_days: int | None = None,
    tz: tzinfo | None = None,
) -> ItemStatus:
    """Derive the status of an item at instant `now`."""
    if quantity == 0:
        return ItemStatus.OUT_OF_STOCK

    if expiry_date is None:
        return ItemStatus.GOOD

    expiry = to_local(expiry_date, tz)
    current = to_local(now, tz)

    if expiry < current:
        return ItemStatus.EXPIRED

    window = settings.expiring_soon_days if expiring_soon_days is None else expiring_soon_days
    if calendar_days_between(current, expiry, tz) <= window:
        return ItemStatus.EXPIRING_SOON

    return ItemStatus.GOOD
