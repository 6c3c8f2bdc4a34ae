"""JSON API over the inventory and needs stores.

Routes only translate HTTP to store calls; filtering, stamping and failure
reporting all live in the services.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from pydantic import BaseModel

from freshcut.core.config import DEFAULT_CATEGORIES
from freshcut.core.errors import NotSignedInError
from freshcut.core.identity import AppUser
from freshcut.core.notifications import Toast
from freshcut.core.write_errors import WriteFailure
from freshcut.domain.inventory import InventoryCreate, InventoryUpdate, InventoryViewItem, ItemStatus, StatusBucket
from freshcut.domain.needs import NeedCreate, NeedRecord, NeedUpdate
from freshcut.domain.scan import InventoryDraft, ScannedItem
from freshcut.interface.dependencies import AppServices, get_services
from freshcut.services.scan_service import draft_from_scan, scan_item
from freshcut.services.view_filters import CategoryTotal, InventorySummary, filter_needs


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

Services = Annotated[AppServices, Depends(get_services)]

SESSION_LOAD_TIMEOUT_SECONDS = 5.0


class DisplayNameUpdate(BaseModel):
    display_name: str


class InventoryListResponse(BaseModel):
    loading: bool
    error: str | None
    bucket: StatusBucket
    query: str
    items: list[InventoryViewItem]


class DashboardResponse(BaseModel):
    loading: bool
    bucket: StatusBucket
    summary: InventorySummary
    category_totals: list[CategoryTotal]
    status_breakdown: dict[ItemStatus, int]
    nearing_expiry: list[InventoryViewItem]


class NeedsListResponse(BaseModel):
    loading: bool
    error: str | None
    query: str
    items: list[NeedRecord]


class CreatedResponse(BaseModel):
    id: str


class AcceptedResponse(BaseModel):
    status: str = "accepted"


class ScanResponse(BaseModel):
    scanned: ScannedItem
    draft: InventoryDraft


def _require_session(services: AppServices) -> AppUser:
    user = services.identity.current_user()
    if user is None:
        msg = "Sign-in required"
        raise NotSignedInError(msg)
    return user


# Session


@router.post("/session", response_model=AppUser)
async def sign_in(user: AppUser, services: Services) -> AppUser:
    """Sign in and wait (briefly) for both lists to load."""
    services.identity.sign_in(user)
    try:
        await asyncio.wait_for(
            asyncio.gather(services.inventory.wait_until_loaded(), services.needs.wait_until_loaded()),
            timeout=SESSION_LOAD_TIMEOUT_SECONDS,
        )
    except TimeoutError:
        logger.warning("Initial snapshots still loading after sign-in", extra={"user_id": user.uid})
    return user


@router.get("/session", response_model=AppUser)
async def current_session(services: Services) -> AppUser:
    return _require_session(services)


@router.patch("/session", response_model=AppUser)
async def update_display_name(body: DisplayNameUpdate, services: Services) -> AppUser:
    _require_session(services)
    return services.identity.update_display_name(body.display_name)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(services: Services) -> None:
    services.identity.sign_out()


# Inventory


@router.get("/inventory", response_model=InventoryListResponse)
async def list_inventory(
    services: Services,
    bucket: StatusBucket = StatusBucket.ALL,
    q: Annotated[str, Query(max_length=100)] = "",
) -> InventoryListResponse:
    view = services.views.view(bucket=bucket, query=q)
    error = services.inventory.error
    return InventoryListResponse(
        loading=services.inventory.loading,
        error=str(error) if error else None,
        bucket=bucket,
        query=q,
        items=view.items,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(services: Services, bucket: StatusBucket = StatusBucket.ALL) -> DashboardResponse:
    view = services.views.view(bucket=bucket)
    return DashboardResponse(
        loading=services.inventory.loading,
        bucket=bucket,
        summary=view.summary,
        category_totals=view.category_totals,
        status_breakdown=view.status_breakdown,
        nearing_expiry=view.nearing_expiry,
    )


@router.post("/inventory", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_item(body: InventoryCreate, services: Services) -> CreatedResponse:
    record_id = await services.inventory.create(body)
    return CreatedResponse(id=record_id)


@router.patch("/inventory/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_item(record_id: str, body: InventoryUpdate, services: Services) -> None:
    await services.inventory.update(record_id, body)


@router.delete("/inventory/{record_id}", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def delete_item(record_id: str, services: Services) -> AcceptedResponse:
    """Start the delete and return; the outcome arrives as a toast."""
    _require_session(services)
    services.inventory.delete(record_id)
    return AcceptedResponse()


@router.get("/categories", response_model=list[str])
async def list_categories() -> list[str]:
    """Suggested category labels for the add-item form. Any label is accepted."""
    return list(DEFAULT_CATEGORIES)


# Needs


@router.get("/needs", response_model=NeedsListResponse)
async def list_needs(services: Services, q: Annotated[str, Query(max_length=100)] = "") -> NeedsListResponse:
    error = services.needs.error
    return NeedsListResponse(
        loading=services.needs.loading,
        error=str(error) if error else None,
        query=q,
        items=filter_needs(services.needs.records, q),
    )


@router.post("/needs", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_need(body: NeedCreate, services: Services) -> CreatedResponse:
    record_id = await services.needs.add_need(body)
    return CreatedResponse(id=record_id)


@router.patch("/needs/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_need(record_id: str, body: NeedUpdate, services: Services) -> None:
    await services.needs.update_need(record_id, body)


@router.delete("/needs/{record_id}", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def delete_need(record_id: str, services: Services) -> AcceptedResponse:
    _require_session(services)
    services.needs.delete_need(record_id)
    return AcceptedResponse()


# Scan


@router.post("/scan", response_model=ScanResponse)
async def scan(services: Services, photo: Annotated[UploadFile, File()]) -> ScanResponse:
    """Read a label photo and return values to pre-fill the add-item form."""
    _require_session(services)
    scanned = await scan_item(await photo.read(), photo.content_type or "application/octet-stream")
    return ScanResponse(scanned=scanned, draft=draft_from_scan(scanned))


# Diagnostics


@router.get("/diagnostics", response_model=list[WriteFailure])
async def recent_failures(services: Services) -> list[WriteFailure]:
    return services.diagnostics.recent()


@router.get("/toasts", response_model=list[Toast])
async def recent_toasts(services: Services) -> list[Toast]:
    return services.toasts.history()
