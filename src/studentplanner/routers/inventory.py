"""API routes for a user's food inventory."""

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from studentplanner.dependencies import get_inventory_store
from studentplanner.inventory.store import InventoryStore
from studentplanner.logging_config import get_logger
from studentplanner.schemas import (
    ExpiryAlert,
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    InventoryStatus,
    StorageLocation,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class ConsumeRequest(BaseModel):
    """Quantity of an item that has been used up."""

    quantity: float = Field(description="Amount to remove, in the item's unit")


class ConsumeResponse(BaseModel):
    """Item after consumption. ``item`` is null once it has been used up."""

    item: InventoryItemRead | None
    removed: bool


class RestockRequest(BaseModel):
    """Purchased items to merge into the inventory."""

    items: list[InventoryItemCreate]


class InventoryValueResponse(BaseModel):
    owner_id: str
    total_value: float


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/{owner_id}", response_model=list[InventoryItemRead])
def list_items(
    owner_id: str,
    location: StorageLocation | None = Query(None),
    category: str | None = Query(None),
    store: InventoryStore = Depends(get_inventory_store),
) -> list[InventoryItemRead]:
    """List in-stock items, soonest expiry first."""
    return store.list_items(owner_id, location=location, category=category)


@router.post(
    "/{owner_id}",
    response_model=InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
)
def add_item(
    owner_id: str,
    item: InventoryItemCreate,
    store: InventoryStore = Depends(get_inventory_store),
) -> InventoryItemRead:
    return store.add_item(owner_id, item)


@router.get("/{owner_id}/status", response_model=InventoryStatus)
def get_status(
    owner_id: str,
    store: InventoryStore = Depends(get_inventory_store),
) -> InventoryStatus:
    return store.compute_status(owner_id)


@router.get("/{owner_id}/alerts", response_model=list[ExpiryAlert])
def get_expiry_alerts(
    owner_id: str,
    store: InventoryStore = Depends(get_inventory_store),
) -> list[ExpiryAlert]:
    """Items expiring within a week, most urgent first."""
    return store.expiry_alerts(owner_id)


@router.get("/{owner_id}/search", response_model=list[InventoryItemRead])
def search_items(
    owner_id: str,
    q: str = Query(..., min_length=1, description="Name or category fragment"),
    store: InventoryStore = Depends(get_inventory_store),
) -> list[InventoryItemRead]:
    return store.search(owner_id, q)


@router.get("/{owner_id}/value", response_model=InventoryValueResponse)
def get_total_value(
    owner_id: str,
    store: InventoryStore = Depends(get_inventory_store),
) -> InventoryValueResponse:
    return InventoryValueResponse(owner_id=owner_id, total_value=store.total_value(owner_id))


@router.post("/{owner_id}/restock", response_model=list[InventoryItemRead])
def restock(
    owner_id: str,
    request: RestockRequest,
    store: InventoryStore = Depends(get_inventory_store),
) -> list[InventoryItemRead]:
    return store.restock(owner_id, request.items)


@router.get("/{owner_id}/items/{item_id}", response_model=InventoryItemRead)
def get_item(
    owner_id: str,
    item_id: str,
    store: InventoryStore = Depends(get_inventory_store),
) -> InventoryItemRead:
    return store.get_item(owner_id, item_id)


@router.patch("/{owner_id}/items/{item_id}", response_model=InventoryItemRead)
def update_item(
    owner_id: str,
    item_id: str,
    updates: InventoryItemUpdate,
    store: InventoryStore = Depends(get_inventory_store),
) -> InventoryItemRead:
    return store.update_item(owner_id, item_id, updates)


@router.delete("/{owner_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    owner_id: str,
    item_id: str,
    store: InventoryStore = Depends(get_inventory_store),
) -> Response:
    store.delete_item(owner_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{owner_id}/items/{item_id}/consume", response_model=ConsumeResponse)
def consume_item(
    owner_id: str,
    item_id: str,
    request: ConsumeRequest,
    store: InventoryStore = Depends(get_inventory_store),
) -> ConsumeResponse:
    """Use up part of an item. The item is removed when nothing is left."""
    item = store.consume(owner_id, item_id, request.quantity)
    return ConsumeResponse(item=item, removed=item is None)
