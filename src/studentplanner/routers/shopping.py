"""API routes for allocating a shopping list across stores."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from studentplanner.dependencies import get_shopping_optimizer, get_store_repository
from studentplanner.logging_config import get_logger
from studentplanner.plan.optimizer import ShoppingListOptimizer
from studentplanner.repository import StoreRepository
from studentplanner.schemas import (
    OptimizedShoppingList,
    ShoppingConstraints,
    ShoppingItem,
    StoreData,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/shopping", tags=["shopping"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class OptimizeRequest(BaseModel):
    """Shopping list to allocate and the stores to consider."""

    items: list[ShoppingItem] = Field(min_length=1)
    store_ids: list[str] | None = Field(
        None, description="Stores to consider. Defaults to every active store."
    )
    constraints: ShoppingConstraints = Field(default_factory=ShoppingConstraints)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/stores", response_model=list[StoreData])
def list_stores(
    stores: StoreRepository = Depends(get_store_repository),
) -> list[StoreData]:
    return stores.list_active()


@router.post("/optimize", response_model=OptimizedShoppingList)
async def optimize_shopping_list(
    request: OptimizeRequest,
    stores: StoreRepository = Depends(get_store_repository),
    optimizer: ShoppingListOptimizer = Depends(get_shopping_optimizer),
) -> OptimizedShoppingList:
    """Choose where to buy each item, trading goods cost against travel."""
    if request.store_ids:
        candidates = stores.get_many(request.store_ids)
    else:
        candidates = stores.list_active()

    if not candidates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active stores available",
        )

    result = await optimizer.optimize(request.items, candidates, request.constraints)
    logger.info(
        f"Optimized {len(request.items)} items over {len(candidates)} stores: "
        f"{len(result.visit_order)} visits, {len(result.unallocated)} unallocated"
    )
    return result
