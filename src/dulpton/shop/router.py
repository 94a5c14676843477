"""Store API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth.dependencies import get_current_user
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.shop import schemas, service

router = APIRouter(prefix="/api/v1/store", tags=["Store"])


@router.get("", response_model=list[schemas.StoreItemResponse])
async def list_items(ledger: Ledger = Depends(get_ledger)) -> list[schemas.StoreItemResponse]:
    """The catalog (public)."""
    items = await service.list_items(ledger)
    return [schemas.StoreItemResponse.model_validate(i) for i in items]


@router.get("/inventory", response_model=list[schemas.InventoryItemResponse])
async def list_inventory(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> list[schemas.InventoryItemResponse]:
    entries = await service.list_inventory(ledger, user.id)
    return [schemas.InventoryItemResponse.model_validate(e) for e in entries]


@router.post("/purchase/{item_id}", response_model=schemas.PurchaseResponse)
async def purchase(
    item_id: int,
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.PurchaseResponse:
    """Buy an item with points."""
    result = await service.purchase_item(ledger, user.id, item_id)
    return schemas.PurchaseResponse(
        item=schemas.StoreItemResponse.model_validate(result.item),
        inventory_item=schemas.InventoryItemResponse.model_validate(result.inventory_item),
        remaining_points=result.remaining_points,
        mining_power=result.mining_power,
    )
