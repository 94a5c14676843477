"""Pydantic schemas for the store API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class StoreItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: int
    type: Literal["mining", "staking", "profile", "learning", "boost"]
    effect: dict[str, Any]
    img_url: str | None = None


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    item_id: int
    purchased_at: datetime
    is_active: bool
    expires_at: datetime | None = None


class PurchaseResponse(BaseModel):
    """Response for POST /store/purchase/{item_id}."""

    item: StoreItemResponse
    inventory_item: InventoryItemResponse
    remaining_points: int
    mining_power: int
