"""Activity history API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dulpton.activities import schemas, service
from dulpton.auth.dependencies import get_current_user
from dulpton.config import get_settings
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


@router.get("", response_model=list[schemas.ActivityResponse])
async def list_activities(
    limit: int | None = Query(None, ge=1),
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> list[schemas.ActivityResponse]:
    """Recent balance changes for the authenticated user."""
    settings = get_settings()
    effective = min(limit or settings.activity_default_limit, settings.activity_max_limit)
    rows = await service.list_activities(ledger, user.id, effective)
    return [schemas.ActivityResponse.model_validate(row) for row in rows]
