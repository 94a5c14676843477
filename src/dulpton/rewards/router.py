"""Daily rewards API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth.dependencies import get_current_user
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.rewards import schemas, service

router = APIRouter(prefix="/api/v1/daily-rewards", tags=["Daily Rewards"])


@router.get("", response_model=schemas.DailyRewardStatusResponse)
async def get_status(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.DailyRewardStatusResponse:
    """Streak, claimability and reward table for the authenticated user."""
    status = await service.get_daily_reward_status(ledger, user.id)
    return schemas.DailyRewardStatusResponse.model_validate(status)


@router.post("/claim", response_model=schemas.DailyClaimResponse)
async def claim(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.DailyClaimResponse:
    result = await service.claim_daily_reward(ledger, user.id)
    return schemas.DailyClaimResponse(day=result.day, amount=result.amount, total_points=result.total_points)
