"""Staking API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth.dependencies import get_current_user
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.staking import schemas, service

router = APIRouter(prefix="/api/v1/staking", tags=["Staking"])


@router.get("/pools", response_model=list[schemas.StakingPoolResponse])
async def list_pools(ledger: Ledger = Depends(get_ledger)) -> list[schemas.StakingPoolResponse]:
    """All staking pools, including inactive ones (public)."""
    pools = await service.list_pools(ledger)
    return [schemas.StakingPoolResponse.model_validate(p) for p in pools]


@router.get("/stakes", response_model=list[schemas.UserStakeResponse])
async def list_stakes(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> list[schemas.UserStakeResponse]:
    stakes = await service.list_stakes(ledger, user.id)
    return [schemas.UserStakeResponse.model_validate(s) for s in stakes]


@router.post("/stake", response_model=schemas.UserStakeResponse, status_code=201)
async def create_stake(
    body: schemas.StakeRequest,
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.UserStakeResponse:
    """Lock points into a pool."""
    stake = await service.create_stake(ledger, user.id, body.pool_id, body.amount)
    return schemas.UserStakeResponse.model_validate(stake)


@router.post("/unstake/{stake_id}", response_model=schemas.UnstakeResponse)
async def unstake(
    stake_id: int,
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.UnstakeResponse:
    """Withdraw principal plus accrued reward. Rejected during the lock period."""
    result = await service.unstake(ledger, user.id, stake_id)
    return schemas.UnstakeResponse(
        unstaked=result.unstaked, reward=result.reward, total_returned=result.total_returned
    )


@router.post("/collect/{stake_id}", response_model=schemas.StakeRewardResponse)
async def collect_reward(
    stake_id: int,
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> schemas.StakeRewardResponse:
    result = await service.collect_stake_reward(ledger, user.id, stake_id)
    return schemas.StakeRewardResponse(reward=result.reward, total_points=result.total_points)
