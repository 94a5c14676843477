"""Pydantic schemas for the staking API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StakingPoolResponse(BaseModel):
    """Pool definition. ``apy_rate`` is APY x 100."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    apy_rate: int
    lock_period_days: int
    min_stake: int
    is_active: bool


class UserStakeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    pool_id: int
    amount: int
    started_at: datetime
    end_at: datetime | None = None
    last_reward_at: datetime | None = None


class StakeRequest(BaseModel):
    """Body for POST /staking/stake."""

    pool_id: int = Field(..., ge=1)
    amount: int = Field(..., gt=0)


class StakeRewardResponse(BaseModel):
    reward: int
    total_points: int


class UnstakeResponse(BaseModel):
    unstaked: int
    reward: int
    total_returned: int
