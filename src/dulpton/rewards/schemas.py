"""Pydantic schemas for the daily rewards API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class DailyRewardItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    day: int
    amount: int
    claimed_at: datetime


class DailyRewardStatusResponse(BaseModel):
    """Response for GET /daily-rewards."""

    rewards: list[DailyRewardItem]
    current_streak: int
    can_claim_today: bool
    day_today: int
    rewards_by_day: dict[int, int]
    next_reset: datetime
    claimed_days: list[int]


class DailyClaimResponse(BaseModel):
    """Response for POST /daily-rewards/claim."""

    day: int
    amount: int
    total_points: int
