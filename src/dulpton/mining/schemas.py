"""Pydantic schemas for the mining API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MiningOperationResponse(BaseModel):
    """Current mining session."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    is_active: bool
    started_at: datetime
    last_reward_at: datetime | None = None
    session_earnings: int


class MiningCollectResponse(BaseModel):
    """Response for POST /mining/collect."""

    reward: int
    total_points: int
    mining_operation: MiningOperationResponse
