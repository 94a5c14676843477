"""Pydantic schemas for the activity history API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ActivityResponse(BaseModel):
    """One audit row. ``amount`` is signed: credits positive, debits negative."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    amount: int
    description: str
    created_at: datetime
