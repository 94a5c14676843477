"""Pydantic schemas for the referrals API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReferredUser(BaseModel):
    id: int
    username: str
    created_at: datetime


class ReferralResponse(BaseModel):
    id: int
    referrer_id: int
    referred_id: int
    points_earned: int
    created_at: datetime
    referred_user: ReferredUser | None = None


class ReferralCodeResponse(BaseModel):
    """Response for GET /referrals/code/{code}."""

    referrer_username: str
    referral_code: str
