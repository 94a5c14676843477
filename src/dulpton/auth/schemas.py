"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class RegisterRequest(BaseModel):
    """Registration with an optional referral code."""

    username: str = Field(..., min_length=3, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
    referral_code: str | None = Field(None, max_length=16)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @model_validator(mode="after")
    def passwords_match(self) -> RegisterRequest:
        if self.password != self.confirm_password:
            msg = "Passwords do not match"
            raise ValueError(msg)
        return self


class LoginRequest(BaseModel):
    """Login with username + password."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    points: int
    mining_power: int
    staked_points: int
    referral_points: int
    last_daily_reward_claim: datetime | None = None
    last_mining_reward: datetime | None = None
    daily_rewards_streak: int
    referral_code: str
    referred_by: int | None = None
    created_at: datetime


class TokenResponse(BaseModel):
    """Issued access token and the authenticated user."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
