"""Authentication API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth import schemas, service
from dulpton.auth.dependencies import get_current_user
from dulpton.auth.jwt import create_access_token
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def _token_response(user: User) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        access_token=create_access_token(user.id, user.username),
        user=schemas.UserResponse.model_validate(user),
    )


@router.post("/register", response_model=schemas.TokenResponse, status_code=201)
async def register(
    body: schemas.RegisterRequest,
    ledger: Ledger = Depends(get_ledger),
) -> schemas.TokenResponse:
    """Create an account (optionally via a referral code) and log in."""
    user = await service.register_user(
        ledger,
        username=body.username,
        email=body.email,
        password=body.password,
        referral_code=body.referral_code,
    )
    return _token_response(user)


@router.post("/login", response_model=schemas.TokenResponse)
async def login(
    body: schemas.LoginRequest,
    ledger: Ledger = Depends(get_ledger),
) -> schemas.TokenResponse:
    user = await service.authenticate_user(ledger, body.username, body.password)
    return _token_response(user)


@router.post("/logout")
async def logout(_user: User = Depends(get_current_user)) -> dict[str, str]:
    """Tokens are stateless; the client discards its copy."""
    return {"status": "logged_out"}


@router.get("/me", response_model=schemas.UserResponse)
async def me(user: User = Depends(get_current_user)) -> schemas.UserResponse:
    return schemas.UserResponse.model_validate(user)
