"""Referrals API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dulpton.auth.dependencies import get_current_user
from dulpton.db.models import User
from dulpton.dependencies import get_ledger
from dulpton.ledger.context import Ledger
from dulpton.referrals import schemas, service

router = APIRouter(prefix="/api/v1/referrals", tags=["Referrals"])


@router.get("", response_model=list[schemas.ReferralResponse])
async def list_referrals(
    user: User = Depends(get_current_user),
    ledger: Ledger = Depends(get_ledger),
) -> list[schemas.ReferralResponse]:
    """Users the authenticated user has referred."""
    details = await service.list_referrals(ledger, user.id)
    return [
        schemas.ReferralResponse(
            id=d["referral"].id,
            referrer_id=d["referral"].referrer_id,
            referred_id=d["referral"].referred_id,
            points_earned=d["referral"].points_earned,
            created_at=d["referral"].created_at,
            referred_user=d["referred_user"],
        )
        for d in details
    ]


@router.get("/code/{code}", response_model=schemas.ReferralCodeResponse)
async def lookup_code(code: str, ledger: Ledger = Depends(get_ledger)) -> schemas.ReferralCodeResponse:
    """Resolve a referral code to its owner's username (public)."""
    referrer = await service.lookup_referral_code(ledger, code)
    return schemas.ReferralCodeResponse(referrer_username=referrer.username, referral_code=code)
