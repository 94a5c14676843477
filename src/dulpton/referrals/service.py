"""Referral linking at signup and referral listings."""

from __future__ import annotations

from typing import Any

import structlog

from dulpton.db.models import Referral, User
from dulpton.ledger.context import Ledger, record_activity
from dulpton.ledger.errors import NotFound

logger = structlog.get_logger()

REFERRAL_BONUS = 50


async def register_with_referral(ledger: Ledger, new_user: User, referral_code: str | None) -> Referral | None:
    """Link ``new_user`` to the owner of ``referral_code`` and pay the referrer.

    Unknown or empty codes are ignored. The bonus is paid once, here; the
    referral's ``points_earned`` stays at 0.
    """
    if not referral_code:
        return None

    referrer = await ledger.store.get_user_by_referral_code(referral_code)
    if referrer is None or referrer.id == new_user.id:
        logger.info("referral_code_ignored", user_id=new_user.id)
        return None

    async with ledger.locks.hold(referrer.id), ledger.store.transaction():
        # Re-read under the lock so the bonus lands on the current balance.
        referrer = await ledger.store.get_user(referrer.id)
        if referrer is None:
            return None

        referral = await ledger.store.create_referral(
            Referral(
                referrer_id=referrer.id,
                referred_id=new_user.id,
                points_earned=0,
                created_at=ledger.clock.now(),
            )
        )
        await ledger.store.update_user(new_user.id, {"referred_by": referrer.id})
        await ledger.store.update_user(
            referrer.id,
            {
                "points": referrer.points + REFERRAL_BONUS,
                "referral_points": referrer.referral_points + REFERRAL_BONUS,
            },
        )
        await record_activity(
            ledger,
            referrer.id,
            "referral",
            REFERRAL_BONUS,
            f"Referral Bonus: {new_user.username} joined",
        )

    logger.info("referral_registered", referrer_id=referrer.id, referred_id=new_user.id)
    return referral


async def list_referrals(ledger: Ledger, user_id: int) -> list[dict[str, Any]]:
    """Referrals made by ``user_id`` with a short summary of each referred user."""
    referrals = await ledger.store.get_user_referrals(user_id)
    details = []
    for referral in referrals:
        referred = await ledger.store.get_user(referral.referred_id)
        details.append({
            "referral": referral,
            "referred_user": (
                {"id": referred.id, "username": referred.username, "created_at": referred.created_at}
                if referred is not None
                else None
            ),
        })
    return details


async def lookup_referral_code(ledger: Ledger, code: str) -> User:
    """Resolve a code to its owner (used by the signup page to show who invited you)."""
    referrer = await ledger.store.get_user_by_referral_code(code)
    if referrer is None:
        raise NotFound("Invalid referral code")
    return referrer
