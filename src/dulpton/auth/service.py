"""
Account registration and login.

Registration creates the user with the starting balance and, when a referral
code is supplied, links the referrer in the same transaction.
"""

from __future__ import annotations

import structlog

from dulpton.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from dulpton.db.models import User
from dulpton.ledger.context import Ledger
from dulpton.ledger.errors import Conflict, Unauthenticated, ValidationError
from dulpton.referrals.codes import generate_unique_referral_code
from dulpton.referrals.service import register_with_referral

logger = structlog.get_logger()

STARTING_POINTS = 100
BASE_MINING_POWER = 50


async def register_user(
    ledger: Ledger,
    username: str,
    email: str,
    password: str,
    referral_code: str | None = None,
) -> User:
    """
    Register a new user.

    Raises:
        ValidationError: If the password is too weak.
        Conflict: If the username or email is taken.
    """
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e)) from e

    store = ledger.store
    password_hash = hash_password(password)

    # A signup racing past these checks still hits the unique indexes,
    # which the store reports as Conflict.
    async with store.transaction():
        if await store.get_user_by_username(username) is not None:
            raise Conflict("Username already exists")
        if await store.get_user_by_email(email) is not None:
            raise Conflict("Email already exists")

        user = await store.create_user(
            User(
                username=username,
                email=email.lower().strip(),
                password_hash=password_hash,
                points=STARTING_POINTS,
                mining_power=BASE_MINING_POWER,
                staked_points=0,
                referral_points=0,
                last_daily_reward_claim=None,
                last_mining_reward=None,
                daily_rewards_streak=0,
                referral_code=await generate_unique_referral_code(store),
                referred_by=None,
                created_at=ledger.clock.now(),
            )
        )
        referral = await register_with_referral(ledger, user, referral_code)
        if referral is not None:
            user = await store.get_user(user.id)  # type: ignore[assignment]

    logger.info("user_created", user_id=user.id, username=username, referred=referral is not None)
    return user


async def authenticate_user(ledger: Ledger, username: str, password: str) -> User:
    """
    Authenticate with username + password.

    Raises:
        Unauthenticated: If the credentials do not match.
    """
    user = await ledger.store.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid username or password")
    logger.info("user_login", user_id=user.id)
    return user
