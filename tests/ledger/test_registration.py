"""Registration, login and referral linking."""

import pytest

from dulpton.activities.service import list_activities
from dulpton.auth.service import authenticate_user, register_user
from dulpton.ledger.errors import Conflict, NotFound, Unauthenticated, ValidationError
from dulpton.referrals.service import REFERRAL_BONUS, list_referrals, lookup_referral_code


async def test_new_user_defaults(ledger):
    user = await register_user(ledger, "alice", "Alice@Example.com", "hunter22")
    assert user.points == 100
    assert user.mining_power == 50
    assert user.staked_points == 0
    assert user.daily_rewards_streak == 0
    assert user.email == "alice@example.com"
    assert len(user.referral_code) == 8
    assert user.referred_by is None
    assert user.password_hash != "hunter22"


async def test_duplicate_username_or_email(ledger):
    await register_user(ledger, "alice", "alice@example.com", "hunter22")
    with pytest.raises(Conflict, match="Username already exists"):
        await register_user(ledger, "ALICE", "other@example.com", "hunter22")
    with pytest.raises(Conflict, match="Email already exists"):
        await register_user(ledger, "bobby", "alice@example.com", "hunter22")


async def test_weak_password(ledger):
    with pytest.raises(ValidationError):
        await register_user(ledger, "alice", "alice@example.com", "abc")
    assert await ledger.store.get_user_by_username("alice") is None


async def test_login(ledger):
    await register_user(ledger, "alice", "alice@example.com", "hunter22")
    assert (await authenticate_user(ledger, "alice", "hunter22")).username == "alice"
    with pytest.raises(Unauthenticated):
        await authenticate_user(ledger, "alice", "wrong-password")
    with pytest.raises(Unauthenticated):
        await authenticate_user(ledger, "nobody", "hunter22")


async def test_referral_pays_referrer_once(ledger):
    referrer = await register_user(ledger, "alice", "alice@example.com", "hunter22")

    referred = await register_user(ledger, "bobby", "bobby@example.com", "hunter22", referral_code=referrer.referral_code)

    assert referred.referred_by == referrer.id
    assert referred.points == 100
    stored = await ledger.store.get_user(referrer.id)
    assert stored.points == 100 + REFERRAL_BONUS
    assert stored.referral_points == REFERRAL_BONUS

    [entry] = await list_referrals(ledger, referrer.id)
    assert entry["referral"].referred_id == referred.id
    assert entry["referral"].points_earned == 0
    assert entry["referred_user"]["username"] == "bobby"

    [activity] = await list_activities(ledger, referrer.id)
    assert (activity.type, activity.amount) == ("referral", 50)
    assert activity.description == "Referral Bonus: bobby joined"
    assert await list_activities(ledger, referred.id) == []


async def test_unknown_referral_code_is_ignored(ledger):
    user = await register_user(ledger, "alice", "alice@example.com", "hunter22", referral_code="NOPE0000")
    assert user.referred_by is None
    assert await ledger.store.get_user_referrals(user.id) == []


async def test_referral_rolls_back_with_failed_signup(ledger, monkeypatch):
    from dulpton.auth import service

    referrer = await register_user(ledger, "alice", "alice@example.com", "hunter22")

    async def broken(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(service, "register_with_referral", broken)
    with pytest.raises(RuntimeError):
        await register_user(ledger, "bobby", "bobby@example.com", "hunter22", referral_code=referrer.referral_code)
    assert await ledger.store.get_user_by_username("bobby") is None


async def test_lookup_referral_code(ledger):
    referrer = await register_user(ledger, "alice", "alice@example.com", "hunter22")
    assert (await lookup_referral_code(ledger, referrer.referral_code)).id == referrer.id
    with pytest.raises(NotFound, match="Invalid referral code"):
        await lookup_referral_code(ledger, "NOPE0000")
