"""Tests for referral code generation."""

import pytest

from dulpton.referrals import codes
from dulpton.referrals.codes import (
    REFERRAL_CHARSET,
    REFERRAL_CODE_LENGTH,
    generate_referral_code,
    generate_unique_referral_code,
)


def test_code_shape():
    for _ in range(50):
        code = generate_referral_code()
        assert len(code) == REFERRAL_CODE_LENGTH
        assert set(code) <= set(REFERRAL_CHARSET)


def test_codes_vary():
    assert len({generate_referral_code() for _ in range(50)}) > 45


async def test_unique_code_skips_taken(store, make_user, monkeypatch):
    await make_user("alice", referral_code="TAKEN000")
    candidates = iter(["TAKEN000", "FREE0000"])
    monkeypatch.setattr(codes, "generate_referral_code", lambda: next(candidates))
    assert await generate_unique_referral_code(store) == "FREE0000"


async def test_unique_code_gives_up(store, make_user, monkeypatch):
    await make_user("alice", referral_code="TAKEN000")
    monkeypatch.setattr(codes, "generate_referral_code", lambda: "TAKEN000")
    with pytest.raises(RuntimeError, match="unique referral code"):
        await generate_unique_referral_code(store)
