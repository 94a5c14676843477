"""ORM models for the points ledger.

Types are kept portable so the same models run on PostgreSQL (asyncpg) and
SQLite (aiosqlite). Timestamps are stored timezone-aware where the dialect
supports it; readers normalize through ``ensure_utc``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from dulpton.db.base import Base

# BIGINT primary keys are not rowid aliases on SQLite, so autoincrement needs INTEGER there.
IdType = BigInteger().with_variant(Integer(), "sqlite")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A player account and its denormalized balances."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    mining_power: Mapped[int] = mapped_column(Integer, nullable=False, default=50, server_default="50")
    staked_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    referral_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_daily_reward_claim: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_mining_reward: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    daily_rewards_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    referral_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    referred_by: Mapped[int | None] = mapped_column(IdType, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("uq_users_email_lower", func.lower(User.email), unique=True)


# ---------------------------------------------------------------------------
# Mining
# ---------------------------------------------------------------------------


class MiningOperation(Base):
    """Simulated mining session. At most one per user."""

    __tablename__ = "mining_operations"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_reward_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    session_earnings: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


# ---------------------------------------------------------------------------
# Staking
# ---------------------------------------------------------------------------


class StakingPool(Base):
    """Admin-defined pool. ``apy_rate`` is APY x 100 (500 = 5.00%)."""

    __tablename__ = "staking_pools"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    apy_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    lock_period_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    min_stake: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class UserStake(Base):
    """Points locked into a pool. Deleted on unstake."""

    __tablename__ = "user_stakes"
    __table_args__ = (Index("idx_user_stakes_user", "user_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pool_id: Mapped[int] = mapped_column(IdType, ForeignKey("staking_pools.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_reward_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Daily rewards
# ---------------------------------------------------------------------------


class DailyReward(Base):
    """Append-only record of a successful daily claim."""

    __tablename__ = "daily_rewards"
    __table_args__ = (Index("idx_daily_rewards_user", "user_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class StoreItem(Base):
    """Catalog entry. ``effect`` is a JSON payload interpreted per ``type``."""

    __tablename__ = "store_items"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    effect: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    img_url: Mapped[str | None] = mapped_column(Text, nullable=True)


class UserInventory(Base):
    """A purchased item. Boost items carry an expiry."""

    __tablename__ = "user_inventory"
    __table_args__ = (Index("idx_user_inventory_user", "user_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id: Mapped[int] = mapped_column(IdType, ForeignKey("store_items.id"), nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------


class UserActivity(Base):
    """Append-only audit row. One per balance change."""

    __tablename__ = "user_activities"
    __table_args__ = (Index("idx_user_activities_user_time", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ---------------------------------------------------------------------------
# Referrals
# ---------------------------------------------------------------------------


class Referral(Base):
    """Referrer -> referred link, written once at signup."""

    __tablename__ = "referrals"
    __table_args__ = (Index("idx_referrals_referrer", "referrer_id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    referred_id: Mapped[int] = mapped_column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
