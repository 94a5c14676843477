"""Baseline: users, mining, staking, daily rewards, store, activity log, referrals.

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            email VARCHAR(320) NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            points INTEGER NOT NULL DEFAULT 0,
            mining_power INTEGER NOT NULL DEFAULT 50,
            staked_points INTEGER NOT NULL DEFAULT 0,
            referral_points INTEGER NOT NULL DEFAULT 0,
            last_daily_reward_claim TIMESTAMPTZ,
            last_mining_reward TIMESTAMPTZ,
            daily_rewards_streak INTEGER NOT NULL DEFAULT 0,
            referral_code VARCHAR(16) UNIQUE NOT NULL,
            referred_by BIGINT REFERENCES users(id),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_email_lower ON users(LOWER(email))")

    # --- Mining ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS mining_operations (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            is_active BOOLEAN NOT NULL DEFAULT true,
            started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_reward_at TIMESTAMPTZ,
            session_earnings INTEGER NOT NULL DEFAULT 0
        )
    """)

    # --- Staking ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS staking_pools (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            apy_rate INTEGER NOT NULL,
            lock_period_days INTEGER NOT NULL DEFAULT 0,
            min_stake INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_stakes (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            pool_id BIGINT NOT NULL REFERENCES staking_pools(id),
            amount INTEGER NOT NULL,
            started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            end_at TIMESTAMPTZ,
            last_reward_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_stakes_user ON user_stakes(user_id)")

    # --- Daily rewards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_rewards (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            day INTEGER NOT NULL,
            amount INTEGER NOT NULL,
            claimed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_daily_rewards_user ON daily_rewards(user_id)")

    # --- Store ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS store_items (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            price INTEGER NOT NULL,
            type VARCHAR(16) NOT NULL,
            effect JSON NOT NULL,
            img_url TEXT
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_inventory (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            item_id BIGINT NOT NULL REFERENCES store_items(id),
            purchased_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            is_active BOOLEAN NOT NULL DEFAULT true,
            expires_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_inventory_user ON user_inventory(user_id)")

    # --- Activity log ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_activities (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(16) NOT NULL,
            amount INTEGER NOT NULL,
            description TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_activities_user_time
        ON user_activities(user_id, created_at)
    """)

    # --- Referrals ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS referrals (
            id BIGSERIAL PRIMARY KEY,
            referrer_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            referred_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            points_earned INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_referrals_referrer ON referrals(referrer_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS referrals CASCADE")
    op.execute("DROP TABLE IF EXISTS user_activities CASCADE")
    op.execute("DROP TABLE IF EXISTS user_inventory CASCADE")
    op.execute("DROP TABLE IF EXISTS store_items CASCADE")
    op.execute("DROP TABLE IF EXISTS daily_rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS user_stakes CASCADE")
    op.execute("DROP TABLE IF EXISTS staking_pools CASCADE")
    op.execute("DROP TABLE IF EXISTS mining_operations CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
