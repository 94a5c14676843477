"""Make email unique case-insensitively.

Revision ID: 002_unique_email
Revises: 001_baseline
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_unique_email"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_users_email_lower")
    op.execute("CREATE UNIQUE INDEX IF NOT EXISTS uq_users_email_lower ON users(LOWER(email))")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS uq_users_email_lower")
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_email_lower ON users(LOWER(email))")
