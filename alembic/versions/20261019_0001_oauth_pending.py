"""oauth pending authorization table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00

"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "oauth_pending",
        sa.Column("state", sa.Text(), nullable=False),
        sa.Column("verifier", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("state"),
    )
    op.create_index("idx_oauth_pending_created_at", "oauth_pending", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_oauth_pending_created_at", table_name="oauth_pending")
    op.drop_table("oauth_pending")
