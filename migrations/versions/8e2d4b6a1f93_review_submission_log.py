"""review submission log

Revision ID: 8e2d4b6a1f93
Revises: 3c1f9a2b7d40
Create Date: 2026-10-16 14:03:27.905114

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e2d4b6a1f93"
down_revision: Union[str, Sequence[str], None] = "3c1f9a2b7d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the review submission log and backfill it from existing reviews."""
    op.create_table(
        "review_submission",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("identity_token", sa.String(length=128), nullable=False),
        sa.Column("restaurant_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_review_submission_identity_created",
        "review_submission",
        ["identity_token", "created_at"],
    )
    op.execute(
        "INSERT INTO review_submission (identity_token, restaurant_id, created_at) "
        "SELECT identity_token, restaurant_id, created_at FROM review"
    )


def downgrade() -> None:
    """Drop the review submission log."""
    op.drop_index("ix_review_submission_identity_created", table_name="review_submission")
    op.drop_table("review_submission")
