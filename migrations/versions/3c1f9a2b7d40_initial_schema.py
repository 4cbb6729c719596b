"""initial schema

Revision ID: 3c1f9a2b7d40
Revises:
Create Date: 2026-10-16 09:12:44.318502

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f9a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create restaurants, ratings, reviews, suggestions and reactions."""
    op.create_table(
        "restaurant",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("menu_images", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "restaurant_stats",
        sa.Column("restaurant_id", sa.Integer(), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=False),
        sa.Column("rating_count", sa.Integer(), nullable=False),
        sa.Column("review_count", sa.Integer(), nullable=False),
        sa.Column("refreshed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurant.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("restaurant_id"),
    )
    op.create_table(
        "rating",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("restaurant_id", sa.Integer(), nullable=False),
        sa.Column("identity_token", sa.String(length=128), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("value >= 1 AND value <= 5", name="ck_rating_value_range"),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurant.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "restaurant_id", "identity_token", name="uq_rating_restaurant_identity"
        ),
    )
    op.create_index("ix_rating_restaurant_id", "rating", ["restaurant_id"])
    op.create_table(
        "review",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("restaurant_id", sa.Integer(), nullable=False),
        sa.Column("identity_token", sa.String(length=128), nullable=False),
        sa.Column("reviewer_name", sa.String(length=100), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurant.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "restaurant_id", "identity_token", name="uq_review_restaurant_identity"
        ),
    )
    op.create_index("ix_review_identity_created", "review", ["identity_token", "created_at"])
    op.create_table(
        "suggestion",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("restaurant_name", sa.String(length=200), nullable=True),
        sa.Column("food_item", sa.String(length=200), nullable=True),
        sa.Column("user_name", sa.String(length=100), nullable=True),
        sa.Column("user_email", sa.String(length=254), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("identity_token", sa.String(length=128), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("dislikes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("type IN ('suggestion', 'complaint')", name="ck_suggestion_type"),
        sa.CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_suggestion_counts"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_suggestion_identity_token", "suggestion", ["identity_token"])
    op.create_table(
        "suggestion_reaction",
        sa.Column("suggestion_id", sa.String(length=36), nullable=False),
        sa.Column("identity_token", sa.String(length=128), nullable=False),
        sa.Column("reaction_type", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "reaction_type IN ('like', 'dislike')", name="ck_suggestion_reaction_type"
        ),
        sa.ForeignKeyConstraint(["suggestion_id"], ["suggestion.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("suggestion_id", "identity_token"),
    )
    op.create_index(
        "ix_suggestion_reaction_suggestion_id", "suggestion_reaction", ["suggestion_id"]
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_suggestion_reaction_suggestion_id", table_name="suggestion_reaction")
    op.drop_table("suggestion_reaction")
    op.drop_index("ix_suggestion_identity_token", table_name="suggestion")
    op.drop_table("suggestion")
    op.drop_index("ix_review_identity_created", table_name="review")
    op.drop_table("review")
    op.drop_index("ix_rating_restaurant_id", table_name="rating")
    op.drop_table("rating")
    op.drop_table("restaurant_stats")
    op.drop_table("restaurant")
