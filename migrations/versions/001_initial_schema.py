"""Initial schema — users, session tokens, restaurants, ratings, comments.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only: never edit this file after it has been applied to a database.
Schema changes go in a new migration.

Creation order (FK dependencies):
  users → refresh_tokens, password_reset_tokens → restaurants
        → ratings, comments

ON DELETE policies:
  refresh_tokens.user_id          → CASCADE   (session owned by user)
  password_reset_tokens.user_id   → CASCADE
  restaurants.created_by_user_id  → RESTRICT  (cannot delete a user who created restaurants)
  ratings.* / comments.*          → CASCADE   (owned by restaurant and author)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
    )

    # ── refresh_tokens ─────────────────────────────────────────────────────
    # token_hash holds the SHA-256 hex digest, never the raw token.
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_refresh_tokens_user"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
    )
    op.create_index("idx_refresh_tokens_user", "refresh_tokens", ["user_id"])
    op.create_index("idx_refresh_tokens_hash", "refresh_tokens", ["token_hash"])

    # ── password_reset_tokens ──────────────────────────────────────────────
    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_password_reset_tokens_user"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_password_reset_tokens"),
    )
    op.create_index("idx_password_reset_tokens_user", "password_reset_tokens", ["user_id"])
    op.create_index("idx_password_reset_tokens_hash", "password_reset_tokens", ["token_hash"])

    # ── restaurants ────────────────────────────────────────────────────────
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("full_address", sa.String(500), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("cuisine_type", sa.String(100), nullable=False),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column(
            "created_by_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_restaurants_creator"),
            nullable=False,
        ),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_restaurants"),
    )
    op.create_index("idx_restaurants_cuisine_type", "restaurants", ["cuisine_type"])
    op.create_index("idx_restaurants_creator", "restaurants", ["created_by_user_id"])

    # ── ratings ────────────────────────────────────────────────────────────
    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "restaurant_id",
            sa.Integer(),
            sa.ForeignKey("restaurants.id", ondelete="CASCADE", name="fk_ratings_restaurant"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_ratings_user"),
            nullable=False,
        ),
        sa.Column("stars", sa.Integer(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_ratings"),
        sa.UniqueConstraint("restaurant_id", "user_id", name="uq_ratings_restaurant_user"),
        sa.CheckConstraint("stars BETWEEN 1 AND 5", name="ck_ratings_stars_range"),
    )
    op.create_index("idx_ratings_restaurant", "ratings", ["restaurant_id"])
    op.create_index("idx_ratings_user", "ratings", ["user_id"])

    # ── comments ───────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "restaurant_id",
            sa.Integer(),
            sa.ForeignKey("restaurants.id", ondelete="CASCADE", name="fk_comments_restaurant"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_comments_user"),
            nullable=False,
        ),
        sa.Column("body", sa.Text(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index("idx_comments_restaurant", "comments", ["restaurant_id"])
    op.create_index("idx_comments_user", "comments", ["user_id"])


def downgrade() -> None:
    """Drops everything in reverse dependency order. Local development only."""

    op.drop_index("idx_comments_user", table_name="comments")
    op.drop_index("idx_comments_restaurant", table_name="comments")
    op.drop_table("comments")

    op.drop_index("idx_ratings_user", table_name="ratings")
    op.drop_index("idx_ratings_restaurant", table_name="ratings")
    op.drop_table("ratings")

    op.drop_index("idx_restaurants_creator", table_name="restaurants")
    op.drop_index("idx_restaurants_cuisine_type", table_name="restaurants")
    op.drop_table("restaurants")

    op.drop_index("idx_password_reset_tokens_hash", table_name="password_reset_tokens")
    op.drop_index("idx_password_reset_tokens_user", table_name="password_reset_tokens")
    op.drop_table("password_reset_tokens")

    op.drop_index("idx_refresh_tokens_hash", table_name="refresh_tokens")
    op.drop_index("idx_refresh_tokens_user", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_table("users")
