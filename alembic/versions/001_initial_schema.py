"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates accounts, catalogue items, the follow graph, interactions,
       notifications and push subscriptions.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def _user_fk(name: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_users_username", "users", ["username"])

    op.create_table(
        "vinyls",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("artist", sa.Text(), nullable=False),
        sa.Column("genre", sa.Text(), nullable=True),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("barcode", sa.Text(), nullable=True),
        sa.Column("discogs_id", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("vinyl_color", sa.Text(), nullable=True),
        sa.Column("disc_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("format", sa.String(20), nullable=False, server_default="vinyl"),
        _user_fk("gifted_by_user_id", ondelete="SET NULL", nullable=True),
        _user_fk("shared_with_user_id", ondelete="SET NULL", nullable=True),
        sa.Column(
            "date_added", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_vinyls_rating_range"),
    )
    op.create_index("ix_vinyls_user_id", "vinyls", ["user_id"])
    op.create_index("ix_vinyls_artist", "vinyls", ["artist"])
    op.create_index("ix_vinyls_genre", "vinyls", ["genre"])
    op.create_index(
        "idx_vinyls_date_added", "vinyls", [sa.text("date_added DESC"), sa.text("id DESC")]
    )

    op.create_table(
        "follows",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="accepted"),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follows_no_self"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "likes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column(
            "vinyl_id", sa.Uuid(), sa.ForeignKey("vinyls.id", ondelete="CASCADE"), nullable=False
        ),
        _created_at(),
        sa.UniqueConstraint("user_id", "vinyl_id", name="uq_likes_user_vinyl"),
    )
    op.create_index("ix_likes_user_id", "likes", ["user_id"])
    op.create_index("ix_likes_vinyl_id", "likes", ["vinyl_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column(
            "vinyl_id", sa.Uuid(), sa.ForeignKey("vinyls.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "parent_id", sa.Uuid(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_comments_user_id", "comments", ["user_id"])
    op.create_index("ix_comments_vinyl_id", "comments", ["vinyl_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])

    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column(
            "comment_id",
            sa.Uuid(),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
        sa.UniqueConstraint("user_id", "comment_id", name="uq_comment_likes_user_comment"),
    )
    op.create_index("ix_comment_likes_user_id", "comment_likes", ["user_id"])
    op.create_index("ix_comment_likes_comment_id", "comment_likes", ["comment_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("recipient_id"),
        _user_fk("sender_id"),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("reference_id", sa.Uuid(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(
        "idx_notifications_recipient",
        "notifications",
        ["recipient_id", sa.text("created_at DESC")],
    )

    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _user_fk("user_id"),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("p256dh", sa.Text(), nullable=False),
        sa.Column("auth", sa.Text(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),
    )
    op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"])


def downgrade() -> None:
    for table in (
        "push_subscriptions",
        "notifications",
        "comment_likes",
        "comments",
        "likes",
        "follows",
        "vinyls",
        "users",
    ):
        op.drop_table(table)
