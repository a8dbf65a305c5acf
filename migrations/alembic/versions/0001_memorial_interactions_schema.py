"""Memorial interactions schema - users, memorials, members, reactions, notifications

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the tables behind memorial access, reactions and owner notifications.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    # Enable pgcrypto extension for gen_random_uuid()
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # ==========================================================================
    # users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ==========================================================================
    # memorials table
    # ==========================================================================
    op.create_table(
        "memorials",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("creator_id", sa.UUID(), nullable=False),
        sa.Column("memorial_type", sa.Text(), server_default="person", nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("privacy_level", sa.Text(), server_default="public", nullable=False),
        sa.Column("invite_link", sa.Text(), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("invite_link", name="uq_memorials_invite_link"),
        sa.CheckConstraint(
            "privacy_level IN ('public', 'private')",
            name="ck_memorials_privacy_level",
        ),
        sa.CheckConstraint(
            "memorial_type IN ('person', 'pet')",
            name="ck_memorials_memorial_type",
        ),
    )
    op.create_index("ix_memorials_creator_id", "memorials", ["creator_id"])

    # ==========================================================================
    # memorial_members table
    # ==========================================================================
    op.create_table(
        "memorial_members",
        sa.Column("memorial_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("memorial_id", "user_id"),
        sa.ForeignKeyConstraint(["memorial_id"], ["memorials.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "role IN ('administrator', 'member')",
            name="ck_memorial_members_role",
        ),
    )

    # ==========================================================================
    # memorial_reactions table
    # ==========================================================================
    op.create_table(
        "memorial_reactions",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("memorial_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("reaction_type", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["memorial_id"], ["memorials.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        # One reaction of each kind per user per memorial; arbitrates duplicate adds
        sa.UniqueConstraint(
            "memorial_id",
            "user_id",
            "reaction_type",
            name="uq_memorial_reactions_memorial_user_type",
        ),
        sa.CheckConstraint(
            "reaction_type IN ('liebe', 'dankbarkeit', 'freiheit', 'blumen', 'kerze')",
            name="ck_memorial_reactions_reaction_type",
        ),
    )

    # ==========================================================================
    # notifications table
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("recipient_id", sa.UUID(), nullable=False),
        sa.Column("memorial_id", sa.UUID(), nullable=False),
        sa.Column("actor_id", sa.UUID(), nullable=False),
        sa.Column("actor_name", sa.Text(), nullable=False),
        sa.Column("actor_avatar_url", sa.Text(), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("reaction_types", sa.JSON(), server_default="[]", nullable=False),
        sa.Column("reaction_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["memorial_id"], ["memorials.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "type IN ('reaction', 'condolence_entry', 'post')",
            name="ck_notifications_type",
        ),
    )
    op.create_index(
        "ix_notifications_merge_key",
        "notifications",
        ["recipient_id", "memorial_id", "actor_id", "type", "created_at"],
    )
    op.create_index(
        "ix_notifications_recipient_unread",
        "notifications",
        ["recipient_id", "is_read"],
    )


def downgrade() -> None:
    op.drop_index("ix_notifications_recipient_unread", table_name="notifications")
    op.drop_index("ix_notifications_merge_key", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("memorial_reactions")
    op.drop_table("memorial_members")
    op.drop_index("ix_memorials_creator_id", table_name="memorials")
    op.drop_table("memorials")
    op.drop_table("users")
