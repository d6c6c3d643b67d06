"""Initial schema: users, entities, share links, shared entities

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("require_password_change", sa.Boolean(), nullable=False),
        sa.Column("ha_url", sa.String(length=500), nullable=True),
        sa.Column("ha_token", sa.Text(), nullable=True),
        sa.Column("otp_secret", sa.String(length=64), nullable=True),
        sa.Column("otp_enabled", sa.Boolean(), nullable=False),
        sa.Column("otp_backup_codes", sa.JSON(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    op.create_table(
        "entities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=255), nullable=False),
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.Column("last_changed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "entity_id", name="uq_entities_user_entity"),
    )
    op.create_index(op.f("ix_entities_id"), "entities", ["id"], unique=False)
    op.create_index(
        op.f("ix_entities_entity_id"), "entities", ["entity_id"], unique=False
    )
    op.create_index(op.f("ix_entities_user_id"), "entities", ["user_id"], unique=False)

    op.create_table(
        "share_links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("entity_ids", sa.JSON(), nullable=False),
        sa.Column("link_type", sa.String(length=16), nullable=False),
        sa.Column("access_mode", sa.String(length=16), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("access_count", sa.Integer(), nullable=False),
        sa.Column("max_access", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_share_links_id"), "share_links", ["id"], unique=False)
    op.create_index(
        op.f("ix_share_links_token"), "share_links", ["token"], unique=True
    )
    op.create_index(
        op.f("ix_share_links_user_id"), "share_links", ["user_id"], unique=False
    )

    op.create_table(
        "shared_entities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("shared_with_id", sa.Uuid(), nullable=False),
        sa.Column("access_mode", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shared_with_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "entity_id", "owner_id", "shared_with_id", name="uq_shared_entities_pair"
        ),
    )
    op.create_index(
        op.f("ix_shared_entities_id"), "shared_entities", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_shared_entities_owner_id"),
        "shared_entities",
        ["owner_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_shared_entities_shared_with_id"),
        "shared_entities",
        ["shared_with_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("shared_entities")
    op.drop_table("share_links")
    op.drop_table("entities")
    op.drop_table("users")
