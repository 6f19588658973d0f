"""rooms, memberships, profiles and blog metadata

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _is_postgresql() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=True),
        sa.Column("full_name", sa.String(length=120), nullable=True),
        sa.Column("avatar_url", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_profiles_username"),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=80), nullable=False),
        sa.Column("join_code", sa.String(length=4), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_rooms_slug"),
        sa.UniqueConstraint("join_code", name="uq_rooms_join_code"),
        sa.CheckConstraint("length(join_code) = 4", name="ck_rooms_join_code_digits"),
    )

    op.create_table(
        "room_members",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_id", "user_id", name="uq_room_members_room_user"),
        sa.CheckConstraint("role IN ('admin', 'member')", name="ck_room_members_role"),
    )
    op.create_index("ix_room_members_room_joined_at", "room_members", ["room_id", "joined_at"], unique=False)
    op.create_index("ix_room_members_user_id", "room_members", ["user_id"], unique=False)

    op.create_table(
        "blogs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("author_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=80), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("sanity_id", sa.String(length=128), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_id", "slug", name="uq_blogs_room_slug"),
        sa.UniqueConstraint("sanity_id", name="uq_blogs_sanity_id"),
    )
    op.create_index("ix_blogs_room_created_at", "blogs", ["room_id", "created_at"], unique=False)
    op.create_index("ix_blogs_author_id", "blogs", ["author_id"], unique=False)

    if _is_postgresql():
        op.execute(
            """
            ALTER TABLE rooms
            ADD CONSTRAINT ck_rooms_join_code_numeric CHECK (join_code ~ '^[0-9]{4}$');
            """
        )

    op.execute(
        """
        CREATE VIEW room_members_with_profiles AS
        SELECT
            rm.id,
            rm.room_id,
            rm.user_id,
            rm.role,
            rm.joined_at,
            p.username,
            p.full_name,
            p.avatar_url
        FROM room_members rm
        LEFT JOIN profiles p ON p.id = rm.user_id;
        """
    )


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS room_members_with_profiles;")

    op.drop_index("ix_blogs_author_id", table_name="blogs")
    op.drop_index("ix_blogs_room_created_at", table_name="blogs")
    op.drop_table("blogs")

    op.drop_index("ix_room_members_user_id", table_name="room_members")
    op.drop_index("ix_room_members_room_joined_at", table_name="room_members")
    op.drop_table("room_members")

    op.drop_table("rooms")
    op.drop_table("profiles")
