"""SQLAlchemy ORM models for rooms, memberships, profiles and blog metadata."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.storage.db import Base


ROOM_ROLES = ("admin", "member")


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """Public profile row mirrored from the auth provider's user table."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(80), nullable=False)
    join_code: Mapped[str] = mapped_column(String(4), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    members: Mapped[list[RoomMember]] = relationship("RoomMember", back_populates="room")

    __table_args__ = (
        UniqueConstraint("slug", name="uq_rooms_slug"),
        UniqueConstraint("join_code", name="uq_rooms_join_code"),
        CheckConstraint("length(join_code) = 4", name="ck_rooms_join_code_digits"),
    )


class RoomMember(Base):
    __tablename__ = "room_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    room_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="member")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    room: Mapped[Room] = relationship("Room", back_populates="members")

    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_members_room_user"),
        CheckConstraint("role IN ('admin', 'member')", name="ck_room_members_role"),
        Index("ix_room_members_room_joined_at", "room_id", "joined_at"),
        Index("ix_room_members_user_id", "user_id"),
    )


class Blog(Base):
    """Blog metadata of record; the body lives in the content store under ``sanity_id``."""

    __tablename__ = "blogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    room_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(80), nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sanity_id: Mapped[str] = mapped_column(String(128), nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("room_id", "slug", name="uq_blogs_room_slug"),
        UniqueConstraint("sanity_id", name="uq_blogs_sanity_id"),
        Index("ix_blogs_room_created_at", "room_id", "created_at"),
        Index("ix_blogs_author_id", "author_id"),
    )
