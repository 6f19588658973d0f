"""Relational store: narrow row-level contract over rooms, memberships and blogs."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional
import uuid

from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.storage.db import get_session
from src.storage.models import Blog, Profile, Room, RoomMember


_UNIQUE_FIELD_HINTS = ("join_code", "slug", "user_id", "sanity_id")


class RelationalStoreError(RuntimeError):
    """Raised when the relational backend rejects or fails an operation."""


class UniqueViolation(RelationalStoreError):
    """Raised when an insert/update collides with a unique constraint."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


def _violated_field(exc: IntegrityError) -> Optional[str]:
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    for hint in _UNIQUE_FIELD_HINTS:
        if hint in detail:
            return hint
    return None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RelationalStore:
    """SQLAlchemy-backed store; every write commits its own transaction."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self._session.rollback()
            raise UniqueViolation(f"{operation}_conflict", field=_violated_field(exc)) from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RelationalStoreError(f"{operation}_failed") from exc

    # Rooms

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._guard("get_room"):
            return self._session.scalar(select(Room).where(Room.id == room_id))

    def get_room_by_slug(self, slug: str) -> Optional[Room]:
        with self._guard("get_room_by_slug"):
            return self._session.scalar(select(Room).where(Room.slug == slug))

    def get_room_by_join_code(self, join_code: str) -> Optional[Room]:
        with self._guard("get_room_by_join_code"):
            return self._session.scalar(select(Room).where(Room.join_code == join_code))

    def room_slugs_with_prefix(self, prefix: str) -> set[str]:
        with self._guard("room_slugs_with_prefix"):
            rows = self._session.scalars(select(Room.slug).where(Room.slug.like(f"{prefix}%"))).all()
        return set(rows)

    def join_code_in_use(self, join_code: str) -> bool:
        with self._guard("join_code_in_use"):
            existing = self._session.scalar(select(Room.id).where(Room.join_code == join_code))
        return existing is not None

    def create_room(
        self,
        *,
        name: str,
        slug: str,
        join_code: str,
        description: Optional[str],
        created_by: str,
    ) -> Room:
        """Insert a room and its creator's admin membership in one transaction."""

        with self._guard("create_room"):
            room = Room(
                id=str(uuid.uuid4()),
                name=name,
                slug=slug,
                join_code=join_code,
                description=description,
                created_by=created_by,
                created_at=_now_utc(),
            )
            self._session.add(room)
            self._session.flush()
            self._session.add(
                RoomMember(
                    id=str(uuid.uuid4()),
                    room_id=room.id,
                    user_id=created_by,
                    role="admin",
                    joined_at=_now_utc(),
                )
            )
            self._session.commit()
        return room

    # Memberships

    def get_membership(self, room_id: str, user_id: str) -> Optional[RoomMember]:
        with self._guard("get_membership"):
            return self._session.scalar(
                select(RoomMember).where(RoomMember.room_id == room_id, RoomMember.user_id == user_id)
            )

    def add_member(self, room_id: str, user_id: str, *, role: str = "member") -> RoomMember:
        with self._guard("add_member"):
            membership = RoomMember(
                id=str(uuid.uuid4()),
                room_id=room_id,
                user_id=user_id,
                role=role,
                joined_at=_now_utc(),
            )
            self._session.add(membership)
            self._session.commit()
        return membership

    def list_members(self, room_id: str) -> list[tuple[RoomMember, Optional[Profile]]]:
        with self._guard("list_members"):
            rows = self._session.execute(
                select(RoomMember, Profile)
                .outerjoin(Profile, Profile.id == RoomMember.user_id)
                .where(RoomMember.room_id == room_id)
                .order_by(RoomMember.joined_at.asc())
            ).all()
        return [(member, profile) for member, profile in rows]

    # Blogs

    def get_blog(self, blog_id: str) -> Optional[Blog]:
        with self._guard("get_blog"):
            return self._session.get(Blog, blog_id, populate_existing=True)

    def get_blog_by_slug(self, room_id: str, slug: str) -> Optional[Blog]:
        with self._guard("get_blog_by_slug"):
            return self._session.scalar(select(Blog).where(Blog.room_id == room_id, Blog.slug == slug))

    def blog_slugs(self, room_id: str) -> set[str]:
        with self._guard("blog_slugs"):
            rows = self._session.scalars(select(Blog.slug).where(Blog.room_id == room_id)).all()
        return set(rows)

    def insert_blog(
        self,
        *,
        room_id: str,
        author_id: str,
        title: str,
        slug: str,
        sanity_id: str,
        excerpt: Optional[str],
    ) -> Blog:
        with self._guard("insert_blog"):
            now = _now_utc()
            blog = Blog(
                id=str(uuid.uuid4()),
                room_id=room_id,
                author_id=author_id,
                title=title,
                slug=slug,
                excerpt=excerpt,
                sanity_id=sanity_id,
                published=False,
                created_at=now,
                updated_at=now,
            )
            self._session.add(blog)
            self._session.commit()
        return blog

    def update_blog(self, blog_id: str, **fields: Any) -> Optional[Blog]:
        with self._guard("update_blog"):
            blog = self._session.get(Blog, blog_id)
            if blog is None:
                return None
            for name, value in fields.items():
                setattr(blog, name, value)
            self._session.commit()
        return blog

    def mark_published(self, blog_id: str, *, sanity_id: str, published_at: datetime) -> Optional[Blog]:
        """Flip ``published`` only if it is still false; ``None`` when no row was updated."""

        with self._guard("mark_published"):
            result = self._session.execute(
                update(Blog)
                .where(Blog.id == blog_id, Blog.published.is_(False))
                .values(
                    published=True,
                    published_at=published_at,
                    sanity_id=sanity_id,
                    updated_at=published_at,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self._session.rollback()
                return None
            self._session.commit()
            return self._session.get(Blog, blog_id, populate_existing=True)


def get_relational_store(session: Session = Depends(get_session)) -> RelationalStore:
    return RelationalStore(session)
