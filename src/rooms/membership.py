"""Membership and authorship queries backed by the relational store."""

from __future__ import annotations

from typing import Literal, Optional

from src.storage.relational import RelationalStore


RoomRole = Literal["admin", "member"]


class MembershipGateway:
    """Point lookups answering "is user X a member/admin/author of Y".

    Misses return ``False``/``None``. Store failures propagate as
    ``RelationalStoreError``; callers must treat them as a denial.
    """

    def __init__(self, store: RelationalStore) -> None:
        self._store = store

    def role_of(self, room_id: str, user_id: str) -> Optional[RoomRole]:
        membership = self._store.get_membership(room_id, user_id)
        if membership is None:
            return None
        if membership.role == "admin":
            return "admin"
        return "member"

    def is_member(self, room_id: str, user_id: str) -> bool:
        return self.role_of(room_id, user_id) is not None

    def is_admin(self, room_id: str, user_id: str) -> bool:
        return self.role_of(room_id, user_id) == "admin"

    def is_room_creator(self, room_id: str, user_id: str) -> bool:
        room = self._store.get_room(room_id)
        return room is not None and room.created_by == user_id

    def can_write_in_room(self, room_id: str, user_id: str) -> bool:
        return self.is_member(room_id, user_id)

    def is_author(self, blog_id: str, user_id: str) -> bool:
        blog = self._store.get_blog(blog_id)
        return blog is not None and blog.author_id == user_id

    def can_edit(self, blog_id: str, user_id: str) -> bool:
        # Publishing permanently revokes edits through the draft update path.
        blog = self._store.get_blog(blog_id)
        if blog is None:
            return False
        return blog.author_id == user_id and not blog.published
