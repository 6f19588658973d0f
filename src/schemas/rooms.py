"""Pydantic schemas for room API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.rooms.join_codes import format_join_code
from src.storage.models import Profile, Room, RoomMember


class RoomCreateRequest(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None


class RoomJoinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    join_code: str = Field(alias="joinCode", min_length=1, max_length=16)


class RoomItem(BaseModel):
    id: str
    name: str
    slug: str
    join_code: Optional[str] = None
    join_code_display: Optional[str] = None
    description: Optional[str] = None
    created_by: str
    created_at: datetime

    @classmethod
    def from_room(cls, room: Room, *, include_join_code: bool = True) -> "RoomItem":
        return cls(
            id=room.id,
            name=room.name,
            slug=room.slug,
            join_code=room.join_code if include_join_code else None,
            join_code_display=format_join_code(room.join_code) if include_join_code else None,
            description=room.description,
            created_by=room.created_by,
            created_at=room.created_at,
        )


class RoomResponse(BaseModel):
    room: RoomItem


class RoomMemberItem(BaseModel):
    id: str
    room_id: str
    user_id: str
    role: str
    joined_at: datetime
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_rows(cls, member: RoomMember, profile: Optional[Profile]) -> "RoomMemberItem":
        return cls(
            id=member.id,
            room_id=member.room_id,
            user_id=member.user_id,
            role=member.role,
            joined_at=member.joined_at,
            username=profile.username if profile else None,
            full_name=profile.full_name if profile else None,
            avatar_url=profile.avatar_url if profile else None,
        )


class RoomMembersResponse(BaseModel):
    members: List[RoomMemberItem]
