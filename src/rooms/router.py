"""Room API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status

from src.auth.dependencies import get_optional_auth_context, require_auth_context
from src.auth.jwt import AuthContext
from src.rooms.service import create_room, get_room_by_slug, is_viewer_member, join_room, list_room_members
from src.schemas.rooms import (
    RoomCreateRequest,
    RoomItem,
    RoomJoinRequest,
    RoomMemberItem,
    RoomMembersResponse,
    RoomResponse,
)
from src.storage.relational import RelationalStore, get_relational_store


router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.post("/create", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room_endpoint(
    payload: RoomCreateRequest,
    auth: AuthContext = Depends(require_auth_context),
    store: RelationalStore = Depends(get_relational_store),
) -> RoomResponse:
    room = create_room(store, user_id=auth.user_id, name=payload.name, description=payload.description)
    return RoomResponse(room=RoomItem.from_room(room))


@router.post("/join", response_model=RoomResponse)
def join_room_endpoint(
    payload: RoomJoinRequest,
    auth: AuthContext = Depends(require_auth_context),
    store: RelationalStore = Depends(get_relational_store),
) -> RoomResponse:
    room = join_room(store, user_id=auth.user_id, join_code=payload.join_code)
    return RoomResponse(room=RoomItem.from_room(room))


@router.get("/{room_slug}", response_model=RoomResponse)
def get_room_endpoint(
    room_slug: str,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    store: RelationalStore = Depends(get_relational_store),
) -> RoomResponse:
    room = get_room_by_slug(store, room_slug)
    # Join codes are only shown to members.
    viewer_is_member = is_viewer_member(store, room, auth.user_id if auth else None)
    return RoomResponse(room=RoomItem.from_room(room, include_join_code=viewer_is_member))


@router.get("/{room_slug}/members", response_model=RoomMembersResponse)
def list_room_members_endpoint(
    room_slug: str,
    auth: AuthContext = Depends(require_auth_context),
    store: RelationalStore = Depends(get_relational_store),
) -> RoomMembersResponse:
    rows = list_room_members(store, room_slug=room_slug, user_id=auth.user_id)
    return RoomMembersResponse(members=[RoomMemberItem.from_rows(member, profile) for member, profile in rows])
