"""Room creation, joining and member listing services."""

from __future__ import annotations

from typing import Optional

from src.blogs.slugs import generate_slug, random_slug, unique_slug
from src.core.config import get_settings
from src.core.errors import Conflict, DependencyFailure, InputValidationError, NotFound, PermissionDenied
from src.core.logger import get_logger
from src.rooms.join_codes import JoinCodeExhausted, allocate_join_code, parse_join_code
from src.rooms.membership import MembershipGateway
from src.storage.models import Profile, Room, RoomMember
from src.storage.relational import RelationalStore, RelationalStoreError, UniqueViolation


logger = get_logger("roomblog.rooms")


def create_room(
    store: RelationalStore,
    *,
    user_id: str,
    name: str,
    description: Optional[str] = None,
) -> Room:
    """Create a room with a fresh slug and join code; the creator becomes admin."""

    settings = get_settings()
    base = name.strip()
    try:
        slug = unique_slug(
            base,
            store.room_slugs_with_prefix(generate_slug(base)),
            fallback=lambda: random_slug("room"),
        )
        join_code = allocate_join_code(
            store.join_code_in_use,
            max_attempts=settings.join_code_max_attempts,
        )
    except JoinCodeExhausted as exc:
        logger.error("join_code_allocation_exhausted", user_id=user_id, attempts=settings.join_code_max_attempts)
        raise DependencyFailure("Failed to generate unique join code. Please try again.") from exc
    except RelationalStoreError as exc:
        logger.error("room_create_lookup_failed", user_id=user_id, error=str(exc))
        raise DependencyFailure("Failed to create room") from exc

    try:
        room = store.create_room(
            name=base,
            slug=slug,
            join_code=join_code,
            description=description or None,
            created_by=user_id,
        )
    except UniqueViolation as exc:
        logger.warning("room_create_conflict", user_id=user_id, slug=slug, field=exc.field)
        if exc.field == "join_code":
            raise Conflict("Join code conflict. Please try again.") from exc
        raise Conflict("A room with this name already exists. Please try a different name.") from exc
    except RelationalStoreError as exc:
        logger.error("room_create_failed", user_id=user_id, slug=slug, error=str(exc))
        raise DependencyFailure("Failed to create room") from exc

    logger.info("room_created", room_id=room.id, slug=room.slug, user_id=user_id)
    return room


def join_room(store: RelationalStore, *, user_id: str, join_code: str) -> Room:
    try:
        code = parse_join_code(join_code)
    except ValueError as exc:
        raise InputValidationError("Invalid join code format") from exc

    try:
        room = store.get_room_by_join_code(code)
    except RelationalStoreError as exc:
        logger.error("room_join_lookup_failed", user_id=user_id, error=str(exc))
        raise DependencyFailure("Failed to join room") from exc
    if room is None:
        raise NotFound("Room not found with this join code")

    room_summary = {"id": room.id, "name": room.name, "slug": room.slug}
    try:
        if store.get_membership(room.id, user_id) is not None:
            raise Conflict("Already a member of this room", extra={"room": room_summary})
        store.add_member(room.id, user_id, role="member")
    except UniqueViolation as exc:
        # Lost a race against a concurrent join by the same user.
        raise Conflict("Already a member of this room", extra={"room": room_summary}) from exc
    except RelationalStoreError as exc:
        logger.error("room_join_failed", room_id=room.id, user_id=user_id, error=str(exc))
        raise DependencyFailure("Failed to join room") from exc

    logger.info("room_joined", room_id=room.id, user_id=user_id)
    return room


def get_room_by_slug(store: RelationalStore, room_slug: str) -> Room:
    try:
        room = store.get_room_by_slug(room_slug)
    except RelationalStoreError as exc:
        raise DependencyFailure("Failed to load room") from exc
    if room is None:
        raise NotFound("Room not found")
    return room


def is_viewer_member(store: RelationalStore, room: Room, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    try:
        return MembershipGateway(store).is_member(room.id, user_id)
    except RelationalStoreError:
        logger.warning("room_membership_check_failed_closed", room_id=room.id, user_id=user_id)
        return False


def list_room_members(
    store: RelationalStore,
    *,
    room_slug: str,
    user_id: str,
) -> list[tuple[RoomMember, Optional[Profile]]]:
    room = get_room_by_slug(store, room_slug)
    if not is_viewer_member(store, room, user_id):
        raise PermissionDenied("Forbidden")
    try:
        return store.list_members(room.id)
    except RelationalStoreError as exc:
        logger.error("room_members_fetch_failed", room_id=room.id, error=str(exc))
        raise DependencyFailure("Failed to fetch members") from exc
