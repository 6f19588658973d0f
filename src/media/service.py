"""Image upload service for blog content."""

from __future__ import annotations

import secrets
from typing import Dict, Optional

from src.core.config import get_settings
from src.core.errors import DependencyFailure, InputValidationError, PermissionDenied
from src.core.logger import get_logger
from src.core.metrics import record_upload
from src.media.backends import StoredObject, UploadBackend, UploadBackendError
from src.rooms.membership import MembershipGateway
from src.storage.relational import RelationalStore, RelationalStoreError


logger = get_logger("roomblog.media")

ALLOWED_IMAGE_TYPES: Dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})


def _file_extension(filename: Optional[str], content_type: str) -> str:
    name = (filename or "").strip()
    if "." in name:
        extension = name.rsplit(".", 1)[1].lower()
        if extension in ALLOWED_EXTENSIONS:
            return extension
    return ALLOWED_IMAGE_TYPES[content_type]


def build_object_path(*, room_id: str, user_id: str, extension: str, token: Optional[str] = None) -> str:
    return f"rooms/{room_id}/{user_id}/{token or secrets.token_urlsafe(12)}.{extension}"


def upload_room_image(
    store: RelationalStore,
    backend: UploadBackend,
    *,
    user_id: str,
    room_id: str,
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
) -> StoredObject:
    """Store an image for a room member under ``rooms/{room}/{user}/``."""

    settings = get_settings()
    try:
        is_member = MembershipGateway(store).is_member(room_id, user_id)
    except RelationalStoreError:
        logger.warning("upload_membership_check_failed_closed", room_id=room_id, user_id=user_id)
        is_member = False
    if not is_member:
        record_upload(status="forbidden")
        raise PermissionDenied("You must be a member of this room to upload images")

    normalized_type = (content_type or "").strip().lower()
    if normalized_type not in ALLOWED_IMAGE_TYPES:
        record_upload(status="rejected")
        raise InputValidationError("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.")
    if len(content) > settings.upload_max_bytes:
        record_upload(status="rejected")
        max_mb = settings.upload_max_bytes // (1024 * 1024)
        raise InputValidationError(f"File too large. Maximum size is {max_mb}MB.")

    path = build_object_path(
        room_id=room_id,
        user_id=user_id,
        extension=_file_extension(filename, normalized_type),
    )
    try:
        stored = backend.upload(path=path, content=content, content_type=normalized_type)
    except UploadBackendError as exc:
        record_upload(status="failed")
        logger.error(
            "image_upload_failed",
            backend=backend.backend_name,
            room_id=room_id,
            path=path,
            error=str(exc),
        )
        raise DependencyFailure("Failed to upload image") from exc

    record_upload(status="succeeded")
    logger.info(
        "image_uploaded",
        backend=backend.backend_name,
        room_id=room_id,
        path=stored.path,
        size_bytes=len(content),
    )
    return stored
