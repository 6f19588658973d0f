"""Image upload API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from src.auth.dependencies import require_auth_context
from src.auth.jwt import AuthContext
from src.core.config import get_settings
from src.core.errors import InputValidationError, NotFound
from src.media.backends import LocalUploadBackend, UploadBackend, get_upload_backend
from src.media.service import upload_room_image
from src.schemas.media import ImageUploadResponse
from src.storage.relational import RelationalStore, get_relational_store


router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/image", response_model=ImageUploadResponse)
def upload_image(
    file: Optional[UploadFile] = File(default=None),
    room_id: Optional[str] = Form(default=None, alias="roomId"),
    auth: AuthContext = Depends(require_auth_context),
    store: RelationalStore = Depends(get_relational_store),
    backend: UploadBackend = Depends(get_upload_backend),
) -> ImageUploadResponse:
    if file is None:
        raise InputValidationError("No file provided")
    if not room_id:
        raise InputValidationError("Room ID is required")

    # One byte past the limit is enough to reject oversize files.
    content = file.file.read(get_settings().upload_max_bytes + 1)
    stored = upload_room_image(
        store,
        backend,
        user_id=auth.user_id,
        room_id=room_id,
        filename=file.filename,
        content_type=file.content_type,
        content=content,
    )
    return ImageUploadResponse(url=stored.url, path=stored.path)


@router.get("/public/{object_path:path}")
def public_image(
    object_path: str,
    backend: UploadBackend = Depends(get_upload_backend),
):
    if not isinstance(backend, LocalUploadBackend):
        raise NotFound("Image not found")
    file_path = backend.resolve(object_path)
    if file_path is None or not file_path.is_file():
        raise NotFound("Image not found")
    return FileResponse(file_path, filename=file_path.name)
