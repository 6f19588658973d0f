"""Filesystem upload backend for local/dev usage."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from src.media.backends.base import StoredObject, UploadBackend, UploadBackendError


class LocalUploadBackend(UploadBackend):
    backend_name = "local"

    def __init__(self, *, root: Path, bucket: str, public_base_url: str = "") -> None:
        self._root = Path(root) / bucket
        self._public_base_url = public_base_url.strip().rstrip("/")

    def resolve(self, path: str) -> Optional[Path]:
        """Map an object path to a file under the bucket root; ``None`` if it escapes the root."""

        root = self._root.resolve()
        candidate = (root / path).resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate

    def public_url(self, path: str) -> str:
        return f"{self._public_base_url}/upload/public/{path}"

    def upload(self, *, path: str, content: bytes, content_type: str) -> StoredObject:
        del content_type
        target = self.resolve(path)
        if target is None:
            raise UploadBackendError("local_upload_invalid_path")
        if target.exists():
            raise UploadBackendError("local_upload_object_exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise UploadBackendError(f"local_upload_write_failed detail={exc}") from exc
        return StoredObject(path=path, url=self.public_url(path))
