"""Supabase Storage upload backend."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import httpx

from src.media.backends.base import StoredObject, UploadBackend, UploadBackendError


class SupabaseUploadBackend(UploadBackend):
    backend_name = "supabase"

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout_seconds: int = 30,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.strip().rstrip("/")
        self._service_key = service_key.strip()
        self._bucket = bucket.strip()
        self._timeout_seconds = max(1, timeout_seconds)
        self._client = client

    def _object_url(self, path: str) -> str:
        if not self._base_url:
            raise UploadBackendError("supabase_url_missing")
        if not self._service_key:
            raise UploadBackendError("supabase_service_key_missing")
        return f"{self._base_url}/storage/v1/object/{self._bucket}/{quote(path)}"

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/{quote(path)}"

    def upload(self, *, path: str, content: bytes, content_type: str) -> StoredObject:
        url = self._object_url(path)
        headers = {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
            "Content-Type": content_type,
            "x-upsert": "false",
        }

        try:
            if self._client is not None:
                response = self._client.post(url, content=content, headers=headers)
            else:
                with httpx.Client(timeout=self._timeout_seconds) as client:
                    response = client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise UploadBackendError(f"supabase_upload_transport_error detail={exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            detail = response.text.strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise UploadBackendError(f"supabase_upload_failed status={response.status_code} detail={detail}")

        return StoredObject(path=path, url=self.public_url(path))
