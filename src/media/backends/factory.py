"""Factory to resolve the active upload backend."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from src.core.config import get_settings
from src.media.backends.base import UploadBackend
from src.media.backends.local_backend import LocalUploadBackend
from src.media.backends.supabase_backend import SupabaseUploadBackend


def _storage_root() -> Path:
    configured = Path(get_settings().media_storage_path)
    if configured.is_absolute():
        return configured
    return Path.cwd() / configured


@lru_cache(maxsize=1)
def get_upload_backend() -> UploadBackend:
    settings = get_settings()
    backend = settings.upload_backend.strip().lower()
    if backend == "supabase":
        return SupabaseUploadBackend(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_key,
            bucket=settings.upload_bucket,
            timeout_seconds=settings.upload_timeout_seconds,
        )
    return LocalUploadBackend(
        root=_storage_root(),
        bucket=settings.upload_bucket,
        public_base_url=settings.app_public_base_url,
    )


def reset_upload_backend_cache() -> None:
    get_upload_backend.cache_clear()
