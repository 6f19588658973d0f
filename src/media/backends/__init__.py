"""Object storage backends for uploaded images."""

from src.media.backends.base import StoredObject, UploadBackend, UploadBackendError
from src.media.backends.factory import get_upload_backend, reset_upload_backend_cache
from src.media.backends.local_backend import LocalUploadBackend
from src.media.backends.supabase_backend import SupabaseUploadBackend

__all__ = [
    "LocalUploadBackend",
    "StoredObject",
    "SupabaseUploadBackend",
    "UploadBackend",
    "UploadBackendError",
    "get_upload_backend",
    "reset_upload_backend_cache",
]
