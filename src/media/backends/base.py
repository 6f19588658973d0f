"""Contracts for object storage backends used by image uploads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class UploadBackendError(RuntimeError):
    """Raised when a backend cannot store an object."""


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str


class UploadBackend(Protocol):
    backend_name: str

    def upload(self, *, path: str, content: bytes, content_type: str) -> StoredObject:
        raise NotImplementedError
