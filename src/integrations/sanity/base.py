"""Content store contract: caller-identified structured documents."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


BLOG_DOCUMENT_TYPE = "blogPost"


class ContentStoreError(RuntimeError):
    """Raised when the content store rejects or fails a request."""


class DocumentExistsError(ContentStoreError):
    """Raised when creating a document whose id is already taken."""


class DocumentNotFoundError(ContentStoreError):
    """Raised when patching a document that does not exist."""


class ContentStore(Protocol):
    """No transactions are provided across documents or across stores."""

    def create_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def patch_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def delete_document(self, document_id: str) -> None:
        raise NotImplementedError

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError
