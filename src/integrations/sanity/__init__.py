"""Headless content store integration."""

from src.integrations.sanity.base import (
    BLOG_DOCUMENT_TYPE,
    ContentStore,
    ContentStoreError,
    DocumentExistsError,
    DocumentNotFoundError,
)
from src.integrations.sanity.client import SanityContentStore, get_content_store

__all__ = [
    "BLOG_DOCUMENT_TYPE",
    "ContentStore",
    "ContentStoreError",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "SanityContentStore",
    "get_content_store",
]
