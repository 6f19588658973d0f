"""Typed references to draft and published content documents."""

from __future__ import annotations

from dataclasses import dataclass
import secrets
from typing import Union


DRAFT_PREFIX = "draft-"
PUBLISHED_PREFIX = "published-"


@dataclass(frozen=True)
class DraftRef:
    token: str

    @classmethod
    def new(cls) -> "DraftRef":
        return cls(token=secrets.token_urlsafe(16))

    @property
    def document_id(self) -> str:
        return f"{DRAFT_PREFIX}{self.token}"

    @property
    def is_published(self) -> bool:
        return False

    def promote(self) -> "PublishedRef":
        """Published copies keep the draft's token under a distinct identity."""

        return PublishedRef(token=self.token)


@dataclass(frozen=True)
class PublishedRef:
    token: str

    @property
    def document_id(self) -> str:
        return f"{PUBLISHED_PREFIX}{self.token}"

    @property
    def is_published(self) -> bool:
        return True


DocumentRef = Union[DraftRef, PublishedRef]


def parse_document_ref(document_id: str) -> DocumentRef:
    if document_id.startswith(DRAFT_PREFIX) and len(document_id) > len(DRAFT_PREFIX):
        return DraftRef(token=document_id[len(DRAFT_PREFIX):])
    if document_id.startswith(PUBLISHED_PREFIX) and len(document_id) > len(PUBLISHED_PREFIX):
        return PublishedRef(token=document_id[len(PUBLISHED_PREFIX):])
    raise ValueError(f"Unrecognized content document id: {document_id!r}")
