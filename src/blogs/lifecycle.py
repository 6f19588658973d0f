"""Blog lifecycle: draft creation, edits and the one-way publish transition.

Blog metadata of record lives in the relational store and the body of record
in the content store. The two stores share no transaction, so creation and
publishing run as sagas whose compensations restore the previous state when a
later step fails. Drafts and published copies are distinct documents
(``draft-<token>`` / ``published-<token>``); publishing swaps the identity the
blog row points at.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, TypeVar, Union

from pydantic import ValidationError

from src.blogs.document_ref import DraftRef, parse_document_ref
from src.blogs.saga import Saga, SagaFailed
from src.blogs.slugs import unique_slug
from src.core.errors import (
    AlreadyPublished,
    Conflict,
    DependencyFailure,
    InputValidationError,
    NotFound,
    PermissionDenied,
    ServiceError,
    summarize_validation_errors,
)
from src.core.logger import get_logger
from src.core.metrics import record_blog_lifecycle
from src.integrations.sanity import (
    BLOG_DOCUMENT_TYPE,
    ContentStore,
    ContentStoreError,
    DocumentExistsError,
    DocumentNotFoundError,
)
from src.rooms.membership import MembershipGateway
from src.schemas.blogs import BlogCreate, BlogEdit, BlogUpdate, dump_blocks
from src.storage.models import Blog
from src.storage.relational import RelationalStore, RelationalStoreError, UniqueViolation


logger = get_logger("roomblog.blogs")

T = TypeVar("T")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _document_fields(document: Dict[str, Any]) -> Dict[str, Any]:
    """Drop store-managed system attributes (``_id``, ``_rev``, timestamps) but keep ``_type``."""

    return {
        key: value
        for key, value in document.items()
        if key == "_type" or not key.startswith("_")
    }


@contextmanager
def _track(operation: str) -> Iterator[None]:
    try:
        yield
    except ServiceError as exc:
        record_blog_lifecycle(operation=operation, outcome=exc.kind)
        raise
    record_blog_lifecycle(operation=operation, outcome="succeeded")


class BlogLifecycleManager:
    def __init__(
        self,
        store: RelationalStore,
        content_store: ContentStore,
        *,
        gateway: Optional[MembershipGateway] = None,
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self._store = store
        self._content = content_store
        self._gateway = gateway or MembershipGateway(store)
        self._clock = clock

    # Guards

    def _require(self, check: Callable[[], bool], *, message: str, **context: Any) -> None:
        try:
            allowed = check()
        except RelationalStoreError as exc:
            # Fail closed: an unanswerable permission check is a denial.
            logger.warning("permission_check_failed_closed", error=str(exc), **context)
            raise PermissionDenied(message) from exc
        if not allowed:
            raise PermissionDenied(message)

    def _from_store(self, call: Callable[[], T], *, message: str) -> T:
        try:
            return call()
        except RelationalStoreError as exc:
            logger.error("relational_store_failed", error=str(exc), message=message)
            raise DependencyFailure(message) from exc

    def _load_blog(self, blog_id: str) -> Blog:
        blog = self._from_store(lambda: self._store.get_blog(blog_id), message="Failed to load blog")
        if blog is None:
            raise NotFound("Blog not found")
        return blog

    def _patch_content(self, document_id: str, fields: Dict[str, Any], *, blog_id: str) -> None:
        try:
            self._content.patch_document(document_id, fields)
        except DocumentNotFoundError as exc:
            logger.warning("blog_content_missing", blog_id=blog_id, document_id=document_id)
            raise NotFound("Blog content not found") from exc
        except ContentStoreError as exc:
            logger.error("blog_content_patch_failed", blog_id=blog_id, document_id=document_id, error=str(exc))
            raise DependencyFailure("Failed to update blog content") from exc

    def _update_row(self, blog: Blog, fields: Dict[str, Any]) -> Blog:
        try:
            updated = self._store.update_blog(blog.id, **fields)
        except RelationalStoreError as exc:
            # Content was already patched; the row is a projection that now lags behind.
            logger.error(
                "blog_metadata_behind_content",
                blog_id=blog.id,
                document_id=blog.sanity_id,
                fields=sorted(fields),
                error=str(exc),
            )
            raise DependencyFailure("Failed to update blog") from exc
        if updated is None:
            raise NotFound("Blog not found")
        return updated

    # Operations

    def create_draft(self, user_id: str, payload: BlogCreate) -> Blog:
        """Create the draft document, then the metadata row pointing at it."""

        with _track("create"):
            self._require(
                lambda: self._gateway.can_write_in_room(payload.room_id, user_id),
                message="You do not have permission to write in this room",
                room_id=payload.room_id,
            )
            room = self._from_store(lambda: self._store.get_room(payload.room_id), message="Failed to create blog")
            if room is None:
                raise NotFound("Room not found")

            existing_slugs = self._from_store(lambda: self._store.blog_slugs(room.id), message="Failed to create blog")
            slug = unique_slug(payload.title, existing_slugs)
            draft_ref = DraftRef.new()
            document_id = draft_ref.document_id
            fields: Dict[str, Any] = {
                "_type": BLOG_DOCUMENT_TYPE,
                "title": payload.title,
                "slug": {"_type": "slug", "current": slug},
                "roomSlug": room.slug,
                "authorId": user_id,
                "content": dump_blocks(payload.content),
                "excerpt": payload.excerpt or "",
                "tone": payload.tone,
                "language": payload.language,
            }

            saga = Saga("create_blog", room_id=room.id, document_id=document_id)
            saga.step(
                "create_draft_document",
                lambda: self._content.create_document(document_id, fields),
                lambda: self._content.delete_document(document_id),
            )
            saga.step(
                "insert_blog_row",
                lambda: self._store.insert_blog(
                    room_id=room.id,
                    author_id=user_id,
                    title=payload.title,
                    slug=slug,
                    sanity_id=document_id,
                    excerpt=payload.excerpt or None,
                ),
            )
            try:
                _, blog = saga.run()
            except SagaFailed as exc:
                if exc.step == "create_draft_document":
                    raise DependencyFailure("Failed to create blog content") from exc.cause
                if isinstance(exc.cause, UniqueViolation) and exc.cause.field == "slug":
                    raise Conflict("A blog with this slug already exists in this room") from exc.cause
                raise DependencyFailure("Failed to create blog") from exc.cause

            logger.info(
                "blog_draft_created",
                blog_id=blog.id,
                room_id=room.id,
                slug=slug,
                document_id=document_id,
            )
            return blog

    def update_draft(
        self,
        blog_id: str,
        user_id: str,
        payload: Union[BlogUpdate, Mapping[str, Any]],
    ) -> Blog:
        """Patch a draft in place; locked once the blog is published.

        Raw payloads are validated only after the edit check, so callers
        without edit rights never learn about body shape errors.
        """

        with _track("update"):
            self._require(
                lambda: self._gateway.can_edit(blog_id, user_id),
                message="You cannot edit this blog (already published or not the author)",
                blog_id=blog_id,
            )
            if not isinstance(payload, BlogUpdate):
                try:
                    payload = BlogUpdate.model_validate(payload)
                except ValidationError as exc:
                    raise InputValidationError(
                        "Invalid input",
                        extra={"errors": summarize_validation_errors(exc.errors())},
                    ) from exc
            blog = self._load_blog(blog_id)

            content_fields: Dict[str, Any] = {}
            if payload.title is not None:
                content_fields["title"] = payload.title
            if payload.content is not None:
                content_fields["content"] = dump_blocks(payload.content)
            if payload.excerpt_provided:
                content_fields["excerpt"] = payload.excerpt or ""
            if content_fields:
                self._patch_content(blog.sanity_id, content_fields, blog_id=blog.id)

            row_fields: Dict[str, Any] = {}
            if payload.title is not None and payload.title != blog.title:
                row_fields["title"] = payload.title
            if payload.excerpt_provided and (payload.excerpt or None) != blog.excerpt:
                row_fields["excerpt"] = payload.excerpt or None
            if row_fields:
                row_fields["updated_at"] = self._clock()
                blog = self._update_row(blog, row_fields)

            logger.info("blog_draft_updated", blog_id=blog.id, fields=sorted(content_fields))
            return blog

    def edit(self, blog_id: str, user_id: str, payload: BlogEdit) -> Blog:
        """Author edit that does not check the published state."""

        with _track("edit"):
            blog = self._load_blog(blog_id)
            if blog.author_id != user_id:
                raise PermissionDenied("You can only edit your own blogs")
            self._require(
                lambda: self._gateway.is_member(blog.room_id, user_id),
                message="You must be a room member to edit this blog",
                blog_id=blog.id,
            )

            self._patch_content(
                blog.sanity_id,
                {
                    "title": payload.title,
                    "content": dump_blocks(payload.content),
                    "excerpt": payload.excerpt or "",
                },
                blog_id=blog.id,
            )
            blog = self._update_row(
                blog,
                {
                    "title": payload.title,
                    "excerpt": payload.excerpt or None,
                    "updated_at": self._clock(),
                },
            )
            logger.info("blog_edited", blog_id=blog.id, published=blog.published)
            return blog

    def publish(self, blog_id: str, user_id: str) -> Blog:
        """Move a draft to a published document and flip the row, compensating on failure."""

        with _track("publish"):
            blog = self._load_blog(blog_id)
            self._require(
                lambda: self._gateway.is_author(blog_id, user_id),
                message="Only the author can publish this blog",
                blog_id=blog_id,
            )
            if blog.published:
                raise AlreadyPublished("Blog is already published")

            try:
                draft_ref = parse_document_ref(blog.sanity_id)
            except ValueError as exc:
                logger.error("blog_document_ref_invalid", blog_id=blog.id, document_id=blog.sanity_id)
                raise DependencyFailure("Blog content reference is invalid") from exc
            if not isinstance(draft_ref, DraftRef):
                logger.error("blog_document_ref_inconsistent", blog_id=blog.id, document_id=blog.sanity_id)
                raise DependencyFailure("Blog content reference is invalid")

            draft_id = draft_ref.document_id
            try:
                snapshot = self._content.get_document(draft_id)
            except ContentStoreError as exc:
                logger.error("blog_content_fetch_failed", blog_id=blog.id, document_id=draft_id, error=str(exc))
                raise DependencyFailure("Failed to load blog content") from exc
            if snapshot is None:
                raise NotFound("Blog content not found")

            published_id = draft_ref.promote().document_id
            published_at = self._clock()
            draft_fields = _document_fields(snapshot)
            published_fields = dict(draft_fields)
            published_fields["publishedAt"] = published_at.isoformat()

            def mark_published() -> Blog:
                updated = self._store.mark_published(blog_id, sanity_id=published_id, published_at=published_at)
                if updated is None:
                    raise AlreadyPublished("Blog is already published")
                return updated

            saga = Saga("publish_blog", blog_id=blog.id, draft_id=draft_id, published_id=published_id)
            saga.step(
                "create_published_document",
                lambda: self._content.create_document(published_id, published_fields),
                lambda: self._content.delete_document(published_id),
            )
            saga.step(
                "delete_draft_document",
                lambda: self._content.delete_document(draft_id),
                lambda: self._content.create_document(draft_id, draft_fields),
            )
            saga.step("mark_blog_published", mark_published)
            try:
                _, _, published_blog = saga.run()
            except SagaFailed as exc:
                self._raise_publish_failure(exc, blog_id=blog.id, draft_id=draft_id, published_id=published_id)

            logger.info(
                "blog_published",
                blog_id=published_blog.id,
                draft_id=draft_id,
                published_id=published_id,
            )
            return published_blog

    def _raise_publish_failure(self, exc: SagaFailed, *, blog_id: str, draft_id: str, published_id: str) -> None:
        if not exc.fully_compensated:
            logger.error(
                "publish_reconciliation_required",
                blog_id=blog_id,
                draft_id=draft_id,
                published_id=published_id,
                failed_step=exc.step,
                failed_compensations=[name for name, _ in exc.compensation_errors],
            )
        if isinstance(exc.cause, AlreadyPublished):
            raise exc.cause
        if exc.step == "create_published_document":
            if isinstance(exc.cause, DocumentExistsError):
                # Another publish of the same draft got there first.
                raise AlreadyPublished("Blog is already published") from exc.cause
            raise DependencyFailure("Failed to publish blog content") from exc.cause
        if exc.step == "delete_draft_document":
            raise DependencyFailure("Failed to publish blog content") from exc.cause
        raise DependencyFailure("Failed to publish blog") from exc.cause

    def fetch_for_edit(self, user_id: str, room_slug: str, blog_slug: str) -> Tuple[Blog, Dict[str, Any]]:
        with _track("fetch_for_edit"):
            room = self._from_store(lambda: self._store.get_room_by_slug(room_slug), message="Failed to load room")
            if room is None:
                raise NotFound("Room not found")
            blog = self._from_store(
                lambda: self._store.get_blog_by_slug(room.id, blog_slug),
                message="Failed to load blog",
            )
            if blog is None:
                raise NotFound("Blog not found")
            if blog.author_id != user_id:
                raise PermissionDenied("You can only edit your own blogs")

            try:
                content = self._content.get_document(blog.sanity_id)
            except ContentStoreError as exc:
                logger.error("blog_content_fetch_failed", blog_id=blog.id, document_id=blog.sanity_id, error=str(exc))
                raise DependencyFailure("Failed to load blog content") from exc
            if content is None:
                raise NotFound("Content not found")
            return blog, content
