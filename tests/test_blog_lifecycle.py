from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.blogs.lifecycle import BlogLifecycleManager
from src.core.errors import (
    AlreadyPublished,
    DependencyFailure,
    InputValidationError,
    NotFound,
    PermissionDenied,
)
from src.integrations.sanity import ContentStoreError
from src.schemas.blogs import BlogCreate, BlogEdit, BlogUpdate
from src.storage.relational import RelationalStore, RelationalStoreError
from tests.conftest import new_user_id, seed_room, text_block


FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _manager(store, content_store) -> BlogLifecycleManager:
    return BlogLifecycleManager(store, content_store, clock=lambda: FIXED_NOW)


def _create_payload(room_id: str, title: str = "Hello World", excerpt: str | None = "Short") -> BlogCreate:
    return BlogCreate(
        roomId=room_id,
        title=title,
        content=[text_block("hi")],
        excerpt=excerpt,
        tone="casual",
        language="en",
    )


def test_create_draft_writes_content_then_row(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)

    blog = _manager(store, content_store).create_draft(author, _create_payload(room.id))

    assert blog.sanity_id.startswith("draft-")
    assert blog.published is False
    assert blog.slug == "hello-world"
    document = content_store.documents[blog.sanity_id]
    assert document["_type"] == "blogPost"
    assert document["roomSlug"] == "design-club"
    assert document["authorId"] == author
    assert document["slug"] == {"_type": "slug", "current": "hello-world"}
    assert document["content"][0]["children"][0]["text"] == "hi"
    assert document["tone"] == "casual"
    assert document["language"] == "en"


def test_create_draft_allocates_unique_slug_per_room(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)

    first = manager.create_draft(author, _create_payload(room.id, title="Hello World"))
    second = manager.create_draft(author, _create_payload(room.id, title="Hello World!"))

    assert first.slug == "hello-world"
    assert second.slug == "hello-world-1"


def test_create_draft_requires_membership(session_factory, store, content_store) -> None:
    room = seed_room(session_factory, created_by=new_user_id())

    with pytest.raises(PermissionDenied):
        _manager(store, content_store).create_draft(new_user_id(), _create_payload(room.id))
    assert content_store.documents == {}


def test_create_draft_deletes_content_when_row_insert_fails(
    session_factory, store, content_store, monkeypatch
) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)

    def failing_insert(**kwargs):
        raise RelationalStoreError("insert_blog failed")

    monkeypatch.setattr(store, "insert_blog", failing_insert)

    with pytest.raises(DependencyFailure):
        _manager(store, content_store).create_draft(author, _create_payload(room.id))

    created = [document_id for op, document_id in content_store.calls if op == "create"]
    assert len(created) == 1
    assert ("delete", created[0]) in content_store.calls
    assert content_store.documents == {}


def test_create_draft_content_failure_leaves_no_row(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    content_store.fail_on["create"] = ContentStoreError("sanity down")

    with pytest.raises(DependencyFailure):
        _manager(store, content_store).create_draft(author, _create_payload(room.id))
    assert store.blog_slugs(room.id) == set()


def test_publish_swaps_document_identity(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    draft_id = draft.sanity_id

    published = manager.publish(draft.id, author)

    assert published.published is True
    assert published.sanity_id == "published-" + draft_id[len("draft-"):]
    assert published.published_at is not None
    assert draft_id not in content_store.documents
    document = content_store.documents[published.sanity_id]
    assert document["publishedAt"] == FIXED_NOW.isoformat()
    assert document["title"] == "Hello World"


def test_publish_twice_reports_already_published(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    manager.publish(draft.id, author)

    with pytest.raises(AlreadyPublished):
        manager.publish(draft.id, author)


def test_publish_requires_author(session_factory, store, content_store) -> None:
    author = new_user_id()
    other = new_user_id()
    room = seed_room(session_factory, created_by=author, members=[other])
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))

    with pytest.raises(PermissionDenied):
        manager.publish(draft.id, other)


def test_publish_missing_draft_document_is_not_found(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    content_store.documents.clear()

    with pytest.raises(NotFound):
        manager.publish(draft.id, author)


def test_publish_restores_draft_when_row_update_fails(session_factory, store, content_store, monkeypatch) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    draft_id = draft.sanity_id

    def failing_mark(*args, **kwargs):
        raise RelationalStoreError("mark_published failed")

    monkeypatch.setattr(store, "mark_published", failing_mark)

    with pytest.raises(DependencyFailure):
        manager.publish(draft.id, author)

    assert list(content_store.documents) == [draft_id]
    assert content_store.documents[draft_id]["title"] == "Hello World"
    assert "publishedAt" not in content_store.documents[draft_id]
    assert store.get_blog(draft.id).published is False


def test_publish_removes_published_copy_when_draft_delete_fails(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    draft_id = draft.sanity_id
    content_store.fail_on[("delete", draft_id)] = ContentStoreError("delete rejected")

    with pytest.raises(DependencyFailure):
        manager.publish(draft.id, author)

    assert list(content_store.documents) == [draft_id]
    blog = store.get_blog(draft.id)
    assert blog.published is False
    assert blog.sanity_id == draft_id


def test_publish_lost_race_on_published_document_is_already_published(
    session_factory, store, content_store
) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    published_id = "published-" + draft.sanity_id[len("draft-"):]
    content_store.documents[published_id] = {"_id": published_id, "title": "racing"}

    with pytest.raises(AlreadyPublished):
        manager.publish(draft.id, author)

    assert content_store.documents[published_id]["title"] == "racing"
    assert draft.sanity_id in content_store.documents


def test_update_draft_patches_content_and_metadata(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))

    updated = manager.update_draft(draft.id, author, BlogUpdate(title="Hello Again", excerpt=None))

    assert updated.title == "Hello Again"
    assert updated.excerpt is None
    assert updated.sanity_id == draft.sanity_id
    document = content_store.documents[draft.sanity_id]
    assert document["title"] == "Hello Again"
    assert document["excerpt"] == ""


def test_update_draft_content_only_leaves_row_untouched(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    before = store.get_blog(draft.id).updated_at

    manager.update_draft(draft.id, author, {"content": [text_block("new body")]})

    assert content_store.documents[draft.sanity_id]["content"][0]["children"][0]["text"] == "new body"
    assert store.get_blog(draft.id).updated_at == before


def test_update_draft_checks_permission_before_validation(session_factory, store, content_store) -> None:
    author = new_user_id()
    other = new_user_id()
    room = seed_room(session_factory, created_by=author, members=[other])
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))

    with pytest.raises(PermissionDenied):
        manager.update_draft(draft.id, other, {"title": "x"})
    with pytest.raises(InputValidationError):
        manager.update_draft(draft.id, author, {"title": "x"})


def test_update_draft_is_locked_after_publish(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    manager.publish(draft.id, author)

    with pytest.raises(PermissionDenied):
        manager.update_draft(draft.id, author, BlogUpdate(title="Too late"))


def test_edit_allows_author_after_publish(session_factory, store, content_store) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    published = manager.publish(draft.id, author)

    edited = manager.edit(
        draft.id,
        author,
        BlogEdit(title="Edited Title", content=[text_block("edited")], excerpt=None),
    )

    assert edited.title == "Edited Title"
    assert edited.published is True
    document = content_store.documents[published.sanity_id]
    assert document["title"] == "Edited Title"
    assert document["excerpt"] == ""


def test_edit_rejects_non_author(session_factory, store, content_store) -> None:
    author = new_user_id()
    other = new_user_id()
    room = seed_room(session_factory, created_by=author, members=[other])
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))

    with pytest.raises(PermissionDenied):
        manager.edit(draft.id, other, BlogEdit(title="Hijack", content=[text_block("x")]))


def test_edit_unknown_blog_is_not_found(store, content_store) -> None:
    with pytest.raises(NotFound):
        _manager(store, content_store).edit(new_user_id(), new_user_id(), BlogEdit(title="Nope", content=[text_block("x")]))


def test_permission_check_store_failure_is_a_denial(session_factory, store, content_store, monkeypatch) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)

    def failing_membership(room_id, user_id):
        raise RelationalStoreError("get_membership failed")

    monkeypatch.setattr(store, "get_membership", failing_membership)

    with pytest.raises(PermissionDenied):
        _manager(store, content_store).create_draft(author, _create_payload(room.id))


def test_fetch_for_edit_returns_row_and_document(session_factory, store, content_store) -> None:
    author = new_user_id()
    other = new_user_id()
    room = seed_room(session_factory, created_by=author, members=[other])
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))

    blog, document = manager.fetch_for_edit(author, "design-club", "hello-world")
    assert blog.id == draft.id
    assert document["_id"] == draft.sanity_id

    with pytest.raises(PermissionDenied):
        manager.fetch_for_edit(other, "design-club", "hello-world")
    with pytest.raises(NotFound):
        manager.fetch_for_edit(author, "missing-room", "hello-world")
    with pytest.raises(NotFound):
        manager.fetch_for_edit(author, "design-club", "missing-blog")


def test_publish_loses_row_swap_to_concurrent_publisher(session_factory, store, content_store, monkeypatch) -> None:
    author = new_user_id()
    room = seed_room(session_factory, created_by=author)
    manager = _manager(store, content_store)
    draft = manager.create_draft(author, _create_payload(room.id))
    draft_id = draft.sanity_id
    published_id = "published-" + draft_id[len("draft-"):]
    original_create = content_store.create_document

    def create_then_publish_elsewhere(document_id, fields):
        document = original_create(document_id, fields)
        if document_id == published_id:
            with session_factory() as other:
                RelationalStore(other).update_blog(draft.id, published=True)
        return document

    monkeypatch.setattr(content_store, "create_document", create_then_publish_elsewhere)

    with pytest.raises(AlreadyPublished):
        manager.publish(draft.id, author)

    assert list(content_store.documents) == [draft_id]
    assert ("delete", published_id) in content_store.calls
    assert content_store.calls[-2:] == [("create", draft_id), ("delete", published_id)]
    assert store.get_blog(draft.id).sanity_id == draft_id
