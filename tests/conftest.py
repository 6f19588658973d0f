from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional, Tuple
import uuid

os.environ.setdefault("AUTH_JWT_SECRET", "test-auth-secret")
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient

import src.api.main as api_main
from src.auth.jwt import AuthContext, create_access_token
from src.integrations.sanity import DocumentExistsError, DocumentNotFoundError, get_content_store
from src.storage.db import Base, build_engine, build_session_factory, get_session, load_models
from src.storage.models import Profile, Room, RoomMember
from src.storage.relational import RelationalStore


class FakeContentStore:
    """In-memory content store; ``fail_on`` maps an operation or ``(operation, id)`` to an exception."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: Dict[Any, Exception] = {}

    def _maybe_fail(self, operation: str, document_id: str) -> None:
        exc = self.fail_on.get((operation, document_id)) or self.fail_on.get(operation)
        if exc is not None:
            raise exc

    def create_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create", document_id))
        self._maybe_fail("create", document_id)
        if document_id in self.documents:
            raise DocumentExistsError(document_id)
        document = {**fields, "_id": document_id, "_rev": uuid.uuid4().hex[:8]}
        self.documents[document_id] = document
        return dict(document)

    def patch_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("patch", document_id))
        self._maybe_fail("patch", document_id)
        if document_id not in self.documents:
            raise DocumentNotFoundError(document_id)
        self.documents[document_id].update(fields)
        return dict(self.documents[document_id])

    def delete_document(self, document_id: str) -> None:
        self.calls.append(("delete", document_id))
        self._maybe_fail("delete", document_id)
        self.documents.pop(document_id, None)

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("get", document_id))
        self._maybe_fail("get", document_id)
        document = self.documents.get(document_id)
        return dict(document) if document is not None else None


def build_sqlite_session_factory():
    load_models()
    engine = build_engine("sqlite+pysqlite://")
    Base.metadata.create_all(engine)
    return build_session_factory(engine)


def auth_headers(user_id: str, email: str = "") -> Dict[str, str]:
    token, _ = create_access_token(AuthContext(user_id=user_id, email=email or f"{user_id[:8]}@example.com"))
    return {"Authorization": f"Bearer {token}"}


def seed_room(
    session_factory,
    *,
    created_by: str,
    members: Iterable[str] = (),
    name: str = "Design Club",
    slug: str = "design-club",
    join_code: str = "4821",
) -> Room:
    with session_factory() as session:
        room = RelationalStore(session).create_room(
            name=name,
            slug=slug,
            join_code=join_code,
            description=None,
            created_by=created_by,
        )
        store = RelationalStore(session)
        for user_id in members:
            store.add_member(room.id, user_id)
        return room


def seed_profile(session_factory, *, user_id: str, username: str, full_name: str = "") -> None:
    with session_factory() as session:
        session.add(Profile(id=user_id, username=username, full_name=full_name or None))
        session.commit()


def text_block(text: str, *, style: str = "normal") -> Dict[str, Any]:
    return {"_type": "block", "style": style, "children": [{"_type": "span", "text": text, "marks": []}]}


def new_user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def session_factory():
    return build_sqlite_session_factory()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(session) -> RelationalStore:
    return RelationalStore(session)


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def api_client(session_factory, content_store):
    def override_get_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api_main.app.dependency_overrides[get_session] = override_get_session
    api_main.app.dependency_overrides[get_content_store] = lambda: content_store
    try:
        yield TestClient(api_main.app)
    finally:
        api_main.app.dependency_overrides.clear()


def membership_role(session_factory, room_id: str, user_id: str) -> Optional[str]:
    with session_factory() as session:
        membership = session.query(RoomMember).filter_by(room_id=room_id, user_id=user_id).one_or_none()
        return membership.role if membership is not None else None
