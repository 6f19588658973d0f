"""Engine and session wiring for the relational store."""

from __future__ import annotations

from functools import lru_cache
from typing import Generator, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.config import get_settings


Base = declarative_base()


def _is_in_memory_sqlite(database_url: str) -> bool:
    if not database_url.startswith("sqlite"):
        return False
    _, _, database = database_url.partition("://")
    return database in {"", "/", "/:memory:"}


def build_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection so every session sees the same tables."""

    kwargs: dict[str, object] = {"pool_pre_ping": True, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_in_memory_sqlite(database_url):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    # RelationalStore commits per write and hands rows back to routers after the commit.
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return build_engine(get_settings().database_url)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())


def get_session() -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def test_connection() -> Tuple[bool, Optional[str]]:
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return False, exc.__class__.__name__
    return True, None


def load_models() -> None:
    """Register rooms, memberships, profiles and blogs on ``Base.metadata``."""

    import src.storage.models  # noqa: F401
