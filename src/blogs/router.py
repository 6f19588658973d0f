"""Blog lifecycle API routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from src.auth.dependencies import require_auth_context
from src.auth.jwt import AuthContext
from src.blogs.lifecycle import BlogLifecycleManager
from src.core.errors import InputValidationError
from src.integrations.sanity import ContentStore, get_content_store
from src.schemas.blogs import BlogCreate, BlogEdit, BlogForEditResponse, BlogItem, BlogResponse
from src.storage.relational import RelationalStore, get_relational_store


router = APIRouter(prefix="/blogs", tags=["blogs"])


def get_lifecycle_manager(
    store: RelationalStore = Depends(get_relational_store),
    content_store: ContentStore = Depends(get_content_store),
) -> BlogLifecycleManager:
    return BlogLifecycleManager(store, content_store)


@router.post("/create", response_model=BlogResponse, status_code=status.HTTP_201_CREATED)
def create_blog(
    payload: BlogCreate,
    auth: AuthContext = Depends(require_auth_context),
    manager: BlogLifecycleManager = Depends(get_lifecycle_manager),
) -> BlogResponse:
    blog = manager.create_draft(auth.user_id, payload)
    return BlogResponse(blog=BlogItem.model_validate(blog))


@router.get("/fetch-for-edit", response_model=BlogForEditResponse)
def fetch_blog_for_edit(
    room_slug: Optional[str] = Query(default=None, alias="roomSlug"),
    blog_slug: Optional[str] = Query(default=None, alias="blogSlug"),
    auth: AuthContext = Depends(require_auth_context),
    manager: BlogLifecycleManager = Depends(get_lifecycle_manager),
) -> BlogForEditResponse:
    if not room_slug or not blog_slug:
        raise InputValidationError("Missing roomSlug or blogSlug")
    blog, content = manager.fetch_for_edit(auth.user_id, room_slug, blog_slug)
    return BlogForEditResponse(blog=BlogItem.model_validate(blog), content=content)


@router.patch("/{blog_id}/update", response_model=BlogResponse)
def update_blog(
    blog_id: str,
    payload: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth_context),
    manager: BlogLifecycleManager = Depends(get_lifecycle_manager),
) -> BlogResponse:
    blog = manager.update_draft(blog_id, auth.user_id, payload)
    return BlogResponse(blog=BlogItem.model_validate(blog))


@router.put("/{blog_id}/edit", response_model=BlogResponse)
def edit_blog(
    blog_id: str,
    payload: BlogEdit,
    auth: AuthContext = Depends(require_auth_context),
    manager: BlogLifecycleManager = Depends(get_lifecycle_manager),
) -> BlogResponse:
    blog = manager.edit(blog_id, auth.user_id, payload)
    return BlogResponse(blog=BlogItem.model_validate(blog))


@router.post("/{blog_id}/publish", response_model=BlogResponse)
def publish_blog(
    blog_id: str,
    auth: AuthContext = Depends(require_auth_context),
    manager: BlogLifecycleManager = Depends(get_lifecycle_manager),
) -> BlogResponse:
    blog = manager.publish(blog_id, auth.user_id)
    return BlogResponse(blog=BlogItem.model_validate(blog))
