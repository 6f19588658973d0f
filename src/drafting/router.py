"""AI draft generation API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.auth.dependencies import require_auth_context
from src.auth.jwt import AuthContext
from src.drafting.base import DraftGenerator, DraftRequest
from src.drafting.factory import get_draft_generator
from src.drafting.service import generate_draft
from src.schemas.drafting import DraftGenerateRequest, DraftGenerateResponse


router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/generate", response_model=DraftGenerateResponse)
def generate_blog_draft(
    payload: DraftGenerateRequest,
    auth: AuthContext = Depends(require_auth_context),
    generator: DraftGenerator = Depends(get_draft_generator),
) -> DraftGenerateResponse:
    draft = generate_draft(
        generator,
        DraftRequest(
            tone=payload.tone,
            language=payload.language,
            context=payload.context,
            custom_instructions=payload.custom_instructions,
            existing_content=payload.existing_content,
            change_request=payload.change_request,
        ),
        user_id=auth.user_id,
    )
    return DraftGenerateResponse(title=draft.title, content=draft.content, excerpt=draft.excerpt)
