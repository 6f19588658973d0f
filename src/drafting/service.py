"""Draft generation service."""

from __future__ import annotations

from src.core.errors import DependencyFailure, ServiceUnavailable
from src.core.logger import get_logger
from src.core.metrics import record_draft_generated
from src.drafting.base import DraftGenerationError, DraftGenerator, DraftGeneratorUnavailable, DraftRequest, GeneratedDraft


logger = get_logger("roomblog.drafting")


def generate_draft(generator: DraftGenerator, request: DraftRequest, *, user_id: str) -> GeneratedDraft:
    try:
        draft = generator.generate(request)
    except DraftGeneratorUnavailable as exc:
        record_draft_generated(provider=generator.provider_name, status="unavailable")
        logger.warning("draft_generator_unavailable", provider=generator.provider_name, reason=str(exc))
        raise ServiceUnavailable("AI service not configured") from exc
    except DraftGenerationError as exc:
        record_draft_generated(provider=generator.provider_name, status="failed")
        logger.error("draft_generation_failed", provider=generator.provider_name, user_id=user_id, error=str(exc))
        raise DependencyFailure("Failed to generate content") from exc

    record_draft_generated(provider=draft.provider, status="succeeded")
    logger.info(
        "draft_generated",
        provider=draft.provider,
        user_id=user_id,
        refinement=request.is_refinement,
        blocks=len(draft.content),
    )
    return draft
