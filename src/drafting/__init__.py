"""AI-assisted blog draft generation."""

from src.drafting.base import (
    DraftGenerationError,
    DraftGenerator,
    DraftGeneratorUnavailable,
    DraftRequest,
    GeneratedDraft,
)
from src.drafting.factory import get_draft_generator, reset_draft_generator_cache
from src.drafting.gemini_generator import GeminiDraftGenerator
from src.drafting.mock_generator import MockDraftGenerator

__all__ = [
    "DraftGenerationError",
    "DraftGenerator",
    "DraftGeneratorUnavailable",
    "DraftRequest",
    "GeminiDraftGenerator",
    "GeneratedDraft",
    "MockDraftGenerator",
    "get_draft_generator",
    "reset_draft_generator_cache",
]
