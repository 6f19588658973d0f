"""Factory to resolve the active draft generator."""

from __future__ import annotations

from functools import lru_cache

from src.core.config import get_settings
from src.drafting.base import DraftGenerator
from src.drafting.gemini_generator import GeminiDraftGenerator
from src.drafting.mock_generator import MockDraftGenerator


@lru_cache(maxsize=1)
def get_draft_generator() -> DraftGenerator:
    settings = get_settings()
    provider = settings.ai_provider.strip().lower()
    if provider == "gemini":
        return GeminiDraftGenerator(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_api_base_url,
            timeout_seconds=settings.gemini_timeout_seconds,
        )
    return MockDraftGenerator()


def reset_draft_generator_cache() -> None:
    get_draft_generator.cache_clear()
