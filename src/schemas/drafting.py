"""Schemas for AI draft generation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.blogs import Language, Tone


class DraftGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tone: Tone
    language: Language
    custom_instructions: Optional[str] = Field(default=None, alias="customInstructions", max_length=2000)
    context: str = Field(min_length=10, max_length=5000)
    existing_content: Optional[List[Any]] = Field(default=None, alias="existingContent")
    change_request: Optional[str] = Field(default=None, alias="changeRequest", max_length=2000)


class DraftGenerateResponse(BaseModel):
    title: str
    content: List[Dict[str, Any]]
    excerpt: str
