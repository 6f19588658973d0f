"""Prompt construction for blog draft generation."""

from __future__ import annotations

import json
from typing import Any, Dict

from src.drafting.base import DraftGenerationError, DraftRequest


LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "hi": "Hindi",
    "zh": "Chinese",
}

RESPONSE_FORMAT = """Your response must be valid JSON with this structure:
{
  "title": "Blog title",
  "excerpt": "Brief 1-2 sentence summary",
  "content": [
    {
      "_type": "block",
      "style": "normal",
      "children": [{"_type": "span", "text": "Paragraph text", "marks": []}]
    }
  ]
}

Use these block styles: normal, h1, h2, h3, h4, blockquote
Use these marks for inline formatting: strong, em, code
Create well-structured, engaging content with proper headings and paragraphs."""


def build_system_prompt(request: DraftRequest) -> str:
    language_name = LANGUAGE_NAMES.get(request.language, request.language)
    prompt = (
        "You are an expert blog writer. Generate high-quality blog content "
        f"in {language_name} with a {request.tone} tone."
    )
    instructions = (request.custom_instructions or "").strip()
    if instructions:
        prompt += f"\n\nAdditional instructions: {instructions}"
    return f"{prompt}\n\n{RESPONSE_FORMAT}"


def build_user_prompt(request: DraftRequest) -> str:
    if request.is_refinement:
        existing = json.dumps(request.existing_content, indent=2, ensure_ascii=False)
        return (
            f"Here's the existing content:\n{existing}\n\n"
            f"User wants to change: {request.change_request}\n\n"
            "Modify the content according to the user's request while maintaining "
            "the overall structure and quality."
        )
    return f"Context/Topic: {request.context}\n\nGenerate a complete blog post about this topic."


def build_prompt(request: DraftRequest) -> str:
    return f"{build_system_prompt(request)}\n\n{build_user_prompt(request)}"


def parse_draft_payload(raw_text: str) -> Dict[str, Any]:
    """Decode model output and require the ``title``/``excerpt``/``content`` keys."""

    try:
        payload = json.loads(raw_text)
    except ValueError as exc:
        raise DraftGenerationError("draft_output_invalid_json") from exc
    if not isinstance(payload, dict):
        raise DraftGenerationError("draft_output_not_object")

    title = payload.get("title")
    excerpt = payload.get("excerpt")
    content = payload.get("content")
    if not title or not excerpt or not content:
        raise DraftGenerationError("draft_output_missing_fields")
    if not isinstance(content, list) or not all(isinstance(block, dict) for block in content):
        raise DraftGenerationError("draft_output_invalid_content")
    return {"title": str(title), "excerpt": str(excerpt), "content": content}
