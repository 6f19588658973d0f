"""Deterministic draft generator for local/dev usage."""

from __future__ import annotations

import hashlib
from typing import Any, Dict, List

from src.drafting.base import DraftGenerator, DraftRequest, GeneratedDraft


def _block(text: str, *, style: str = "normal", key: str) -> Dict[str, Any]:
    return {
        "_type": "block",
        "_key": key,
        "style": style,
        "markDefs": [],
        "children": [{"_type": "span", "_key": f"{key}s", "text": text, "marks": []}],
    }


class MockDraftGenerator(DraftGenerator):
    provider_name = "mock"

    def generate(self, request: DraftRequest) -> GeneratedDraft:
        seed = hashlib.sha1(f"{request.tone}:{request.language}:{request.context}".encode("utf-8")).hexdigest()[:8]
        topic = " ".join(request.context.split())
        if len(topic) > 80:
            topic = topic[:80].rstrip() + "..."

        if request.is_refinement:
            content: List[Dict[str, Any]] = [dict(block) for block in request.existing_content or [] if isinstance(block, dict)]
            content.append(_block(f"Revision note: {request.change_request}", key=f"{seed}r"))
        else:
            content = [
                _block(topic, style="h2", key=f"{seed}a"),
                _block(f"A {request.tone} take on {topic}.", key=f"{seed}b"),
            ]
        return GeneratedDraft(
            provider=self.provider_name,
            title=topic,
            excerpt=f"A {request.tone} post about {topic}.",
            content=content,
        )
