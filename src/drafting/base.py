"""Contracts for AI blog draft generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


class DraftGenerationError(RuntimeError):
    """Raised when a generator cannot produce a usable draft."""


class DraftGeneratorUnavailable(DraftGenerationError):
    """Raised when the configured generator is missing credentials."""


@dataclass(frozen=True)
class DraftRequest:
    tone: str
    language: str
    context: str
    custom_instructions: Optional[str] = None
    existing_content: Optional[List[Any]] = None
    change_request: Optional[str] = None

    @property
    def is_refinement(self) -> bool:
        return bool(self.existing_content) and bool(self.change_request)


@dataclass(frozen=True)
class GeneratedDraft:
    provider: str
    title: str
    excerpt: str
    content: List[Dict[str, Any]] = field(default_factory=list)


class DraftGenerator(Protocol):
    provider_name: str

    def generate(self, request: DraftRequest) -> GeneratedDraft:
        raise NotImplementedError
