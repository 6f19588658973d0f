"""Gemini text generation backend for blog drafts."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from src.drafting.base import (
    DraftGenerationError,
    DraftGenerator,
    DraftGeneratorUnavailable,
    DraftRequest,
    GeneratedDraft,
)
from src.drafting.prompts import build_prompt, parse_draft_payload


class GeminiDraftGenerator(DraftGenerator):
    provider_name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: int = 60,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key.strip()
        self._model = model.strip()
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1, timeout_seconds)
        self._client = client

    def _endpoint(self) -> str:
        if not self._api_key:
            raise DraftGeneratorUnavailable("gemini_api_key_missing")
        if not self._model:
            raise DraftGeneratorUnavailable("gemini_model_missing")
        return f"{self._base_url}/models/{self._model}:generateContent?key={self._api_key}"

    @staticmethod
    def _first_text(body: Dict[str, Any]) -> str:
        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise DraftGenerationError("gemini_missing_candidates")
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            raise DraftGenerationError("gemini_missing_parts")
        text = parts[0].get("text")
        if not isinstance(text, str) or not text.strip():
            raise DraftGenerationError("gemini_missing_text")
        return text

    def generate(self, request: DraftRequest) -> GeneratedDraft:
        endpoint = self._endpoint()
        request_body = {
            "contents": [{"parts": [{"text": build_prompt(request)}]}],
            "generationConfig": {
                "temperature": 0.7,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": 8192,
                "responseMimeType": "application/json",
            },
        }

        try:
            if self._client is not None:
                response = self._client.post(endpoint, json=request_body)
            else:
                with httpx.Client(timeout=self._timeout_seconds) as client:
                    response = client.post(endpoint, json=request_body)
        except httpx.HTTPError as exc:
            raise DraftGenerationError(f"gemini_transport_error detail={exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            detail = response.text.strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            raise DraftGenerationError(f"gemini_request_failed status={response.status_code} detail={detail}")

        try:
            body: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise DraftGenerationError("gemini_invalid_json_response") from exc

        payload = parse_draft_payload(self._first_text(body))
        return GeneratedDraft(
            provider=self.provider_name,
            title=payload["title"],
            excerpt=payload["excerpt"],
            content=payload["content"],
        )
