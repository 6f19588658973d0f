"""Sanity HTTP API client implementing the content store contract."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from src.core.config import get_settings
from src.integrations.sanity.base import (
    BLOG_DOCUMENT_TYPE,
    ContentStore,
    ContentStoreError,
    DocumentExistsError,
    DocumentNotFoundError,
)


def _truncate(detail: str, limit: int = 200) -> str:
    detail = detail.strip()
    if len(detail) > limit:
        return detail[:limit] + "..."
    return detail


class SanityContentStore(ContentStore):
    def __init__(
        self,
        *,
        project_id: str,
        dataset: str,
        api_version: str = "2024-01-01",
        token: str = "",
        timeout_seconds: int = 20,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._project_id = project_id.strip()
        self._dataset = dataset.strip()
        self._api_version = api_version.strip().lstrip("v")
        self._token = token.strip()
        self._timeout_seconds = max(1, timeout_seconds)
        self._client = client

    def _base_url(self) -> str:
        if not self._project_id:
            raise ContentStoreError("sanity_project_id_missing")
        return f"https://{self._project_id}.api.sanity.io/v{self._api_version}/data"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                return self._client.request(method, url, headers=self._headers(), **kwargs)
            with httpx.Client(timeout=self._timeout_seconds) as client:
                return client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            raise ContentStoreError(f"sanity_transport_error {exc.__class__.__name__}") from exc

    def _mutate(self, mutations: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not self._token:
            raise ContentStoreError("sanity_api_token_missing")
        url = f"{self._base_url()}/mutate/{self._dataset}"
        response = self._request(
            "POST",
            url,
            params={"returnIds": "true", "visibility": "sync"},
            json={"mutations": mutations},
        )

        if response.status_code < 200 or response.status_code >= 300:
            detail = _truncate(response.text)
            lowered = detail.lower()
            if response.status_code == 409 and "already exists" in lowered:
                raise DocumentExistsError(f"sanity_document_exists detail={detail}")
            if response.status_code in {404, 409} and "not found" in lowered:
                raise DocumentNotFoundError(f"sanity_document_not_found detail={detail}")
            raise ContentStoreError(
                f"sanity_mutation_failed status={response.status_code} detail={detail}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ContentStoreError("sanity_invalid_json_response") from exc
        if not isinstance(body, dict):
            raise ContentStoreError("sanity_invalid_payload")
        return body

    def create_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(fields)
        document["_id"] = document_id
        document.setdefault("_type", BLOG_DOCUMENT_TYPE)
        self._mutate([{"create": document}])
        return document

    def patch_document(self, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if not fields:
            return {"_id": document_id}
        self._mutate([{"patch": {"id": document_id, "set": dict(fields)}}])
        return {"_id": document_id, **fields}

    def delete_document(self, document_id: str) -> None:
        self._mutate([{"delete": {"id": document_id}}])

    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self._base_url()}/doc/{self._dataset}/{quote(document_id, safe='')}"
        response = self._request("GET", url)
        if response.status_code == 404:
            return None
        if response.status_code < 200 or response.status_code >= 300:
            raise ContentStoreError(
                f"sanity_get_failed status={response.status_code} detail={_truncate(response.text)}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ContentStoreError("sanity_invalid_json_response") from exc

        documents = body.get("documents") if isinstance(body, dict) else None
        if not isinstance(documents, list):
            raise ContentStoreError("sanity_invalid_payload")
        for document in documents:
            if isinstance(document, dict) and document.get("_id") == document_id:
                return document
        return None


@lru_cache(maxsize=1)
def get_content_store() -> ContentStore:
    settings = get_settings()
    return SanityContentStore(
        project_id=settings.sanity_project_id,
        dataset=settings.sanity_dataset,
        api_version=settings.sanity_api_version,
        token=settings.sanity_api_token,
        timeout_seconds=settings.sanity_timeout_seconds,
    )
