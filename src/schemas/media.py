"""Schemas for image upload endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class ImageUploadResponse(BaseModel):
    url: str
    path: str
