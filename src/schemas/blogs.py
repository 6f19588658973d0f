"""Pydantic schemas for blog lifecycle endpoints and rich-text content."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Tone = Literal["professional", "casual", "technical", "creative", "academic"]
Language = Literal["en", "es", "fr", "de", "hi", "zh"]
BlockStyle = Literal["normal", "h1", "h2", "h3", "h4", "blockquote"]

DECORATOR_MARKS = frozenset({"strong", "em", "code", "underline", "strike-through"})


class Span(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_: Literal["span"] = Field(default="span", alias="_type")
    key: Optional[str] = Field(default=None, alias="_key")
    text: str = ""
    marks: List[str] = Field(default_factory=list)

    @field_validator("marks")
    @classmethod
    def _dedupe_marks(cls, value: List[str]) -> List[str]:
        seen: list[str] = []
        for mark in value:
            if mark not in seen:
                seen.append(mark)
        return seen


class TextBlock(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_: Literal["block"] = Field(alias="_type")
    key: Optional[str] = Field(default=None, alias="_key")
    style: BlockStyle = "normal"
    children: List[Span] = Field(default_factory=list)
    mark_defs: List[Dict[str, Any]] = Field(default_factory=list, alias="markDefs")
    list_item: Optional[Literal["bullet", "number"]] = Field(default=None, alias="listItem")
    level: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_marks(self) -> "TextBlock":
        annotation_keys = {str(item.get("_key")) for item in self.mark_defs if item.get("_key")}
        allowed = DECORATOR_MARKS | annotation_keys
        for child in self.children:
            unknown = [mark for mark in child.marks if mark not in allowed]
            if unknown:
                raise ValueError(f"Unknown span marks: {', '.join(sorted(unknown))}")
        return self


class ImageBlock(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_: Literal["image"] = Field(alias="_type")
    key: Optional[str] = Field(default=None, alias="_key")
    url: str = Field(min_length=1, max_length=2048)
    alt: Optional[str] = Field(default=None, max_length=300)
    caption: Optional[str] = Field(default=None, max_length=500)


class CodeBlock(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_: Literal["code"] = Field(alias="_type")
    key: Optional[str] = Field(default=None, alias="_key")
    code: str
    language: Optional[str] = Field(default=None, max_length=32)
    filename: Optional[str] = Field(default=None, max_length=200)


Block = Annotated[Union[TextBlock, ImageBlock, CodeBlock], Field(discriminator="type_")]


def dump_blocks(blocks: List[Block]) -> List[Dict[str, Any]]:
    """Serialize blocks to the content store's portable-text JSON, order preserved."""

    return [block.model_dump(by_alias=True, exclude_none=True) for block in blocks]


class BlogCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1, max_length=36)
    title: str = Field(min_length=3, max_length=200)
    content: List[Block] = Field(min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=1000)
    tone: Tone
    language: Language


class BlogUpdate(BaseModel):
    """Partial draft update; only fields present in the payload are applied."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    content: Optional[List[Block]] = None
    excerpt: Optional[str] = Field(default=None, max_length=1000)

    @property
    def excerpt_provided(self) -> bool:
        return "excerpt" in self.model_fields_set


class BlogEdit(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    content: List[Block]
    excerpt: Optional[str] = Field(default=None, max_length=1000)


class BlogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    room_id: str
    author_id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    sanity_id: str
    published: bool
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BlogResponse(BaseModel):
    blog: BlogItem


class BlogForEditResponse(BaseModel):
    blog: BlogItem
    content: Dict[str, Any]
