from __future__ import annotations

from pydantic import ValidationError
import pytest

from src.schemas.blogs import BlogCreate, BlogEdit, BlogUpdate, dump_blocks
from tests.conftest import text_block


def _create(content) -> BlogCreate:
    return BlogCreate(roomId="room-1", title="Hello World", content=content, tone="casual", language="en")


def test_blocks_are_discriminated_by_type() -> None:
    payload = _create(
        [
            text_block("Intro", style="h2"),
            {"_type": "image", "url": "https://cdn.example.com/a.png", "alt": "A"},
            {"_type": "code", "code": "print('hi')", "language": "python"},
        ]
    )

    dumped = dump_blocks(payload.content)

    assert [block["_type"] for block in dumped] == ["block", "image", "code"]
    assert dumped[0]["style"] == "h2"
    assert dumped[1]["url"] == "https://cdn.example.com/a.png"
    assert dumped[2]["code"] == "print('hi')"


def test_unknown_block_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _create([{"_type": "video", "url": "https://example.com"}])


def test_span_marks_must_be_decorators_or_annotation_keys() -> None:
    linked = {
        "_type": "block",
        "markDefs": [{"_key": "link1", "_type": "link", "href": "https://example.com"}],
        "children": [{"_type": "span", "text": "see", "marks": ["strong", "link1", "strong"]}],
    }
    payload = _create([linked])
    assert dump_blocks(payload.content)[0]["children"][0]["marks"] == ["strong", "link1"]

    broken = {
        "_type": "block",
        "children": [{"_type": "span", "text": "see", "marks": ["blink"]}],
    }
    with pytest.raises(ValidationError):
        _create([broken])


def test_unknown_tone_and_language_are_rejected() -> None:
    with pytest.raises(ValidationError):
        BlogCreate(roomId="room-1", title="Hello World", content=[text_block("x")], tone="angry", language="en")
    with pytest.raises(ValidationError):
        BlogCreate(roomId="room-1", title="Hello World", content=[text_block("x")], tone="casual", language="it")


def test_blog_update_tracks_explicit_excerpt() -> None:
    assert BlogUpdate(title="New Title").excerpt_provided is False
    assert BlogUpdate(excerpt=None).excerpt_provided is True


def test_only_create_requires_non_empty_content() -> None:
    with pytest.raises(ValidationError):
        _create([])

    assert BlogUpdate(content=[]).content == []
    assert BlogEdit(title="Cleared Post", content=[]).content == []
