import re

from src.blogs.slugs import MAX_SLUG_LENGTH, ensure_unique_slug, generate_slug, is_valid_slug, unique_slug


def test_generate_slug_lowercases_and_hyphenates() -> None:
    assert generate_slug("Hello World") == "hello-world"
    assert generate_slug("Hello World!") == "hello-world"
    assert generate_slug("  --Rust & Go: a tale--  ") == "rust-go-a-tale"


def test_generate_slug_strips_diacritics() -> None:
    assert generate_slug("Café Déjà Vu") == "cafe-deja-vu"
    assert generate_slug("Über Straße") == "uber-stra-e"


def test_generate_slug_caps_length_without_trailing_hyphen() -> None:
    title = ("a" * 59) + " tail"
    slug = generate_slug(title)
    assert len(slug) <= MAX_SLUG_LENGTH
    assert not slug.endswith("-")
    assert slug == "a" * 59


def test_generate_slug_is_idempotent() -> None:
    for title in ["Hello World", "Café Déjà Vu", "x" * 200, "C++ in 2024?"]:
        once = generate_slug(title)
        assert generate_slug(once) == once


def test_unique_slug_appends_lowest_free_suffix() -> None:
    assert unique_slug("Hello World", set()) == "hello-world"
    assert unique_slug("Hello World!", {"hello-world"}) == "hello-world-1"
    assert unique_slug("Hello World", {"hello-world", "hello-world-1", "hello-world-3"}) == "hello-world-2"


def test_ensure_unique_slug_leaves_free_slug_untouched() -> None:
    assert ensure_unique_slug("notes", ["other"]) == "notes"


def test_unique_slug_falls_back_when_title_has_no_ascii_letters() -> None:
    slug = unique_slug("🎉🎉🎉", set())
    assert re.fullmatch(r"post-[0-9a-f]{8}", slug)
    assert is_valid_slug(slug)

    assert unique_slug("???", set(), fallback=lambda: "room-fixed") == "room-fixed"
    assert unique_slug("???", {"room-fixed"}, fallback=lambda: "room-fixed") == "room-fixed-1"


def test_is_valid_slug() -> None:
    assert is_valid_slug("hello-world-1")
    assert not is_valid_slug("Hello")
    assert not is_valid_slug("")
    assert not is_valid_slug("a b")
