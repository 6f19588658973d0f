"""URL slug generation with per-scope uniqueness."""

from __future__ import annotations

import re
import secrets
import unicodedata
from typing import Callable, Iterable, Optional


MAX_SLUG_LENGTH = 60

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_VALID_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def generate_slug(text: str) -> str:
    """Lowercase, strip accents, hyphenate and cap ``text``. May return ``""``."""

    lowered = (text or "").lower().strip()
    decomposed = unicodedata.normalize("NFD", lowered)
    without_marks = "".join(char for char in decomposed if not unicodedata.combining(char))
    hyphenated = _NON_ALNUM_RE.sub("-", without_marks).strip("-")
    return hyphenated[:MAX_SLUG_LENGTH].rstrip("-")


def is_valid_slug(slug: str) -> bool:
    return bool(_VALID_SLUG_RE.match(slug or ""))


def random_slug(prefix: str = "post") -> str:
    return f"{prefix}-{secrets.token_hex(4)}"


def ensure_unique_slug(base_slug: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def unique_slug(
    title: str,
    existing: Iterable[str],
    *,
    fallback: Optional[Callable[[], str]] = None,
) -> str:
    """Return a slug for ``title`` that is not in ``existing``.

    Collisions get the lowest free ``-N`` suffix. Titles that normalize to an
    empty string (emoji-only, punctuation-only, non-Latin scripts) use
    ``fallback`` instead, which defaults to a random ``post-<hex>`` token.
    """

    base_slug = generate_slug(title)
    if not base_slug:
        base_slug = (fallback or random_slug)()
    return ensure_unique_slug(base_slug, existing)
