"""Four-digit room join codes."""

from __future__ import annotations

import re
import secrets
from typing import Callable


JOIN_CODE_LENGTH = 4
DEFAULT_MAX_ATTEMPTS = 10

_JOIN_CODE_RE = re.compile(r"^[0-9]{4}$")
_NON_DIGIT_RE = re.compile(r"[^0-9]")


class JoinCodeExhausted(RuntimeError):
    """Raised when no free join code was found within the attempt budget."""


def generate_join_code() -> str:
    # 1000-9999: 9000 codes in total.
    return str(1000 + secrets.randbelow(9000))


def is_valid_join_code(code: str) -> bool:
    return bool(_JOIN_CODE_RE.match(code or ""))


def normalize_join_code(raw: str) -> str:
    """Strip spacing and any other non-digit, keep at most four digits."""

    return _NON_DIGIT_RE.sub("", raw or "")[:JOIN_CODE_LENGTH]


def parse_join_code(raw: str) -> str:
    """Normalize user input, rejecting anything that is not exactly four digits."""

    digits = _NON_DIGIT_RE.sub("", raw or "")
    if len(digits) != JOIN_CODE_LENGTH:
        raise ValueError("Invalid join code format")
    return digits


def format_join_code(code: str) -> str:
    if not is_valid_join_code(code):
        return code
    return f"{code[:2]} {code[2:]}"


def allocate_join_code(
    is_taken: Callable[[str], bool],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    generator: Callable[[], str] = generate_join_code,
) -> str:
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")
    for _ in range(max_attempts):
        code = generator()
        if not is_taken(code):
            return code
    raise JoinCodeExhausted("Could not allocate a unique join code")
