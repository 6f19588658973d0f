import pytest

from src.rooms.join_codes import (
    JoinCodeExhausted,
    allocate_join_code,
    format_join_code,
    generate_join_code,
    is_valid_join_code,
    normalize_join_code,
    parse_join_code,
)


def test_generate_join_code_is_four_digits_in_range() -> None:
    for _ in range(200):
        code = generate_join_code()
        assert is_valid_join_code(code)
        assert 1000 <= int(code) <= 9999


def test_is_valid_join_code() -> None:
    assert is_valid_join_code("0042")
    assert not is_valid_join_code("42")
    assert not is_valid_join_code("00420")
    assert not is_valid_join_code("00a2")
    assert not is_valid_join_code("")


def test_normalize_join_code_strips_non_digits_and_truncates() -> None:
    assert normalize_join_code("00-42") == "0042"
    assert normalize_join_code("00 42") == "0042"
    assert normalize_join_code("123456") == "1234"
    assert normalize_join_code("") == ""


def test_format_join_code() -> None:
    assert format_join_code("0042") == "00 42"
    assert format_join_code("abc") == "abc"


def test_parse_join_code_requires_exactly_four_digits() -> None:
    assert parse_join_code("48 21") == "4821"
    with pytest.raises(ValueError):
        parse_join_code("482")
    with pytest.raises(ValueError):
        parse_join_code("48210")


def test_allocate_join_code_skips_taken_codes() -> None:
    candidates = iter(["1111", "2222", "3333"])
    code = allocate_join_code(lambda value: value in {"1111", "2222"}, generator=lambda: next(candidates))
    assert code == "3333"


def test_allocate_join_code_gives_up_after_max_attempts() -> None:
    attempts = {"count": 0}

    def generator() -> str:
        attempts["count"] += 1
        return "1234"

    with pytest.raises(JoinCodeExhausted):
        allocate_join_code(lambda value: True, max_attempts=3, generator=generator)
    assert attempts["count"] == 3
