"""Short code generator tests."""

import string

import pytest

from src.shortlinks.services.shortcode import ALPHABET, generate_short_code, pick_code_length


def test_alphabet_is_base62() -> None:
    assert len(ALPHABET) == 62
    assert len(set(ALPHABET)) == 62
    assert set(ALPHABET) == set(string.digits + string.ascii_letters)


@pytest.mark.parametrize("length", [6, 7, 8])
def test_generate_short_code_length_and_alphabet(length: int) -> None:
    for _ in range(200):
        code = generate_short_code(length)
        assert len(code) == length
        assert all(ch in ALPHABET for ch in code)


def test_generate_short_code_varies() -> None:
    codes = {generate_short_code(8) for _ in range(50)}
    assert len(codes) > 1


@pytest.mark.parametrize("length", [0, -1])
def test_generate_short_code_rejects_non_positive_length(length: int) -> None:
    with pytest.raises(ValueError):
        generate_short_code(length)


def test_pick_code_length_stays_in_range() -> None:
    lengths = {pick_code_length(6, 8) for _ in range(500)}
    assert lengths <= {6, 7, 8}
    assert lengths == {6, 7, 8}
