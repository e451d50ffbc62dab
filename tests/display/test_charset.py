"""Tests for the Vestaboard character table."""

import pytest

from fundraiser_board.display.charset import CHAR_CODES, Color, decode, encode


def test_letters_and_digits():
    assert encode("AZ") == [1, 26]
    assert encode("1234567890") == [27, 28, 29, 30, 31, 32, 33, 34, 35, 36]


@pytest.mark.parametrize(
    "char,code",
    [("!", 37), ("$", 40), ("-", 44), ("&", 47), (":", 50), ("'", 52), (",", 55), (".", 56), ("/", 59), ("?", 60)],
)
def test_punctuation(char, code):
    assert CHAR_CODES[char] == code


def test_unknown_characters_are_blank():
    assert encode("é*^~") == [0, 0, 0, 0]


def test_codes_stay_in_range():
    assert all(0 <= code <= 69 for code in CHAR_CODES.values())
    assert [c.value for c in Color] == list(range(63, 70))


def test_color_from_name():
    assert Color.from_name("orange") is Color.ORANGE
    with pytest.raises(ValueError):
        Color.from_name("pink")


def test_decode():
    assert decode(8) == "H"
    assert decode(36) == "0"
    assert decode(0) == " "
    assert decode(Color.GREEN) == "█"
    assert decode(61) == "?"
