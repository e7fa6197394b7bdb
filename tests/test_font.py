import pytest

from meteostation.font import FONT, glyph


def test_font_covers_printable_ascii():
    assert len(FONT) == 8 * (ord("~") - ord(" ") + 1)
    assert glyph("~") == FONT[-8:]
    assert glyph(" ") == FONT[:8]


def test_space_is_blank():
    assert glyph(" ") == bytes(8)


def test_letter_a_matches_table():
    assert glyph("A") == bytes.fromhex("7C7E1311137E7C00")


def test_underscore_is_bottom_row():
    assert glyph("_") == bytes([0x80] * 8)


@pytest.mark.parametrize("char", ["\n", "\t", "\x7f", "é", "°"])
def test_unprintable_falls_back_to_space(char):
    assert glyph(char) == glyph(" ")


@pytest.mark.parametrize("char", [chr(c) for c in range(ord(" "), ord("~") + 1)])
def test_every_glyph_has_eight_columns(char):
    assert len(glyph(char)) == 8


def test_uppercase_glyphs_are_distinct():
    letters = [glyph(chr(c)) for c in range(ord("A"), ord("Z") + 1)]
    assert len(set(letters)) == 26


def test_glyph_is_slice_of_font():
    offset = (ord("~") - ord(" ")) * 8
    assert glyph("~") == FONT[offset:offset + 8]


@pytest.mark.parametrize("bad", ["", "ab"])
def test_rejects_non_single_character(bad):
    with pytest.raises(ValueError):
        glyph(bad)