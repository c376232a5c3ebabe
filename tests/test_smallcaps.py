from prism_smallcaps import (
    SMALL_CAPS,
    glyph_widths,
    has_small_caps,
    is_small_caps,
    strip_accents,
    to_normal,
    to_small_caps,
)


def test_letters_convert_both_ways() -> None:
    assert to_small_caps("AB") == "ᴀʙ"
    assert to_normal("ᴀʙ") == "ab"


def test_accents_are_stripped_before_conversion() -> None:
    assert strip_accents("ñandú") == "nandu"
    assert to_small_caps("Café") == "ᴄᴀғᴇ"


def test_non_letters_are_kept() -> None:
    assert to_small_caps("Hi 42!") == "ʜɪ 42!"
    assert to_normal("ʜɪ 42!") == "hi 42!"


def test_blank_input_is_returned_as_is() -> None:
    assert to_small_caps("") == ""
    assert to_small_caps("   ") == "   "
    assert to_normal("  ") == "  "
    assert has_small_caps("   ") is False


def test_glyph_detection() -> None:
    assert is_small_caps("ᴀ") is True
    assert is_small_caps("a") is False
    assert has_small_caps("hello ᴡorld") is True
    assert has_small_caps("hello") is False


def test_table_covers_the_alphabet() -> None:
    assert len(SMALL_CAPS) == 26
    widths = glyph_widths()
    assert widths["ɪ"] == 3
    assert widths["ᴍ"] == 5
