import pytest

from prism_color import ColorToken
from prism_patterns import (
    ColorPattern,
    GradientPattern,
    MultiStopGradientPattern,
    PatternRegistry,
    RainbowPattern,
    apply_gradient,
    apply_rainbow,
    colorize,
    paint_units,
    parse_saturation,
    split_parts,
    strip_all,
    strip_rgb,
    visible_length,
)

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def tok(*rgb: int) -> str:
    return str(ColorToken(rgb=tuple(rgb)))


def test_paint_units_track_format_codes() -> None:
    assert paint_units("&lAB&rC") == [("&l", "A"), ("&l", "B"), ("", "C")]
    assert paint_units("&aAB") == [("", "A"), ("", "B")]
    assert visible_length("&lHi&a!") == 3
    assert visible_length("") == 0


def test_split_parts() -> None:
    assert split_parts("ABCDE", 2) == ["ABC", "DE"]
    assert split_parts("ABCDEFG", 3) == ["ABC", "DE", "FG"]
    assert split_parts("AB", 3) == ["A", "B", ""]
    assert split_parts("ABCDE", 1) == ["ABCDE"]


def test_gradient_over_short_spans_is_unchanged() -> None:
    assert apply_gradient("", RED, BLUE, False) == ""
    assert apply_gradient("A", RED, BLUE, False) == "A"
    assert apply_gradient("   ", RED, BLUE, False) == "   "
    assert apply_gradient("&lA", RED, BLUE, False) == "&lA"


def test_two_char_gradient_hits_both_anchors() -> None:
    assert apply_gradient("AB", RED, BLUE, False) == tok(255, 0, 0) + "A" + tok(0, 0, 255) + "B"


def test_gradient_in_legacy_mode() -> None:
    assert apply_gradient("AB", RED, BLUE, True) == "§4A§1B"


def test_gradient_repeats_format_codes() -> None:
    assert apply_gradient("&lAB", RED, BLUE, True) == "§4&lA§1&lB"


def test_multi_stop_gradient_paints_boundary_once() -> None:
    result = MultiStopGradientPattern().apply("<#ff0000:#00ff00:#0000ff>ABCDE</g>", False)

    expected = (
        tok(255, 0, 0) + "A"
        + tok(128, 127, 0) + "B"
        + tok(1, 254, 0) + "C"
        + tok(0, 128, 127) + "D"
        + tok(0, 1, 254) + "E"
    )
    assert result == expected
    assert result.count("C") == 1
    assert strip_all(result) == "ABCDE"


def test_multi_stop_gradient_accepts_long_closing_tag() -> None:
    pattern = MultiStopGradientPattern()
    assert pattern.apply("<#FF0000:#0000FF>AB</GRADIENT>", False) == apply_gradient("AB", RED, BLUE, False)
    assert pattern.strip("<#ff0000:#00ff00>AB</g>") == "AB"


def test_shorthand_gradient() -> None:
    expected = apply_gradient("AB", RED, BLUE, False)
    assert GradientPattern("g:").apply("<g:ff0000>AB</g:0000ff>", False) == expected
    assert GradientPattern("#").apply("<#ff0000>AB</#0000ff>", False) == expected


def test_shorthand_gradient_with_inner_stop() -> None:
    result = GradientPattern("g:").apply("<g:ff0000>AB<g:00ff00>CD</g:0000ff>", False)
    expected = apply_gradient("AB", RED, GREEN, False) + apply_gradient("CD", GREEN, BLUE, False)
    assert result == expected


def test_shorthand_gradient_strip() -> None:
    pattern = GradientPattern("g:")
    assert pattern.strip("<g:ff0000>A<g:00ff00>B</g:0000ff>") == "AB"


def test_rainbow_hues_in_order() -> None:
    result = apply_rainbow("ABCD", 1.0, False)
    expected = (
        tok(255, 0, 0) + "A"
        + tok(128, 255, 0) + "B"
        + tok(0, 255, 255) + "C"
        + tok(128, 0, 255) + "D"
    )
    assert result == expected


def test_rainbow_pattern_percent_saturation() -> None:
    result = RainbowPattern("r").apply("<r:50>AB</r>", False)
    assert result == tok(128, 64, 64) + "A" + tok(64, 128, 128) + "B"


def test_rainbow_single_char_gets_hue_zero() -> None:
    assert RainbowPattern("rainbow").apply("<rainbow:100>A</rainbow>", False) == tok(255, 0, 0) + "A"


def test_rainbow_with_invalid_saturation_is_left_alone() -> None:
    registry = PatternRegistry()
    assert registry.apply("<r:500>AB</r>", False) == "<r:500>AB</r>"


def test_parse_saturation() -> None:
    assert parse_saturation("1") == 1.0
    assert parse_saturation("0.5") == 0.5
    assert parse_saturation("50") == 0.5
    assert parse_saturation("101") is None
    assert parse_saturation("abc") is None


def test_rainbow_strip_keeps_other_markup() -> None:
    assert RainbowPattern("r").strip("<r:50>&aHi</r> <#ff0000>") == "&aHi <#ff0000>"


@pytest.mark.parametrize(
    "markup",
    ["{#ff0000}A", "%#ff0000%A", "[#ff0000]A", "<#ff0000>A", "&xff0000A", "&#ff0000A", "#FF0000A"],
)
def test_single_color_notations(patterns, markup) -> None:
    assert patterns.apply(markup, False) == tok(255, 0, 0) + "A"
    assert patterns.apply(markup, True) == "§4A"
    assert patterns.strip(markup) == "A"


def test_unterminated_markup_stays_literal(patterns) -> None:
    assert patterns.apply("<rainbow:100>AB", False) == "<rainbow:100>AB"
    assert patterns.apply("<g:ff0000>AB", False) == "<g:ff0000>AB"


def test_colorize_translates_legacy_codes(patterns) -> None:
    assert colorize("&aHi <#ff0000>there", legacy=False, registry=patterns) == "§aHi " + tok(255, 0, 0) + "there"
    assert colorize("<#ff0000>x", legacy=True, registry=patterns) == "§4x"
    assert colorize("", legacy=False, registry=patterns) == ""


def test_strip_functions(patterns) -> None:
    assert strip_rgb("&a{#ff0000}Hi", patterns) == "&aHi"
    text = "&a<#ff0000:#00ff00>Hi</g> &lbold &xff0000x"
    assert strip_all(text, patterns) == "Hi bold x"


class SmileyPattern(ColorPattern):
    def __init__(self):
        super().__init__("smiley")

    def apply(self, text: str, legacy: bool) -> str:
        return text.replace(":)", "&e☺")

    def strip(self, text: str) -> str:
        return text.replace(":)", "")


def test_registry_registration(patterns) -> None:
    count = len(patterns)
    assert patterns.register(SmileyPattern(), index=0) is True
    assert patterns.register(SmileyPattern()) is False
    assert len(patterns) == count + 1
    assert patterns.patterns[0].name == "smiley"
    assert patterns.get("smiley") is not None

    assert colorize("hi :)", legacy=False, registry=patterns) == "hi §e☺"

    assert patterns.unregister("smiley") is True
    assert patterns.unregister("smiley") is False
    assert len(patterns) == count


def test_empty_registry_is_still_used() -> None:
    empty = PatternRegistry([])
    assert colorize("<#ff0000>A&a", legacy=False, registry=empty) == "<#ff0000>A§a"
