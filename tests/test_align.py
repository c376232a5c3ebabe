import pytest

from prism_align import StringAligner, center_pad
from prism_config import AlignmentConfig


@pytest.fixture()
def aligner(width_table, patterns, formats):
    return StringAligner(width_table, patterns, formats, AlignmentConfig())


def test_center_short_line(aligner) -> None:
    # "Hi" is 8 px wide: ceil((10 - 4) / 4) spaces
    assert aligner.center("[C]Hi", 10) == "  Hi"


def test_center_with_default_limit(aligner) -> None:
    # (154 - 22 // 2) / 4 rounds up to 36
    assert aligner.center("[C]Hello") == " " * 36 + "Hello"


def test_wide_lines_get_no_padding(aligner) -> None:
    assert aligner.center("[C]Hi", 0) == "Hi"
    assert aligner.padding(2, "Hello") == ""


def test_unmarked_lines_are_unchanged(aligner) -> None:
    assert aligner.center("Hi [C]", 10) == "Hi [C]"
    assert aligner.center("", 10) == ""
    assert aligner.center("   ", 10) == "   "


def test_bold_text_is_measured_wider(aligner) -> None:
    assert aligner.padding(20, "Hello") == "   "
    assert aligner.padding(20, "&lHello") == "  "


def test_markup_is_not_measured(aligner) -> None:
    assert aligner.center("[C]&a<#ff0000>Hi", 10) == "  &a<#ff0000>Hi"
    assert aligner.center("[C]<#ff0000:#0000ff>Hi</g>", 10) == "  <#ff0000:#0000ff>Hi</g>"
    assert aligner.center('[C]<run:"/x">Hi</text>', 10) == '  <run:"/x">Hi</text>'


def test_content_formats_are_measured_as_rendered(aligner) -> None:
    # small caps glyphs are wider than the plain letters
    assert aligner.center("[C]<sc>hi</sc>", 5) == "<sc>hi</sc>"


def test_strip_for_measure_keeps_format_codes(aligner) -> None:
    assert aligner.strip_for_measure("&a&lHi <#ff0000>x") == "§lHi x"


def test_every_marker_is_removed(aligner) -> None:
    assert aligner.center("[C]A[C]B", 0) == "AB"


def test_custom_marker_and_padding(width_table, patterns, formats) -> None:
    config = AlignmentConfig(center_prefix=">>", pad_char=".")
    aligner = StringAligner(width_table, patterns, formats, config)
    assert aligner.is_centered(">>Hi") is True
    assert aligner.center(">>Hi", 10) == "..Hi"
    assert aligner.center("[C]Hi", 10) == "[C]Hi"


def test_invalid_config_is_rejected(width_table, patterns, formats) -> None:
    with pytest.raises(ValueError):
        StringAligner(width_table, patterns, formats, AlignmentConfig(pad_width=0))


def test_center_pad_helper() -> None:
    assert center_pad(10, "[C]Hi") == "  Hi"
