from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import ImageFont

from prism_width import (
    CharacterInfo,
    WidthTable,
    clear_default_cache,
    get_default_stats,
    get_width,
    get_widths,
)


def test_character_info_bold_length() -> None:
    assert CharacterInfo("i", 1).bold_length == 2
    assert CharacterInfo(" ", 3).bold_length == 3


def test_default_entries(width_table) -> None:
    assert width_table.get_info("i").length == 1
    assert width_table.get_info("@").length == 6
    assert width_table.get_info("A").length == 5
    assert width_table.get_info(" ").length == 3
    assert width_table.get_info("ɪ").length == 3


def test_unknown_and_invalid_characters(width_table) -> None:
    assert width_table.get_info("€").length == 5
    assert width_table.get_info("\u0301").length == 0
    assert width_table.get_info("ab") == CharacterInfo("a", 5)
    assert width_table.get_info("") == CharacterInfo("a", 5)


def test_measure_plain_and_bold(width_table) -> None:
    assert width_table.measure("Hello") == 22
    assert width_table.measure("§lHello") == 27
    assert width_table.measure("") == 0


def test_any_other_code_turns_bold_off(width_table) -> None:
    # A bold (6 + 1), then B normal (5 + 1)
    assert width_table.measure("§lA§rB") == 13
    assert width_table.measure("§lA§aB") == 13


def test_add_and_remove_characters(width_table) -> None:
    assert width_table.add_character("♥", 7) is True
    assert width_table.measure("♥") == 8
    assert width_table.add_character("ab", 3) is False

    with pytest.raises(ValueError):
        width_table.add_character("x", -1)

    assert width_table.remove_characters("♥", "€") == 1
    assert "♥" not in width_table
    assert width_table.measure("♥") == 6


def test_add_characters_in_bulk(width_table) -> None:
    assert width_table.add_characters({"☺": 8, "☻": 8, "xy": 2}) == 2
    assert width_table.get_info("☺").length == 8

    with pytest.raises(ValueError):
        width_table.add_characters({"☺": -1})


def test_cache_hits_and_invalidation(width_table) -> None:
    width_table.measure("Hello")
    width_table.measure("Hello")
    stats = width_table.get_stats()
    assert stats["cache_hits"] == 1
    assert stats["cache_entries"] == 1

    width_table.add_character("♦", 5)
    assert width_table.get_stats()["cache_entries"] == 0


def test_cache_evicts_oldest_entries() -> None:
    table = WidthTable(cache_size=2)
    for text in ("a", "b", "c"):
        table.measure(text)

    stats = table.get_stats()
    assert stats["cache_evictions"] == 1
    assert stats["cache_entries"] == 2


def test_cache_can_be_disabled(width_table) -> None:
    width_table.measure("Hello")
    width_table.set_cache_enabled(False)
    width_table.measure("Hello")

    stats = width_table.get_stats()
    assert stats["cache_entries"] == 0
    assert stats["cache_enabled"] is False


def test_register_font_widths(width_table) -> None:
    font = ImageFont.load_default()
    assert width_table.register_font(font, ["A", "xy", "B"]) == 2
    assert width_table.get_info("A").length == max(0, int(round(font.getlength("A"))))


def test_default_table_helpers() -> None:
    assert get_width("Hi") == 8
    assert get_widths(["Hi", "§lHi"]) == [8, 10]


def test_concurrent_measurements_with_updates(width_table) -> None:
    def measure(i: int) -> int:
        if i % 10 == 0:
            width_table.add_character(chr(0x2600 + i % 50), 6)
        return width_table.measure("Hello")

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(measure, range(400)))

    assert set(results) == {22}


class MutatingTable(WidthTable):
    """Registers a new width right after the first walk of a measurement."""

    def __init__(self):
        super().__init__(default_width=5, char_spacing=1)
        self.pending = {"♥": 9}

    def _calculate_width(self, text: str) -> int:
        width = super()._calculate_width(text)
        if self.pending:
            widths, self.pending = self.pending, None
            self.add_characters(widths)
        return width


def test_measurement_racing_an_update_is_not_cached() -> None:
    table = MutatingTable()

    # computed with the old default width while the update lands
    assert table.measure("♥♥") == 12
    assert table.get_stats()["cache_entries"] == 0

    assert table.measure("♥♥") == 20
    assert table.measure("♥♥") == 20
    assert table.get_stats()["cache_hits"] == 1


def test_measurement_racing_removal_is_not_cached() -> None:
    table = WidthTable(default_width=5, char_spacing=1, entries={"♦": 9})
    original = table._calculate_width

    def calculate_then_remove(text: str) -> int:
        width = original(text)
        table.remove_characters("♦")
        return width

    table._calculate_width = calculate_then_remove
    assert table.measure("♦") == 10
    table._calculate_width = original
    assert table.measure("♦") == 6


def test_measure_many(width_table) -> None:
    assert width_table.measure_many(["Hi", "", "§lHi"]) == [8, 0, 10]


def test_default_table_cache_helpers() -> None:
    get_width("Hello there")
    stats = get_default_stats()
    assert stats["cache_entries"] >= 1
    assert "entries" in stats

    clear_default_cache()
    assert get_default_stats()["cache_entries"] == 0
