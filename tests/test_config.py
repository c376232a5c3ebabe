import logging

import pytest

from prism_config import (
    AlignmentConfig,
    ColorConfig,
    ConfigurationManager,
    MarkupConfig,
    PrismConfig,
    WidthConfig,
    get_alignment_config,
    get_config,
    legacy_palette,
    register_config_callback,
    reload_config,
    unregister_config_callback,
)


@pytest.fixture()
def fresh_config():
    """Swap in a fresh configuration and restore the previous one afterwards."""
    previous = get_config()
    assert reload_config(PrismConfig())
    yield get_config()
    reload_config(previous)


def test_default_config_is_valid() -> None:
    assert PrismConfig().validate() is True


def test_alignment_config_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        AlignmentConfig(default_limit=-1).validate()
    with pytest.raises(ValueError):
        AlignmentConfig(pad_width=0).validate()
    with pytest.raises(ValueError):
        AlignmentConfig(pad_char="ab").validate()


def test_width_and_markup_config_reject_bad_values() -> None:
    with pytest.raises(ValueError):
        WidthConfig(cache_size=0).validate()
    with pytest.raises(ValueError):
        WidthConfig(default_width=-2).validate()
    with pytest.raises(ValueError):
        MarkupConfig(line_separator="").validate()


def test_color_config_rejects_bad_server_version() -> None:
    with pytest.raises(ValueError):
        ColorConfig(server_version=0).validate()
    assert ColorConfig(server_version=15.2, force_legacy=True).validate() is True


def test_manager_is_a_singleton() -> None:
    assert ConfigurationManager() is ConfigurationManager()


def test_reload_rejects_invalid_config(fresh_config) -> None:
    bad = PrismConfig(alignment=AlignmentConfig(pad_width=-4))
    assert reload_config(bad) is False
    assert get_config() is fresh_config


def test_reload_notifies_callbacks(fresh_config) -> None:
    calls = []

    def callback(old, new):
        calls.append((old, new))

    register_config_callback(callback)
    try:
        new = PrismConfig(alignment=AlignmentConfig(default_limit=100))
        assert reload_config(new) is True
        assert calls == [(fresh_config, new)]
        assert get_alignment_config().default_limit == 100
    finally:
        unregister_config_callback(callback)


def test_failing_callback_does_not_break_reload(fresh_config, caplog) -> None:
    def broken(old, new):
        raise RuntimeError("boom")

    register_config_callback(broken)
    try:
        with caplog.at_level(logging.ERROR, logger="prism_config"):
            assert reload_config(PrismConfig()) is True
        assert "Callback notification failed" in caplog.text
    finally:
        unregister_config_callback(broken)


def test_environment_overrides(fresh_config, monkeypatch) -> None:
    monkeypatch.setenv("PRISM_CENTER_PREFIX", "<center>")
    monkeypatch.setenv("PRISM_CENTER_LIMIT", "120")
    monkeypatch.setenv("PRISM_FORCE_LEGACY", "yes")
    monkeypatch.setenv("PRISM_LINE_SEPARATOR", "\\n")

    assert reload_config() is True
    config = get_config()
    assert config.alignment.center_prefix == "<center>"
    assert config.alignment.default_limit == 120
    assert config.color.force_legacy is True
    assert config.markup.line_separator == "\\n"


def test_invalid_environment_value_is_ignored(fresh_config, monkeypatch, caplog) -> None:
    monkeypatch.setenv("PRISM_CENTER_LIMIT", "wide")

    with caplog.at_level(logging.WARNING, logger="prism_config"):
        assert reload_config() is True
    assert get_config().alignment.default_limit == 154
    assert "PRISM_CENTER_LIMIT" in caplog.text


def test_failed_environment_reload_keeps_current_config(fresh_config, monkeypatch) -> None:
    before = get_config()
    monkeypatch.setenv("PRISM_CENTER_LIMIT", "-5")
    monkeypatch.setenv("PRISM_CENTER_PREFIX", "<mid>")

    assert reload_config() is False
    assert get_config() is before
    assert get_alignment_config().default_limit == 154
    assert get_alignment_config().center_prefix == "[C]"
    assert get_config().validate() is True


def test_environment_reload_hands_callbacks_distinct_configs(fresh_config, monkeypatch) -> None:
    seen = []

    def callback(old, new):
        seen.append((old, new))

    register_config_callback(callback)
    monkeypatch.setenv("PRISM_CENTER_LIMIT", "100")
    try:
        assert reload_config() is True
    finally:
        unregister_config_callback(callback)

    old, new = seen[0]
    assert old is not new
    assert old.alignment.default_limit == 154
    assert new.alignment.default_limit == 100


def test_legacy_palette_order() -> None:
    palette = legacy_palette()
    assert list(palette) == list("0123456789abcdef")
    assert palette["6"] == (255, 170, 0)
    assert palette["f"] == (255, 255, 255)
