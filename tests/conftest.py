"""Test harness configuration.

The modules live at the repository root. Put it first on sys.path so the
tests import the in-repo code even without an editable install.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = str(Path(__file__).resolve().parents[1])
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture()
def width_table():
    from prism_width import WidthTable

    return WidthTable(default_width=5, char_spacing=1, cache_size=64, enable_cache=True)


@pytest.fixture()
def patterns():
    from prism_patterns import PatternRegistry

    return PatternRegistry()


@pytest.fixture()
def formats():
    from prism_formats import FormatRegistry

    return FormatRegistry()


@pytest.fixture()
def engine(width_table, patterns, formats):
    from prism_config import PrismConfig
    from prism_engine import TextEngine

    return TextEngine(PrismConfig(), width_table, patterns, formats)
