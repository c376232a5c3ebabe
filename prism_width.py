#!/usr/bin/env python3
"""
🐧 PNGN Prism - Width Table Module
==================================
Copyright (c) 2025 PNGN-Tec LLC

Pixel Width Calculation System
==============================
Per-character pixel widths of the chat font, providing the foundation for
centering text inside the chat area.

Core Features
=============
- Default widths for Latin letters, digits, punctuation and small caps
- Bold-aware measurement with hidden control sequence skipping
- Thread-safe runtime registration and removal of characters
- LRU cache of measured strings
- Width registration from Pillow fonts

Technical Implementation
========================
- Entries live in an immutable mapping that is swapped on every mutation,
  so readers never take the lock
- Unknown characters fall back to the default width, zero-width characters
  (combining marks, joiners) are detected with wcwidth and measured as 0
- Bold glyphs are one pixel wider, except the space

Measurement Rules
=================
Walking the text, the control character and the character after it are
skipped. That character decides the bold state: 'l' turns bold on, any
other code turns it off. Every other character contributes its normal or
bold width plus the character spacing.

Module Interface
================
- CharacterInfo: Width entry of a single character
- WidthTable: Main class with full features
- get_width(): Measure a string with the default table
- get_widths(): Batch measurement with the default table
- clear_default_cache(): Clear the default table cache

Example Usage
=============
```python
from prism_width import get_width, WidthTable

get_width("Hello")          # 22 (H, e, o are 5 px, l is 1 px, plus 1 px spacing each)
get_width("§lHello")        # 27

table = WidthTable()
table.add_character('♥', 7)
table.measure("♥")          # 8
```
"""

import threading
import logging
from typing import Optional, List, Dict, Union, Iterable, Mapping
from collections import OrderedDict
from dataclasses import dataclass
from types import MappingProxyType

from PIL import ImageFont
from wcwidth import wcwidth

from prism_config import CONTROL_CHAR, BOLD_CODE, get_width_config
from prism_smallcaps import glyph_widths

# Configure logging
logger = logging.getLogger('prism_width')


@dataclass(frozen=True)
class CharacterInfo:
    """Width entry for a single character"""
    char: str
    length: int

    @property
    def bold_length(self) -> int:
        """Width when rendered bold"""
        return self.length + (0 if self.char == ' ' else 1)


# ============================================================================
# DEFAULT WIDTHS
# ============================================================================

# Characters whose width differs from the default of 5
_SPECIAL_WIDTHS = {
    'f': 4, 'I': 3, 'i': 1, 'k': 4, 'l': 1, 't': 4,
    '!': 1, '@': 6, '(': 4, ')': 4, '{': 4, '}': 4, '[': 3, ']': 3,
    ':': 1, ';': 1, '"': 3, "'": 1, '<': 4, '>': 4, '|': 1, '`': 2,
    '.': 1, ',': 1, ' ': 3,
}

_DEFAULT_CHARS = (
    'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    'abcdefghijklmnopqrstuvwxyz'
    '1234567890'
    '!@#$%^&*()-_+={}[]:;"\'<>?/\\|~`., '
)


def default_entries() -> Dict[str, CharacterInfo]:
    """
    Build the default width entries.

    Returns:
        Dictionary mapping character to CharacterInfo, small caps glyphs last
    """
    entries = {c: CharacterInfo(c, _SPECIAL_WIDTHS.get(c, 5)) for c in _DEFAULT_CHARS}
    for glyph, length in glyph_widths().items():
        entries[glyph] = CharacterInfo(glyph, length)
    return entries


class WidthTable:
    """
    Thread-safe pixel width table with measurement caching.

    Attributes:
        stats: Dictionary containing measurement statistics

    Cache Behavior:
    - LRU eviction when size limit reached
    - Cleared whenever an entry is added or removed
    - Thread-safe for concurrent access
    """

    def __init__(self,
                 default_width: Optional[int] = None,
                 char_spacing: Optional[int] = None,
                 cache_size: Optional[int] = None,
                 enable_cache: Optional[bool] = None,
                 entries: Optional[Mapping[str, int]] = None):
        """
        Initialize width table.

        Args:
            default_width: Width of unknown characters (uses config if None)
            char_spacing: Width added after each glyph (uses config if None)
            cache_size: Maximum number of cached strings (uses config if None)
            enable_cache: Whether to cache measurements (uses config if None)
            entries: Extra character widths applied over the defaults
        """
        width_config = get_width_config()
        if default_width is None:
            default_width = width_config.default_width
        if char_spacing is None:
            char_spacing = width_config.char_spacing
        if cache_size is None:
            cache_size = width_config.cache_size
        if enable_cache is None:
            enable_cache = width_config.enable_caching

        if default_width < 0 or char_spacing < 0:
            raise ValueError("Widths must not be negative")

        self.default_width = default_width
        self.char_spacing = char_spacing

        table = default_entries()
        for char, length in (entries or {}).items():
            table[char] = CharacterInfo(char, length)
        self._entries = MappingProxyType(table)
        self._write_lock = threading.Lock()

        # String cache with LRU eviction
        self._string_cache = OrderedDict()
        self._cache_size = max(1, cache_size)
        self._cache_enabled = enable_cache
        self._lock = threading.Lock()
        # Bumped on every cache clear, results computed before a bump are dropped
        self._generation = 0

        # Statistics
        self.stats = {
            'cache_hits': 0,
            'cache_misses': 0,
            'measurements': 0,
            'control_sequences': 0,
            'cache_evictions': 0,
            'unknown_chars': 0,
        }

        logger.info(f"WidthTable initialized with {len(table)} entries, "
                    f"default_width={default_width}, cache_enabled={enable_cache}")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, char: str) -> bool:
        return char in self._entries

    @property
    def entries(self) -> Mapping[str, CharacterInfo]:
        """Read-only snapshot of the current entries"""
        return self._entries

    def get_info(self, char: str) -> CharacterInfo:
        """
        Get the width entry of a character.

        Args:
            char: Single character; anything else gets the default entry

        Returns:
            CharacterInfo, never None
        """
        if not char or len(char) != 1:
            return CharacterInfo('a', self.default_width)

        info = self._entries.get(char)
        if info is not None:
            return info

        self.stats['unknown_chars'] += 1
        if wcwidth(char) == 0:
            return CharacterInfo(char, 0)
        return CharacterInfo(char, self.default_width)

    def add_character(self, char: str, length: int) -> bool:
        """
        Register or replace the width of a character.

        Args:
            char: Single character to register
            length: Pixel width, must not be negative

        Returns:
            True if registered, False if char is not a single character
        """
        if length < 0:
            raise ValueError("Character width must not be negative")
        if not char or len(char) != 1:
            logger.debug(f"Ignoring width entry for {char!r}: not a single character")
            return False

        with self._write_lock:
            table = dict(self._entries)
            table[char] = CharacterInfo(char, length)
            self._entries = MappingProxyType(table)
        self.clear_cache()
        return True

    def add_characters(self, widths: Mapping[str, int]) -> int:
        """Register several characters at once, returns how many were added"""
        valid = {c: w for c, w in widths.items() if c and len(c) == 1}
        if any(w < 0 for w in valid.values()):
            raise ValueError("Character width must not be negative")

        with self._write_lock:
            table = dict(self._entries)
            for char, length in valid.items():
                table[char] = CharacterInfo(char, length)
            self._entries = MappingProxyType(table)
        self.clear_cache()
        return len(valid)

    def remove_characters(self, *chars: str) -> int:
        """
        Remove characters from the table.

        Args:
            chars: Characters to remove

        Returns:
            Number of entries actually removed
        """
        with self._write_lock:
            table = dict(self._entries)
            removed = sum(1 for c in chars if table.pop(c, None) is not None)
            if removed:
                self._entries = MappingProxyType(table)
        if removed:
            self.clear_cache()
        return removed

    def register_font(self, font: ImageFont.ImageFont, characters: Iterable[str],
                      scale: float = 1.0) -> int:
        """
        Register widths measured from a Pillow font.

        Args:
            font: Loaded font (ImageFont.truetype() or load_default())
            characters: Characters to measure
            scale: Multiplier from font pixels to chat pixels

        Returns:
            Number of characters registered
        """
        widths = {}
        for char in characters:
            if not char or len(char) != 1:
                continue
            widths[char] = max(0, int(round(font.getlength(char) * scale)))

        added = self.add_characters(widths)
        logger.info(f"Registered {added} character widths from font")
        return added

    def measure(self, text: str) -> int:
        """
        Measure the pixel width of text.

        Args:
            text: Text with resolved control sequences and no markup

        Returns:
            Total width including character spacing
        """
        if not text:
            return 0

        cached = self._get_cached(text)
        if cached is not None:
            return cached

        with self._lock:
            generation = self._generation

        width = self._calculate_width(text)
        self.stats['measurements'] += 1

        self._cache_result(text, width, generation)
        return width

    def measure_many(self, texts: List[str]) -> List[int]:
        """
        Measure several strings.

        Args:
            texts: Strings to measure

        Returns:
            List of pixel widths
        """
        return [self.measure(text) for text in texts]

    def _calculate_width(self, text: str) -> int:
        """Walk the text and add up glyph widths."""
        size = 0
        previous_code = False
        bold = False

        for char in text:
            if char == CONTROL_CHAR:
                previous_code = True
                continue

            if previous_code:
                previous_code = False
                bold = char.lower() == BOLD_CODE
                self.stats['control_sequences'] += 1
                continue

            info = self.get_info(char)
            size += info.bold_length if bold else info.length
            size += self.char_spacing

        return size

    def _get_cached(self, text: str) -> Optional[int]:
        """Get cached width if available."""
        if not self._cache_enabled:
            return None

        with self._lock:
            if text in self._string_cache:
                # Move to end for LRU
                self._string_cache.move_to_end(text)
                self.stats['cache_hits'] += 1
                return self._string_cache[text]

        self.stats['cache_misses'] += 1
        return None

    def _cache_result(self, text: str, width: int, generation: int):
        """Cache a measurement, evicting the oldest entries when full.

        The result is dropped when the table changed while it was computed.
        """
        if not self._cache_enabled:
            return

        with self._lock:
            if generation != self._generation:
                return
            while len(self._string_cache) >= self._cache_size:
                self._string_cache.popitem(last=False)
                self.stats['cache_evictions'] += 1
            self._string_cache[text] = width

    def clear_cache(self):
        """Clear all cached measurements."""
        with self._lock:
            self._string_cache.clear()
            self._generation += 1

    def get_stats(self) -> Dict[str, Union[int, float]]:
        """
        Get table statistics.

        Returns:
            Dictionary of statistics including:
            - cache_hits / cache_misses / cache_hit_rate
            - measurements: Total uncached measurements
            - control_sequences: Control sequences skipped while measuring
            - cache_evictions: Number of evictions
            - unknown_chars: Lookups that fell back to the default width
            - entries: Current number of width entries
            - cache_entries: Current cache size
        """
        stats = self.stats.copy()

        total_requests = stats['cache_hits'] + stats['cache_misses']
        if total_requests > 0:
            stats['cache_hit_rate'] = stats['cache_hits'] / total_requests
        else:
            stats['cache_hit_rate'] = 0.0

        stats['entries'] = len(self._entries)
        with self._lock:
            stats['cache_entries'] = len(self._string_cache)
            stats['cache_enabled'] = self._cache_enabled

        return stats

    def set_cache_enabled(self, enabled: bool):
        """
        Enable or disable caching at runtime.

        Args:
            enabled: Whether caching should be enabled
        """
        with self._lock:
            self._cache_enabled = enabled
            if not enabled:
                self._string_cache.clear()
                self._generation += 1
                logger.info("Cache disabled and cleared")
            else:
                logger.info("Cache enabled")


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

_default_table = None
_table_lock = threading.Lock()

def get_default_table() -> WidthTable:
    """Get the shared width table, created on first use."""
    global _default_table

    if _default_table is None:
        with _table_lock:
            if _default_table is None:
                _default_table = WidthTable()

    return _default_table


def get_width(text: str) -> int:
    """
    Measure text using the default table.

    Example:
        >>> get_width("Hi")
        8
        >>> get_width("§lHi")
        10
    """
    return get_default_table().measure(text)


def get_widths(texts: List[str]) -> List[int]:
    """Measure several strings using the default table."""
    return get_default_table().measure_many(texts)


def clear_default_cache():
    """Clear the default table's cache."""
    if _default_table is not None:
        _default_table.clear_cache()


def get_default_stats() -> Dict[str, Union[int, float]]:
    """Statistics of the default table, empty if it was never created"""
    if _default_table is not None:
        return _default_table.get_stats()
    return {}
