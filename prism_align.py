#!/usr/bin/env python3
"""
🐧 PNGN Prism - Alignment Module
================================
Copyright (c) 2025 PNGN-Tec LLC

Centers chat lines by prepending spaces. A line is centered only when it
starts with the center marker ('[C]' by default).

Algorithm
=========
1. Remove the marker from the line.
2. Build a measuring copy: pattern markup, color codes and click/hover tags
   are removed, content formats are applied so small caps are measured as
   glyphs, and '&' formatting codes become '§' codes.
3. Measure the copy with the width table (bold aware, one pixel of spacing
   per character).
4. Padding covers limit - width // 2, one space every 4 pixels.

The padding is prepended to the styled line, so colors and tags survive.
"""

import logging
import threading
from typing import Optional

from prism_config import AlignmentConfig, get_alignment_config
from prism_color import strip_bukkit, translate_alternate_codes
from prism_patterns import PatternRegistry, get_default_registry, strip_rgb
from prism_formats import FormatRegistry, get_default_formats
from prism_markup import remove_tags
from prism_width import WidthTable, get_default_table

# Configure logging
logger = logging.getLogger('prism_align')


class StringAligner:
    """
    Centering engine.

    Args:
        width_table: Character widths, a new default table when None
        patterns: Color patterns to strip, a new default registry when None
        formats: Content formats to apply, a new default registry when None
        config: Marker, limit and padding settings, from config when None
    """

    def __init__(self,
                 width_table: Optional[WidthTable] = None,
                 patterns: Optional[PatternRegistry] = None,
                 formats: Optional[FormatRegistry] = None,
                 config: Optional[AlignmentConfig] = None):
        self.width_table = width_table if width_table is not None else WidthTable()
        self.patterns = patterns if patterns is not None else PatternRegistry()
        self.formats = formats if formats is not None else FormatRegistry()
        self.config = config if config is not None else get_alignment_config()
        self.config.validate()

    def is_centered(self, text: str) -> bool:
        prefix = self.config.center_prefix
        return bool(text) and bool(prefix) and text.startswith(prefix)

    def strip_for_measure(self, text: str) -> str:
        """
        Reduce a line to the characters that take space, keeping '§'
        formatting codes so bold text is measured wider.
        """
        if not text or not text.strip():
            return text
        text = strip_rgb(text, self.patterns)
        text = strip_bukkit(text)
        text = remove_tags(text)
        text = self.formats.apply_all(text)
        return translate_alternate_codes(text)

    def padding(self, limit: int, text: str) -> str:
        """
        Spaces needed to center an unmarked text.

        Args:
            limit: Half of the chat width in pixels
            text: Styled text

        Returns:
            Padding string, empty when the text is wider than the area
        """
        width = self.width_table.measure(self.strip_for_measure(text))
        to_compensate = limit - width // 2

        pad_width = self.config.pad_width
        count = max(0, -(-to_compensate // pad_width))
        return self.config.pad_char * count

    def center(self, text: str, limit: Optional[int] = None) -> str:
        """
        Center a marked line.

        Args:
            text: Line, centered only when it starts with the marker
            limit: Half of the chat width in pixels, config default when None

        Returns:
            Padded line without the marker, or the text unchanged
        """
        if not text or not text.strip() or not self.is_centered(text):
            return text

        if limit is None:
            limit = self.config.default_limit

        line = text.replace(self.config.center_prefix, '')
        pad = self.padding(limit, line)
        logger.debug(f"Centering line with {len(pad)} pad chars (limit {limit})")
        return pad + line


_default_aligner: Optional[StringAligner] = None
_aligner_lock = threading.Lock()


def get_default_aligner() -> StringAligner:
    """Get or create the aligner over the shared table and registries"""
    global _default_aligner

    if _default_aligner is None:
        with _aligner_lock:
            if _default_aligner is None:
                _default_aligner = StringAligner(get_default_table(), get_default_registry(),
                                                 get_default_formats())

    return _default_aligner


def center_pad(limit: int, text: str) -> str:
    """
    Center a marked line with the shared aligner.

    Example:
        >>> center_pad(10, "[C]Hi")
        '  Hi'
    """
    return get_default_aligner().center(text, limit)
