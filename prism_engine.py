#!/usr/bin/env python3
"""
🐧 PNGN Prism - Text Engine
===========================
Copyright (c) 2025 PNGN-Tec LLC

Pipeline facade tying the width table, the color patterns, the content
formats, the aligner and the markup parser together.

Pipeline
========
raw message
  -> legacy syntax normalization ('hover=[x]' -> 'hover:"x"')
  -> content formats (small caps, unicode escapes)
  -> centering (lines starting with the center marker)
  -> markup segments (click / hover / URLs, color propagation)
  -> color patterns per segment (legacy or RGB tokens)

Outputs
=======
- render(): one fully resolved string, tags replaced by their content
- compile(): StyledSegment list with resolved content and hover lines
- to_ansi(): render() lowered to ANSI escape sequences

Example Usage
=============
```python
from prism_engine import create_engine

engine = create_engine()
print(engine.to_ansi("[C]<#ff0000:#0000ff>Welcome!</g>"))
segments = engine.compile('<hover:"Line 1<n>Line 2">&eHover me</text>')
```
"""

import time
import logging
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

from prism_config import PrismConfig, get_config
from prism_color import end_color, legacy_mode, to_ansi
from prism_patterns import PatternRegistry, colorize, strip_all
from prism_formats import FormatRegistry
from prism_markup import (
    ClickAction,
    MarkupParser,
    StyledSegment,
    normalize_legacy_syntax,
)
from prism_align import StringAligner
from prism_width import WidthTable

logger = logging.getLogger('PRISM.Engine')

# Click arguments that are addresses, never colorized
_RAW_ARGUMENTS = (ClickAction.OPEN_URL, ClickAction.OPEN_FILE)


class TextEngine:
    """
    Message formatting pipeline.

    Args:
        config: Engine configuration, the managed configuration when None
        width_table: Character widths, built from config.width when None
        patterns: Color patterns, a new default registry when None
        formats: Content formats, a new default registry when None
    """

    def __init__(self,
                 config: Optional[PrismConfig] = None,
                 width_table: Optional[WidthTable] = None,
                 patterns: Optional[PatternRegistry] = None,
                 formats: Optional[FormatRegistry] = None):
        self.config = config if config is not None else get_config()
        self.config.validate()

        if self.config.debug_mode:
            logger.setLevel(logging.DEBUG)

        width = self.config.width
        self.width_table = width_table if width_table is not None else WidthTable(
            default_width=width.default_width,
            char_spacing=width.char_spacing,
            cache_size=width.cache_size,
            enable_cache=width.enable_caching,
        )
        self.patterns = patterns if patterns is not None else PatternRegistry()
        self.formats = formats if formats is not None else FormatRegistry()

        self.aligner = StringAligner(self.width_table, self.patterns, self.formats,
                                     self.config.alignment)
        self.parser = MarkupParser(self.config.markup.line_separator,
                                   self.config.markup.detect_urls)

        self._stats_lock = threading.Lock()
        self._stats = {
            'messages_rendered': 0,
            'messages_compiled': 0,
            'segments_compiled': 0,
            'total_time': 0.0,
        }

        logger.info(f"TextEngine initialized: {len(self.patterns)} patterns, "
                    f"{len(self.formats)} formats, {len(self.width_table)} characters")

    # ------------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------------

    def is_legacy(self, client_version: Optional[int] = None) -> bool:
        """Whether colors must be degraded for this client (minor version)"""
        color = self.config.color
        return legacy_mode(color.server_version, client_version, color.force_legacy)

    def colorize(self, text: str, legacy: Optional[bool] = None) -> str:
        if legacy is None:
            legacy = self.is_legacy()
        return colorize(text, legacy, self.patterns)

    def strip_all(self, text: str) -> str:
        return strip_all(text, self.patterns)

    def center(self, text: str, limit: Optional[int] = None) -> str:
        return self.aligner.center(text, limit)

    def prepare(self, message: str, limit: Optional[int] = None) -> str:
        """
        Run the text stages that come before segmentation.

        Args:
            message: Raw message
            limit: Centering limit, config default when None

        Returns:
            Normalized, formatted and (if marked) centered message
        """
        if not message:
            return message
        text = normalize_legacy_syntax(message)
        text = self.formats.apply_all(text)
        return self.center(text, limit)

    def parse(self, message: str, limit: Optional[int] = None) -> List[StyledSegment]:
        """Prepared message split into segments, colors still as markup"""
        return self.parser.parse(self.prepare(message, limit))

    def split_lines(self, text: str) -> List[str]:
        return self.parser.split_lines(text)

    # ------------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------------

    def render(self, message: str, legacy: Optional[bool] = None,
               limit: Optional[int] = None) -> str:
        """
        Fully resolved string.

        Args:
            message: Raw message
            legacy: Color mode, from config when None
            limit: Centering limit, config default when None

        Returns:
            Text with tags replaced by their content and resolved colors
        """
        if not message:
            return message

        start = time.perf_counter()
        text = self.parser.remove_format(self.prepare(message, limit))
        result = self.colorize(text, legacy)

        with self._stats_lock:
            self._stats['messages_rendered'] += 1
            self._stats['total_time'] += time.perf_counter() - start
        return result

    def compile(self, message: str, legacy: Optional[bool] = None,
                limit: Optional[int] = None) -> List[StyledSegment]:
        """
        Segments with resolved colors.

        Content, hover lines and command arguments are colorized; URL and
        file arguments are kept as written.

        Args:
            message: Raw message
            legacy: Color mode, from config when None
            limit: Centering limit, config default when None

        Returns:
            Ordered list of resolved segments
        """
        if legacy is None:
            legacy = self.is_legacy()

        start = time.perf_counter()
        compiled = []
        for segment in self.parse(message, limit):
            content = self.colorize(segment.content, legacy)
            resolved = replace(segment, content=content, trailing_color=end_color(content))

            if segment.hover_lines:
                resolved = replace(resolved, hover_lines=tuple(
                    self.colorize(line, legacy) for line in segment.hover_lines
                ))
            if segment.click is not None and segment.click.action not in _RAW_ARGUMENTS:
                resolved = resolved.with_click(segment.click.action,
                                               self.colorize(segment.click.argument, legacy))
            compiled.append(resolved)

        with self._stats_lock:
            self._stats['messages_compiled'] += 1
            self._stats['segments_compiled'] += len(compiled)
            self._stats['total_time'] += time.perf_counter() - start
        return compiled

    def to_ansi(self, message: str, legacy: Optional[bool] = None,
                limit: Optional[int] = None) -> str:
        """render() output as ANSI escape sequences for terminals"""
        return to_ansi(self.render(message, legacy, limit))

    def get_stats(self) -> Dict[str, Any]:
        """Pipeline counters plus width cache statistics"""
        with self._stats_lock:
            stats: Dict[str, Any] = dict(self._stats)

        stats['legacy'] = self.is_legacy()
        stats['patterns'] = [pattern.name for pattern in self.patterns]
        stats['formats'] = list(self.formats.ids)
        stats['width_cache'] = self.width_table.get_stats()
        return stats


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_engine(config: Optional[PrismConfig] = None, **overrides) -> TextEngine:
    """Factory function for engine creation, overrides go to TextEngine"""
    return TextEngine(config=config, **overrides)
