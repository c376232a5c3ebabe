#!/usr/bin/env python3
"""
🐧 PNGN Prism - Small Caps Module
=================================
Copyright (c) 2025 PNGN-Tec LLC

Bidirectional substitution between the 26 Latin letters and their small
capital glyphs. Accents are removed before substitution (NFKD decomposition
followed by combining-mark removal); that step is lossy and is not undone by
to_normal().

Example Usage
=============
```python
from prism_smallcaps import to_small_caps, to_normal

to_small_caps("Café")   # 'ᴄᴀғᴇ'
to_normal("ᴀʙ")         # 'ab'
```
"""

import unicodedata
from typing import Dict, Tuple

# letter -> (glyph, display length)
SMALL_CAPS: Dict[str, Tuple[str, int]] = {
    'a': ('ᴀ', 5),
    'b': ('ʙ', 5),
    'c': ('ᴄ', 5),
    'd': ('ᴅ', 5),
    'e': ('ᴇ', 5),
    'f': ('ғ', 5),
    'g': ('ɢ', 5),
    'h': ('ʜ', 5),
    'i': ('ɪ', 3),
    'j': ('ᴊ', 5),
    'k': ('ᴋ', 5),
    'l': ('ʟ', 5),
    'm': ('ᴍ', 5),
    'n': ('ɴ', 5),
    'o': ('ᴏ', 5),
    'p': ('ᴘ', 5),
    'q': ('ǫ', 5),
    'r': ('ʀ', 5),
    's': ('s', 5),
    't': ('ᴛ', 5),
    'u': ('ᴜ', 5),
    'v': ('ᴠ', 5),
    'w': ('ᴡ', 5),
    'x': ('x', 5),
    'y': ('ʏ', 5),
    'z': ('ᴢ', 5),
}

_TO_GLYPH = {letter: glyph for letter, (glyph, _) in SMALL_CAPS.items()}
_TO_LETTER = {glyph: letter for letter, (glyph, _) in SMALL_CAPS.items()}


def glyph_widths() -> Dict[str, int]:
    """Glyph -> display length for every small caps glyph"""
    return {glyph: length for glyph, length in SMALL_CAPS.values()}


def strip_accents(text: str) -> str:
    """Decompose the text and drop every combining mark."""
    if not text or not text.strip():
        return text
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(c for c in decomposed if not unicodedata.category(c).startswith('M'))


def is_small_caps(char: str) -> bool:
    """Whether the character is one of the small caps glyphs"""
    return char in _TO_LETTER


def has_small_caps(text: str) -> bool:
    """Whether the text contains at least one small caps glyph"""
    if not text or not text.strip():
        return False
    return any(c in _TO_LETTER for c in text)


def to_small_caps(text: str) -> str:
    """
    Convert every Latin letter to its small caps glyph.

    Args:
        text: Text to convert, accents are stripped first

    Returns:
        Converted text, characters without a glyph are kept as they are
    """
    if not text or not text.strip():
        return text
    return ''.join(_TO_GLYPH.get(c.lower(), c) for c in strip_accents(text))


def to_normal(text: str) -> str:
    """Replace small caps glyphs with their lowercase letters."""
    if not text or not text.strip():
        return text
    return ''.join(_TO_LETTER.get(c, c) for c in text)
