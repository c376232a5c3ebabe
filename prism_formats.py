#!/usr/bin/env python3
"""
🐧 PNGN Prism - Content Formats Module
======================================
Copyright (c) 2025 PNGN-Tec LLC

Content formats are tags that change the characters of a message before it
is colored or measured:

- SMALL_CAPS: <small_caps>text</small_caps> or <sc>text</sc>
- CHARACTER:  <U:00e9> becomes the character with that code point

Formats are kept in a FormatRegistry under case-insensitive ids so callers
can add their own, replace the built-in ones or drop them.
"""

import re
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from prism_smallcaps import to_small_caps

# Configure logging
logger = logging.getLogger('prism_formats')


# ============================================================================
# FORMATS
# ============================================================================

class ContentFormat(ABC):
    """A tag that rewrites the text it wraps"""

    regex: str = ''

    def __init__(self):
        self.pattern = re.compile(self.regex)

    def is_formatted(self, text: str) -> bool:
        """Whether the text contains this format's tag"""
        if not text:
            return False
        return self.pattern.search(text) is not None

    @abstractmethod
    def apply(self, text: str) -> str:
        """Replace each tag with its formatted content."""

    def remove(self, text: str) -> str:
        """Remove the tags, defaults to applying them"""
        return self.apply(text)


# Color codes, hex literals and tags kept as written inside small caps
_INLINE_MARKUP = re.compile(
    r'[&§]x[\da-f]{6}|[&§][\da-fk-orx]|<[^<>]*>|[{\[%]#[\da-f]{6}[}\]%]|#[\da-f]{6}',
    re.IGNORECASE
)


def small_caps_outside_markup(text: str) -> str:
    """Convert text to small caps, leaving inline color markup untouched"""
    parts = []
    last_end = 0
    for match in _INLINE_MARKUP.finditer(text):
        parts.append(to_small_caps(text[last_end:match.start()]))
        parts.append(match.group(0))
        last_end = match.end()
    parts.append(to_small_caps(text[last_end:]))
    return ''.join(parts)


class SmallCapsFormat(ContentFormat):
    regex = r'(?i)<(small_caps|sc)>(.+?)</(small_caps|sc)>'

    def apply(self, text: str) -> str:
        if not text or not text.strip():
            return text
        return self.pattern.sub(lambda m: small_caps_outside_markup(m.group(2)), text)

    def remove(self, text: str) -> str:
        if not text or not text.strip():
            return text
        return self.pattern.sub(lambda m: m.group(2), text)


class CharacterFormat(ContentFormat):
    regex = r'<[Uu]:([a-fA-F\d]{4})>'

    def apply(self, text: str) -> str:
        if not text or not text.strip():
            return text
        return self.pattern.sub(lambda m: chr(int(m.group(1), 16)), text)


def default_formats() -> Dict[str, ContentFormat]:
    return {
        'SMALL_CAPS': SmallCapsFormat(),
        'CHARACTER': CharacterFormat(),
    }


# ============================================================================
# REGISTRY
# ============================================================================

class FormatRegistry:
    """
    Thread-safe mapping of format id to ContentFormat.

    Ids are case-insensitive. Formats are applied in registration order.
    """

    def __init__(self, formats: Optional[Dict[str, ContentFormat]] = None):
        self._lock = threading.Lock()
        initial = default_formats() if formats is None else formats
        self._formats: Dict[str, ContentFormat] = {
            key.upper(): value for key, value in initial.items()
        }

    def __len__(self) -> int:
        return len(self._formats)

    def __contains__(self, format_id: str) -> bool:
        return format_id.upper() in self._formats

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._formats)

    def get(self, format_id: str) -> Optional[ContentFormat]:
        return self._formats.get(format_id.upper())

    def load(self, format_id: str, content_format: ContentFormat) -> bool:
        """
        Register a format unless the id is taken.

        Returns:
            True if the format was added
        """
        key = format_id.upper()
        with self._lock:
            if key in self._formats:
                return False
            formats = dict(self._formats)
            formats[key] = content_format
            self._formats = formats

        logger.debug(f"Loaded content format {key}")
        return True

    def remove(self, format_id: str) -> bool:
        key = format_id.upper()
        with self._lock:
            if key not in self._formats:
                return False
            formats = dict(self._formats)
            del formats[key]
            self._formats = formats

        logger.debug(f"Removed content format {key}")
        return True

    def replace(self, format_id: str, content_format: ContentFormat) -> bool:
        """Swap the format of an existing id, False if the id is unknown"""
        key = format_id.upper()
        with self._lock:
            if key not in self._formats:
                return False
            formats = dict(self._formats)
            formats[key] = content_format
            self._formats = formats
        return True

    def rename(self, old_id: str, new_id: str) -> bool:
        """Move a format to a new id, False if the old id is unknown or the new one taken"""
        old_key, new_key = old_id.upper(), new_id.upper()
        with self._lock:
            if old_key not in self._formats or new_key in self._formats:
                return False
            formats = dict(self._formats)
            formats[new_key] = formats.pop(old_key)
            self._formats = formats
        return True

    def apply_all(self, text: str) -> str:
        if not text:
            return text
        for content_format in self._formats.values():
            text = content_format.apply(text)
        return text

    def remove_all(self, text: str) -> str:
        if not text:
            return text
        for content_format in self._formats.values():
            text = content_format.remove(text)
        return text


_default_formats: Optional[FormatRegistry] = None
_formats_lock = threading.Lock()


def get_default_formats() -> FormatRegistry:
    """Get or create the shared format registry"""
    global _default_formats

    if _default_formats is None:
        with _formats_lock:
            if _default_formats is None:
                _default_formats = FormatRegistry()

    return _default_formats
