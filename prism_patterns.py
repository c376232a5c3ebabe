#!/usr/bin/env python3
"""
🐧 PNGN Prism - Color Pattern Module
====================================
Copyright (c) 2025 PNGN-Tec LLC

Color Pattern Engine
====================
Rewrites color markup embedded in a message into resolved color tokens.
Every pattern can also strip its own markup, leaving the inner content and
the markup of other patterns untouched.

Supported Markup (default order)
================================
1. Multi-stop gradient   <#ff0000:#00ff00:#0000ff>Text</g>   (or </gradient>)
2. Shorthand gradient    <g:ff0000>Te<g:00ff00>xt</g:0000ff>
3. Shorthand gradient    <#ff0000>Text</#0000ff>
4. Rainbow               <rainbow:100>Text</rainbow>
5. Rainbow               <r:50>Text</r>
6. Single colors         {#ff0000} %#ff0000% [#ff0000] <#ff0000> &xff0000 &#ff0000

All markup is case-insensitive. Legacy codes ('&a', '§l') are left alone by
the patterns and translated to '§' codes at the end of colorize().

Painting
========
A painted span is walked character by character. A control prefix ('&' or
'§') and the character after it form a code pair that is never painted:
formatting pairs accumulate and are repeated after every color token, a reset
pair clears them and color pairs are dropped. Every other character receives
its own color token.

Thread Safety
=============
Patterns are stateless. PatternRegistry swaps an immutable tuple of patterns
under a lock, so apply() and strip() never observe a partial registration.
"""

import re
import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union

from prism_config import (
    CONTROL_CHAR,
    ALT_CONTROL_CHAR,
    FORMAT_CODES,
    RESET_CODE,
    RGBColor,
    get_color_config,
)
from prism_color import (
    legacy_mode,
    resolve,
    parse_hex,
    gradient_colors,
    hsb_to_rgb,
    strip_bukkit,
    strip_special,
    translate_alternate_codes,
)

# Configure logging
logger = logging.getLogger('prism_patterns')

_HEX = r'[a-f\d]{6}'

# (format codes active before the char, visible char)
PaintUnit = Tuple[str, str]


# ============================================================================
# PAINTING
# ============================================================================

def paint_units(text: str) -> List[PaintUnit]:
    """
    Split a span into the characters that receive a color.

    Args:
        text: Span to walk

    Returns:
        List of (active format codes, character) pairs
    """
    units = []
    specials = ''
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char in (CONTROL_CHAR, ALT_CONTROL_CHAR) and i + 1 < length:
            code = text[i + 1]
            if code.lower() == RESET_CODE:
                specials = ''
            elif code.lower() in FORMAT_CODES:
                specials += char + code
            i += 2
            continue
        units.append((specials, char))
        i += 1

    return units


def visible_length(text: str) -> int:
    """Number of characters of the span that receive a color"""
    if not text:
        return 0
    return len(paint_units(text))


def _paint(units: Sequence[PaintUnit], colors, legacy: bool) -> str:
    parts = []
    for (specials, char), rgb in zip(units, colors):
        parts.append(str(resolve(tuple(int(c) for c in rgb), legacy)))
        parts.append(specials)
        parts.append(char)
    return ''.join(parts)


def split_parts(sequence: Sequence, parts: int) -> List:
    """
    Split a sequence into consecutive parts, larger parts first.

    Each part takes ceil(remaining / remaining parts) items, so 'ABCDE' in
    two parts gives 'ABC' and 'DE'.

    Args:
        sequence: String or list to split
        parts: Number of parts

    Returns:
        List of slices, some may be empty when the sequence is short
    """
    if parts < 2:
        return [sequence]

    result = []
    start = 0
    length = len(sequence)
    for i in range(parts):
        size = -(-(length - start) // (parts - i))
        result.append(sequence[start:start + size])
        start += size
    return result


def apply_gradient(text: str, start: RGBColor, end: RGBColor, legacy: bool) -> str:
    """
    Paint a span with a two anchor gradient.

    Args:
        text: Span to paint
        start: Color of the first visible character
        end: Color the last visible character moves towards
        legacy: Degrade colors to the legacy palette

    Returns:
        Painted span, or the span unchanged when it has fewer than two
        visible characters
    """
    if not text or not text.strip():
        return text

    units = paint_units(text)
    if len(units) <= 1:
        return text
    return _paint(units, gradient_colors(start, end, len(units)), legacy)


def apply_rainbow(text: str, saturation: float, legacy: bool) -> str:
    """
    Paint a span with a full hue sweep.

    Character i of L gets hue i / L; saturation is also used as brightness.

    Args:
        text: Span to paint
        saturation: 0.0 to 1.0
        legacy: Degrade colors to the legacy palette

    Returns:
        Painted span, unchanged when it has no visible characters
    """
    if not text or not text.strip():
        return text

    units = paint_units(text)
    if not units:
        return text

    count = len(units)
    colors = [hsb_to_rgb(i / count, saturation, saturation) for i in range(count)]
    return _paint(units, colors, legacy)


def parse_saturation(value: str) -> Optional[float]:
    """
    Read a rainbow saturation.

    Values up to 1 are fractions, larger values are percents.

    Returns:
        Saturation between 0.0 and 1.0, None when out of range
    """
    try:
        saturation = float(value)
    except (TypeError, ValueError):
        return None
    if saturation > 1:
        saturation /= 100
    if not 0 <= saturation <= 1:
        return None
    return saturation


# ============================================================================
# PATTERNS
# ============================================================================

class ColorPattern(ABC):
    """
    Base class for every color markup.

    Subclasses rewrite their own markup in apply() and remove it in strip().
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def apply(self, text: str, legacy: bool) -> str:
        """Replace this pattern's markup with resolved color tokens."""

    @abstractmethod
    def strip(self, text: str) -> str:
        """Remove this pattern's markup, keeping the inner content."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class SingleColorPattern(ColorPattern):
    """One hex color notation, the first group holds the hex digits"""

    def __init__(self, name: str, regex: str):
        super().__init__(name)
        self.pattern = re.compile(regex, re.IGNORECASE)

    def apply(self, text: str, legacy: bool) -> str:
        if not text:
            return text

        def replace(match):
            rgb = parse_hex(match.group(1))
            if rgb is None:
                logger.debug(f"Skipping invalid color {match.group(0)!r}")
                return match.group(0)
            return str(resolve(rgb, legacy))

        return self.pattern.sub(replace, text)

    def strip(self, text: str) -> str:
        if not text:
            return text
        return self.pattern.sub('', text)


class MultiStopGradientPattern(ColorPattern):
    """
    Gradient through any number of anchors.

    The content is split in one part per pair of adjacent anchors. Each part
    after the first borrows the last character of the previous part so the
    ramp is continuous, and that borrowed character is not painted twice.
    """

    def __init__(self):
        super().__init__('multi_gradient')
        self.pattern = re.compile(
            rf'<(#{_HEX}(?::#{_HEX})+)>(.+?)</g(?:radient)?>', re.IGNORECASE
        )

    def _render(self, anchors: List[RGBColor], body: str, legacy: bool) -> str:
        count = len(anchors) - 1
        parts = split_parts(paint_units(body), count)
        result = []

        for i, part in enumerate(parts):
            units = list(part)
            joint = i > 0 and len(parts[i - 1]) > 0
            if joint:
                units.insert(0, parts[i - 1][-1])

            if len(units) <= 1:
                # Too short for a ramp, emitted unpainted
                if not joint:
                    result.extend(specials + char for specials, char in units)
                continue

            colors = gradient_colors(anchors[i], anchors[i + 1], len(units))
            if joint:
                # The borrowed character was already painted by the previous part
                units, colors = units[1:], colors[1:]
            result.append(_paint(units, colors, legacy))

        return ''.join(result)

    def apply(self, text: str, legacy: bool) -> str:
        if not text:
            return text

        def replace(match):
            anchors = [parse_hex(value) for value in match.group(1).split(':')]
            if any(rgb is None for rgb in anchors):
                logger.debug(f"Skipping gradient with invalid anchor {match.group(1)!r}")
                return match.group(0)
            return self._render(anchors, match.group(2), legacy)

        return self.pattern.sub(replace, text)

    def strip(self, text: str) -> str:
        if not text:
            return text
        return self.pattern.sub(lambda m: m.group(2), text)


class GradientPattern(ColorPattern):
    """
    Shorthand gradient: <PREFIXhex>text</PREFIXhex>.

    Stops written as <PREFIXhex> inside the text start a new sub-gradient.
    Sub-gradients are independent, no character is shared between them.
    """

    def __init__(self, prefix: str):
        super().__init__(f'gradient:{prefix}')
        self.prefix = prefix
        escaped = re.escape(prefix)
        self.pattern = re.compile(
            rf'<{escaped}({_HEX})>(.+?)</{escaped}({_HEX})>', re.IGNORECASE
        )
        self.stop = re.compile(rf'<{escaped}({_HEX})>', re.IGNORECASE)
        self.splitter = re.compile(rf'<{escaped}{_HEX}>', re.IGNORECASE)

    def apply(self, text: str, legacy: bool) -> str:
        if not text:
            return text

        def replace(match):
            body = match.group(2)
            ids = [match.group(1)] + self.stop.findall(body) + [match.group(3)]
            anchors = [parse_hex(value) for value in ids]
            if any(rgb is None for rgb in anchors):
                logger.debug(f"Skipping gradient with invalid stop in {match.group(0)!r}")
                return match.group(0)

            pieces = self.splitter.split(body)
            return ''.join(
                apply_gradient(piece, anchors[i], anchors[i + 1], legacy)
                for i, piece in enumerate(pieces)
            )

        return self.pattern.sub(replace, text)

    def strip(self, text: str) -> str:
        if not text:
            return text
        return self.pattern.sub(lambda m: self.splitter.sub('', m.group(2)), text)


class RainbowPattern(ColorPattern):
    """Rainbow sweep: <PREFIX:saturation>text</PREFIX>"""

    def __init__(self, prefix: str):
        super().__init__(f'rainbow:{prefix}')
        self.prefix = prefix
        escaped = re.escape(prefix)
        self.pattern = re.compile(
            rf'<{escaped}:(\d{{1,3}}(?:\.\d+)?)>(.+?)</{escaped}>', re.IGNORECASE
        )

    def apply(self, text: str, legacy: bool) -> str:
        if not text:
            return text

        def replace(match):
            saturation = parse_saturation(match.group(1))
            if saturation is None:
                logger.debug(f"Skipping rainbow with invalid saturation {match.group(1)!r}")
                return match.group(0)
            return apply_rainbow(match.group(2), saturation, legacy)

        return self.pattern.sub(replace, text)

    def strip(self, text: str) -> str:
        if not text:
            return text
        return self.pattern.sub(lambda m: m.group(2), text)


def default_patterns() -> List[ColorPattern]:
    """Built-in patterns in the order they are applied"""
    return [
        MultiStopGradientPattern(),
        GradientPattern('g:'),
        GradientPattern('#'),
        RainbowPattern('rainbow'),
        RainbowPattern('r'),
        SingleColorPattern('hex:braces', rf'\{{#({_HEX})\}}'),
        SingleColorPattern('hex:percent', rf'%#({_HEX})%'),
        SingleColorPattern('hex:brackets', rf'\[#({_HEX})\]'),
        SingleColorPattern('hex:angle', rf'<#({_HEX})>'),
        SingleColorPattern('hex:bungee', rf'&x({_HEX})'),
        SingleColorPattern('hex:plain', rf'&?#({_HEX})'),
    ]


# ============================================================================
# REGISTRY
# ============================================================================

class PatternRegistry:
    """
    Ordered, thread-safe collection of color patterns.

    Args:
        patterns: Initial patterns, the built-in ones when omitted
    """

    def __init__(self, patterns: Optional[Sequence[ColorPattern]] = None):
        self._lock = threading.Lock()
        self._patterns: Tuple[ColorPattern, ...] = tuple(
            default_patterns() if patterns is None else patterns
        )
        logger.info(f"PatternRegistry initialized with {len(self._patterns)} patterns")

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns)

    @property
    def patterns(self) -> Tuple[ColorPattern, ...]:
        return self._patterns

    def get(self, name: str) -> Optional[ColorPattern]:
        for pattern in self._patterns:
            if pattern.name == name:
                return pattern
        return None

    def register(self, pattern: ColorPattern, index: Optional[int] = None) -> bool:
        """
        Add a pattern.

        Args:
            pattern: Pattern to add
            index: Position in the application order, appended when None

        Returns:
            False if a pattern with the same name is already registered
        """
        with self._lock:
            if any(p.name == pattern.name for p in self._patterns):
                return False
            patterns = list(self._patterns)
            if index is None:
                patterns.append(pattern)
            else:
                patterns.insert(index, pattern)
            self._patterns = tuple(patterns)

        logger.debug(f"Registered color pattern {pattern.name!r}")
        return True

    def unregister(self, pattern: Union[str, ColorPattern]) -> bool:
        """Remove a pattern by name or instance, False if it was not registered"""
        name = pattern if isinstance(pattern, str) else pattern.name
        with self._lock:
            remaining = tuple(p for p in self._patterns if p.name != name)
            if len(remaining) == len(self._patterns):
                return False
            self._patterns = remaining

        logger.debug(f"Unregistered color pattern {name!r}")
        return True

    def apply(self, text: str, legacy: bool) -> str:
        """Run every pattern over the text, in order"""
        if not text:
            return text
        for pattern in self._patterns:
            text = pattern.apply(text, legacy)
        return text

    def strip(self, text: str) -> str:
        """Remove the markup of every pattern"""
        if not text:
            return text
        for pattern in self._patterns:
            text = pattern.strip(text)
        return text


# ============================================================================
# MODULE LEVEL API
# ============================================================================

_default_registry: Optional[PatternRegistry] = None
_registry_lock = threading.Lock()


def get_default_registry() -> PatternRegistry:
    """Get or create the shared pattern registry"""
    global _default_registry

    if _default_registry is None:
        with _registry_lock:
            if _default_registry is None:
                _default_registry = PatternRegistry()

    return _default_registry


def colorize(text: str, legacy: Optional[bool] = None,
             registry: Optional[PatternRegistry] = None) -> str:
    """
    Resolve all color markup of a message.

    Args:
        text: Message with color markup
        legacy: Degrade colors to the legacy palette, from config when None
        registry: Patterns to apply, the shared registry when None

    Returns:
        Text where every color is a '§' control sequence
    """
    if not text:
        return text
    if legacy is None:
        color = get_color_config()
        legacy = legacy_mode(color.server_version, force=color.force_legacy)
    if registry is None:
        registry = get_default_registry()
    return translate_alternate_codes(registry.apply(text, legacy))


def strip_rgb(text: str, registry: Optional[PatternRegistry] = None) -> str:
    """Remove every pattern's markup, legacy codes are kept"""
    if registry is None:
        registry = get_default_registry()
    return registry.strip(text)


def strip_all(text: str, registry: Optional[PatternRegistry] = None) -> str:
    """
    Remove all color markup and legacy codes.

    Pattern markup goes first so '&xff0000' and '&#ff0000' are removed
    whole instead of leaving their hex digits behind.
    """
    if not text:
        return text
    return strip_special(strip_bukkit(strip_rgb(text, registry)))
