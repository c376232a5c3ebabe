#!/usr/bin/env python3
"""
🐧 PNGN Prism - Color Resolver Module
=====================================
Copyright (c) 2025 PNGN-Tec LLC

Color Resolution System
=======================
Converts RGB colors into the best color token a client can display and
provides the low level color code utilities shared by the pattern engine,
the markup parser and the aligner.

Core Features
=============
- Modern mode: exact 24-bit RGB tokens
- Legacy mode: nearest of the 16 palette colors (squared RGB distance)
- Gradient ramps with integer step truncation
- HSB to RGB conversion for rainbow sweeps
- Legacy code translation, stripping and last color lookup
- ANSI rendering of resolved text for terminals and logs

Token Format
============
Legacy tokens are the control character plus one code ('§c'). RGB tokens use
the hex form: '§x' followed by each of the six hex digits prefixed with the
control character ('§x§f§f§0§0§0§0').

Tie Breaking
============
When two palette colors are at the same distance the first one in palette
declaration order wins (numpy.argmin returns the first minimum).

Module Interface
================
- ColorToken: Immutable resolved color
- resolve(): RGB + mode to ColorToken
- from_hex(): Hex string + mode to ColorToken
- gradient_colors(): Integer RGB ramp between two anchors
- hsb_to_rgb(): Hue/saturation/brightness to RGB
- to_ansi(): Resolved text to ANSI escape sequences
"""

import re
import colorsys
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import ImageColor

from prism_config import (
    CONTROL_CHAR,
    ALT_CONTROL_CHAR,
    COLOR_CODES,
    FORMAT_CODES,
    RESET_CODE,
    HEX_CODE,
    LEGACY_16_COLORS,
    FORMAT_ANSI,
    ANSI_RESET,
    CLIENT_PROTOCOLS,
    LEGACY_CLIENT_VERSION,
    RGB_SERVER_VERSION,
    RGBColor,
)

# Configure logging
logger = logging.getLogger('prism_color')

# Palette as arrays for vectorized nearest color search
_PALETTE_CODES = list(LEGACY_16_COLORS.keys())
_PALETTE_RGB = np.array([entry['rgb'] for entry in LEGACY_16_COLORS.values()], dtype=np.int64)


# ============================================================================
# COLOR TOKEN
# ============================================================================

@dataclass(frozen=True)
class ColorToken:
    """
    Resolved color: either a legacy code or an RGB triple.

    Legacy formatting codes (bold, italic...) are also represented with
    ``code`` so the last directive of a text can always be carried over.
    """
    code: Optional[str] = None
    rgb: Optional[RGBColor] = None

    def __post_init__(self):
        if (self.code is None) == (self.rgb is None):
            raise ValueError("ColorToken needs exactly one of code or rgb")

    @property
    def is_legacy(self) -> bool:
        return self.code is not None

    @property
    def hex(self) -> Optional[str]:
        """Six lowercase hex digits of an RGB token"""
        if self.rgb is None:
            return None
        return '%02x%02x%02x' % self.rgb

    def __str__(self) -> str:
        if self.code is not None:
            return CONTROL_CHAR + self.code
        return CONTROL_CHAR + HEX_CODE + ''.join(CONTROL_CHAR + d for d in self.hex)

    def to_markup(self) -> str:
        """User facing form, parsed back by the color patterns"""
        if self.code is not None:
            return ALT_CONTROL_CHAR + self.code
        return ALT_CONTROL_CHAR + '#' + self.hex

    def to_ansi(self) -> str:
        """ANSI escape sequence for this token"""
        if self.rgb is not None:
            return rgb_to_ansi(self.rgb)
        if self.code in LEGACY_16_COLORS:
            return LEGACY_16_COLORS[self.code]['ansi']
        return FORMAT_ANSI.get(self.code, '')


def rgb_to_ansi(rgb: RGBColor) -> str:
    """Convert RGB tuple to ANSI color code"""
    r, g, b = rgb
    return f"\033[38;2;{r};{g};{b}m"


# ============================================================================
# RESOLUTION
# ============================================================================

def parse_hex(value: str) -> Optional[RGBColor]:
    """
    Parse a six digit hex color.

    Args:
        value: Hex digits with or without a leading '#'

    Returns:
        RGB tuple, or None when the value is not a valid six digit color
    """
    if not value:
        return None
    digits = value[1:] if value.startswith('#') else value
    if len(digits) != 6:
        return None
    try:
        return ImageColor.getrgb('#' + digits)
    except ValueError:
        logger.debug(f"Invalid hex color: {value!r}")
        return None


def closest_legacy(rgb: RGBColor) -> ColorToken:
    """Nearest palette color by squared Euclidean distance."""
    distances = ((_PALETTE_RGB - np.asarray(rgb, dtype=np.int64)) ** 2).sum(axis=1)
    return ColorToken(code=_PALETTE_CODES[int(np.argmin(distances))])


def resolve(rgb: RGBColor, legacy: bool) -> ColorToken:
    """
    Resolve an RGB color for the requested mode.

    Args:
        rgb: Color to resolve
        legacy: Degrade to the 16-color palette

    Returns:
        ColorToken with the exact RGB value or the nearest legacy code
    """
    if legacy:
        return closest_legacy(rgb)
    return ColorToken(rgb=tuple(int(c) for c in rgb))


def from_hex(value: str, legacy: bool) -> Optional[ColorToken]:
    """Resolve a hex color string, None if it cannot be parsed"""
    rgb = parse_hex(value)
    return resolve(rgb, legacy) if rgb is not None else None


def gradient_colors(start: RGBColor, end: RGBColor, steps: int) -> np.ndarray:
    """
    Build an RGB ramp between two anchors.

    Each channel advances by ``|start - end| // (steps - 1)`` towards the end
    anchor. The step is truncated, so the last color only reaches the end
    anchor when the distance divides evenly.

    Args:
        start: First color
        end: Target color
        steps: Number of colors, at least 2

    Returns:
        Integer array of shape (steps, 3)
    """
    if steps < 2:
        raise ValueError("A gradient needs at least 2 steps")

    first = np.asarray(start, dtype=np.int64)
    last = np.asarray(end, dtype=np.int64)

    step = np.abs(first - last) // (steps - 1)
    direction = np.where(first < last, 1, -1)
    return first + np.outer(np.arange(steps), step * direction)


def hsb_to_rgb(hue: float, saturation: float, brightness: float) -> RGBColor:
    """Convert an HSB color to RGB, channels rounded half up."""
    hue = hue - np.floor(hue)
    r, g, b = colorsys.hsv_to_rgb(hue, saturation, brightness)
    return int(r * 255 + 0.5), int(g * 255 + 0.5), int(b * 255 + 0.5)


# ============================================================================
# LEGACY CODE UTILITIES
# ============================================================================

_ALT_CODE = re.compile(re.escape(ALT_CONTROL_CHAR) + r'([0-9a-fk-orx])', re.IGNORECASE)
_BUKKIT_COLOR = re.compile(r'[&§][0-9a-fx]', re.IGNORECASE)
_BUKKIT_SPECIAL = re.compile(r'[&§][k-orx]', re.IGNORECASE)

# Every notation that sets a color or a format, resolved hex tokens first
COLOR_PATTERN = (
    r'§x(?:§[\da-f]){6}'
    r'|[&§][a-fk-or\d]'
    r'|\{#([a-f\d]{6})\}'
    r'|<#([a-f\d]{6})>'
    r'|%#([a-f\d]{6})%'
    r'|\[#([a-f\d]{6})\]'
    r'|&?#([a-f\d]{6})'
    r'|&x([a-f\d]{6})'
)
_COLOR_RE = re.compile(COLOR_PATTERN, re.IGNORECASE)
_STARTS_WITH_COLOR_RE = re.compile('^(?:' + COLOR_PATTERN + ')', re.IGNORECASE)


def translate_alternate_codes(text: str) -> str:
    """Turn '&a' style codes into resolved '§a' control sequences."""
    if not text:
        return text
    return _ALT_CODE.sub(lambda m: CONTROL_CHAR + m.group(1).lower(), text)


def strip_bukkit(text: str) -> str:
    """Remove legacy color codes ('&a', '§b', '§x')"""
    if not text or not text.strip():
        return text
    return _BUKKIT_COLOR.sub('', text)


def strip_special(text: str) -> str:
    """Remove legacy formatting codes ('&l', '§o', '&r')"""
    if not text or not text.strip():
        return text
    return _BUKKIT_SPECIAL.sub('', text)


def starts_with_color(text: str) -> bool:
    """Whether the text begins with any color or format directive"""
    if not text or not text.strip():
        return False
    return _STARTS_WITH_COLOR_RE.match(text) is not None


def last_color(text: str) -> Optional[str]:
    """Last color or format directive found in the text, as written"""
    if not text:
        return None
    found = None
    for match in _COLOR_RE.finditer(text):
        found = match.group(0)
    return found


def parse_directive(directive: str) -> Optional[ColorToken]:
    """
    Convert a single directive matched by COLOR_PATTERN into a token.

    Args:
        directive: For example '&a', '§l', '<#ff0000>', '§x§f§f§0§0§0§0'

    Returns:
        ColorToken, or None for unrecognized input
    """
    if not directive:
        return None

    lowered = directive.lower()
    if lowered.startswith(CONTROL_CHAR + HEX_CODE) and len(lowered) == 14:
        return ColorToken(rgb=parse_hex(lowered[3::2]))

    if len(lowered) == 2 and lowered[0] in (CONTROL_CHAR, ALT_CONTROL_CHAR):
        return ColorToken(code=lowered[1])

    digits = re.search(r'[a-f\d]{6}', lowered)
    if digits is None:
        return None
    rgb = parse_hex(digits.group(0))
    return ColorToken(rgb=rgb) if rgb is not None else None


def end_color(text: str) -> Optional[ColorToken]:
    """
    Color that is active at the end of the text.

    Formatting codes are skipped and a reset code clears the color, so the
    result is the last color the reader actually sees.

    Args:
        text: Raw or resolved text

    Returns:
        ColorToken of the last active color, None if there is none
    """
    if not text:
        return None

    current = None
    for match in _COLOR_RE.finditer(text):
        token = parse_directive(match.group(0))
        if token is None:
            continue
        if token.code == RESET_CODE:
            current = None
        elif token.code is not None and token.code in FORMAT_CODES:
            continue
        else:
            current = token
    return current


# ============================================================================
# CLIENT VERSIONS
# ============================================================================

def client_version(protocol: Optional[int]) -> int:
    """
    Map a client protocol number to its minor game version.

    Returns:
        Minor version (e.g. 20), 0 when the protocol is unknown
    """
    if protocol is None:
        return 0
    for version, first, last, excluded in CLIENT_PROTOCOLS:
        if first <= protocol <= last and protocol not in excluded:
            return version
    return 0


def is_legacy_client(protocol: Optional[int]) -> bool:
    """Whether a client protocol only renders the legacy palette"""
    return client_version(protocol) <= LEGACY_CLIENT_VERSION


def legacy_mode(server_version: float, client: Optional[int] = None,
                force: bool = False) -> bool:
    """
    Decide the color mode for a message.

    Args:
        server_version: Minor server version (e.g. 20.4)
        client: Minor client version, None when the client is unknown
        force: Always degrade, as configured by ColorConfig.force_legacy

    Returns:
        True if colors must be degraded to the legacy palette
    """
    if force or server_version < RGB_SERVER_VERSION:
        return True
    return client is not None and client <= LEGACY_CLIENT_VERSION


# ============================================================================
# ANSI RENDERING
# ============================================================================

_RESOLVED_TOKEN = re.compile(r'§x(?:§[\da-f]){6}|§[\da-fk-or]', re.IGNORECASE)


def to_ansi(text: str) -> str:
    """
    Render resolved control sequences as ANSI escape sequences.

    Args:
        text: Text already translated to '§' control sequences

    Returns:
        Terminal ready text, terminated by a reset when any code was found
    """
    if not text:
        return text

    found = False

    def replace(match):
        nonlocal found
        token = parse_directive(match.group(0))
        if token is None:
            return ''
        found = True
        # Colors reset previous formats, like the chat client does
        if not token.is_legacy or token.code in COLOR_CODES:
            return ANSI_RESET + token.to_ansi()
        return token.to_ansi()

    rendered = _RESOLVED_TOKEN.sub(replace, text)
    return rendered + ANSI_RESET if found else rendered
