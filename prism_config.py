#!/usr/bin/env python3
"""
🐧 PNGN Prism - Configuration Module
====================================
Copyright (c) 2025 PNGN-Tec LLC

Centralized Configuration System
=================================
Complete configuration for the chat formatting engine including:
- Control characters and markup markers (center prefix, line separator)
- Legacy 16-color palette with ANSI equivalents
- Client protocol table used to decide legacy vs modern color mode
- Width table defaults and cache sizing
- Runtime configuration manager with environment overrides

Configuration Overview
======================
This module provides all constants and defaults needed by the formatting
components. Every component accepts explicit values at construction and
falls back to the values held by the ConfigurationManager when a value is
not provided.

Color System
============
The legacy palette consists of the 16 classic chat colors, addressed by a
single code character (0-9, a-f). Each entry includes its name, RGB tuple and
ANSI escape sequence. Palette declaration order is significant: it is the
tie-break order used when degrading an RGB color to its nearest legacy color.
"""

import copy
import threading
import logging
import os
from typing import Tuple, Dict, Any, Optional, Callable, List
from dataclasses import dataclass, field

# Configure logging
logger = logging.getLogger('prism_config')

# Type alias for RGB colors
RGBColor = Tuple[int, int, int]

# ============================================================================
# CONTROL CHARACTERS AND MARKERS
# ============================================================================

CONTROL_CHAR = '§'        # Prefix of resolved control sequences
ALT_CONTROL_CHAR = '&'    # Prefix written by users, translated to CONTROL_CHAR

COLOR_CODES = '0123456789abcdef'
FORMAT_CODES = 'klmno'
RESET_CODE = 'r'
BOLD_CODE = 'l'
HEX_CODE = 'x'

DEFAULT_CENTER_PREFIX = '[C]'
DEFAULT_LINE_SEPARATOR = '<n>'
DEFAULT_CENTER_LIMIT = 154

# ============================================================================
# WIDTH SETTINGS
# ============================================================================

DEFAULT_CHAR_WIDTH = 5    # Width of any character missing from the table
CHAR_SPACING = 1          # Pixel between two rendered glyphs
PAD_CHAR_WIDTH = 4        # Width of one padding space (3 + spacing)

# ============================================================================
# VERSION SETTINGS
# ============================================================================

RGB_SERVER_VERSION = 16.0     # First server version able to show RGB
LEGACY_CLIENT_VERSION = 15    # Clients at or below this only render legacy colors

# (version, first protocol, last protocol, excluded protocols)
CLIENT_PROTOCOLS: List[Tuple[int, int, int, Tuple[int, ...]]] = [
    (7, 0, 5, ()),
    (8, 6, 47, ()),
    (9, 48, 110, ()),
    (10, 201, 210, tuple(range(206, 210))),
    (11, 301, 316, ()),
    (12, 317, 340, ()),
    (13, 341, 404, ()),
    (14, 441, 500, (499,)),
    (15, 550, 578, ()),
    (16, 701, 754, ()),
    (17, 755, 756, ()),
    (18, 757, 758, ()),
    (19, 759, 762, ()),
    (20, 763, 766, ()),
    (21, 767, 770, ()),
]

# ============================================================================
# LEGACY 16-COLOR PALETTE
# ============================================================================

LEGACY_16_COLORS = {
    '0': {'name': 'Black', 'rgb': (0, 0, 0), 'ansi': '\033[30m'},
    '1': {'name': 'Dark Blue', 'rgb': (0, 0, 170), 'ansi': '\033[34m'},
    '2': {'name': 'Dark Green', 'rgb': (0, 170, 0), 'ansi': '\033[32m'},
    '3': {'name': 'Dark Aqua', 'rgb': (0, 170, 170), 'ansi': '\033[36m'},
    '4': {'name': 'Dark Red', 'rgb': (170, 0, 0), 'ansi': '\033[31m'},
    '5': {'name': 'Dark Purple', 'rgb': (170, 0, 170), 'ansi': '\033[35m'},
    '6': {'name': 'Gold', 'rgb': (255, 170, 0), 'ansi': '\033[33m'},
    '7': {'name': 'Gray', 'rgb': (170, 170, 170), 'ansi': '\033[37m'},
    '8': {'name': 'Dark Gray', 'rgb': (85, 85, 85), 'ansi': '\033[90m'},
    '9': {'name': 'Blue', 'rgb': (85, 85, 255), 'ansi': '\033[94m'},
    'a': {'name': 'Green', 'rgb': (85, 255, 85), 'ansi': '\033[92m'},
    'b': {'name': 'Aqua', 'rgb': (85, 255, 255), 'ansi': '\033[96m'},
    'c': {'name': 'Red', 'rgb': (255, 85, 85), 'ansi': '\033[91m'},
    'd': {'name': 'Light Purple', 'rgb': (255, 85, 255), 'ansi': '\033[95m'},
    'e': {'name': 'Yellow', 'rgb': (255, 255, 85), 'ansi': '\033[93m'},
    'f': {'name': 'White', 'rgb': (255, 255, 255), 'ansi': '\033[97m'},
}

# Formatting codes and their ANSI equivalents
FORMAT_ANSI = {
    'k': '\033[5m',   # Obfuscated, closest terminal effect is blink
    'l': '\033[1m',
    'm': '\033[9m',
    'n': '\033[4m',
    'o': '\033[3m',
    'r': '\033[0m',
}

ANSI_RESET = '\033[0m'

# ============================================================================
# ALIGNMENT CONFIGURATION
# ============================================================================

@dataclass
class AlignmentConfig:
    """
    Centering configuration.

    Attributes:
        center_prefix: Marker a line must start with to be centered
        default_limit: Half width (in pixels) of the chat area
        pad_char: Character used for padding
        pad_width: Width contributed by each padding character
    """

    center_prefix: str = DEFAULT_CENTER_PREFIX
    default_limit: int = DEFAULT_CENTER_LIMIT
    pad_char: str = ' '
    pad_width: int = PAD_CHAR_WIDTH

    def validate(self) -> bool:
        """Validate alignment configuration"""
        if self.default_limit < 0:
            raise ValueError("Center limit must not be negative")
        if self.pad_width <= 0:
            raise ValueError("Pad width must be positive")
        if len(self.pad_char) != 1:
            raise ValueError("Pad character must be a single character")
        return True


# ============================================================================
# WIDTH CONFIGURATION
# ============================================================================

@dataclass
class WidthConfig:
    """
    Width table configuration.

    Attributes:
        default_width: Width of characters missing from the table
        char_spacing: Extra width added after every measured glyph
        cache_size: Maximum number of measured strings kept in the LRU cache
        enable_caching: Master switch for measurement caching
    """

    default_width: int = DEFAULT_CHAR_WIDTH
    char_spacing: int = CHAR_SPACING
    cache_size: int = 512
    enable_caching: bool = True

    def validate(self) -> bool:
        """Validate width configuration"""
        if self.default_width < 0:
            raise ValueError("Default width must not be negative")
        if self.char_spacing < 0:
            raise ValueError("Character spacing must not be negative")
        if self.cache_size <= 0:
            raise ValueError("Cache size must be positive")
        return True


# ============================================================================
# MARKUP CONFIGURATION
# ============================================================================

@dataclass
class MarkupConfig:
    """Markup parsing configuration"""

    line_separator: str = DEFAULT_LINE_SEPARATOR
    detect_urls: bool = True

    def validate(self) -> bool:
        """Validate markup configuration"""
        if not self.line_separator:
            raise ValueError("Line separator must not be empty")
        return True


# ============================================================================
# COLOR CONFIGURATION
# ============================================================================

@dataclass
class ColorConfig:
    """
    Color mode configuration.

    Attributes:
        server_version: Minor game version of the server (e.g. 20.4)
        force_legacy: Always degrade colors to the legacy palette
    """

    server_version: float = 21.0
    force_legacy: bool = False

    def validate(self) -> bool:
        """Validate color configuration"""
        if self.server_version <= 0:
            raise ValueError("Server version must be positive")
        return True


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

@dataclass
class PrismConfig:
    """Complete engine configuration"""

    # Sub-configurations
    alignment: AlignmentConfig = field(default_factory=AlignmentConfig)
    width: WidthConfig = field(default_factory=WidthConfig)
    markup: MarkupConfig = field(default_factory=MarkupConfig)
    color: ColorConfig = field(default_factory=ColorConfig)

    # System-wide settings
    debug_mode: bool = False
    log_level: str = "INFO"

    def validate(self) -> bool:
        """Validate entire configuration"""
        self.alignment.validate()
        self.width.validate()
        self.markup.validate()
        self.color.validate()
        return True


# ============================================================================
# CONFIGURATION MANAGER (SINGLETON)
# ============================================================================

class ConfigurationManager:
    """
    Singleton configuration manager with runtime reloading.
    Thread-safe management of global configuration with change notifications.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = PrismConfig()
        self._callbacks = []
        self._config_lock = threading.RLock()

        candidate = PrismConfig()
        self._load_environment_overrides(candidate)
        try:
            candidate.validate()
            self._config = candidate
        except ValueError as e:
            logger.warning(f"Ignoring environment overrides: {e}")

        self._initialized = True
        logger.info("Configuration manager initialized")

    @staticmethod
    def _env_value(name: str, cast: Callable[[str], Any]) -> Optional[Any]:
        """Read and convert an environment variable, ignoring invalid values"""
        if name not in os.environ:
            return None
        try:
            return cast(os.environ[name])
        except ValueError:
            logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
            return None

    def _load_environment_overrides(self, config: PrismConfig):
        """Apply environment variable overrides to config in place"""

        def flag(value: str) -> bool:
            return value.lower() in ('true', '1', 'yes')

        # Alignment settings
        if 'PRISM_CENTER_PREFIX' in os.environ:
            config.alignment.center_prefix = os.environ['PRISM_CENTER_PREFIX']
        limit = self._env_value('PRISM_CENTER_LIMIT', int)
        if limit is not None:
            config.alignment.default_limit = limit

        # Markup settings
        if os.environ.get('PRISM_LINE_SEPARATOR'):
            config.markup.line_separator = os.environ['PRISM_LINE_SEPARATOR']
        if 'PRISM_DETECT_URLS' in os.environ:
            config.markup.detect_urls = flag(os.environ['PRISM_DETECT_URLS'])

        # Width settings
        width = self._env_value('PRISM_DEFAULT_WIDTH', int)
        if width is not None:
            config.width.default_width = width
        cache_size = self._env_value('PRISM_CACHE_SIZE', int)
        if cache_size is not None:
            config.width.cache_size = cache_size

        # Color settings
        version = self._env_value('PRISM_SERVER_VERSION', float)
        if version is not None:
            config.color.server_version = version
        if 'PRISM_FORCE_LEGACY' in os.environ:
            config.color.force_legacy = flag(os.environ['PRISM_FORCE_LEGACY'])

        # Debug mode
        if 'PRISM_DEBUG' in os.environ:
            config.debug_mode = flag(os.environ['PRISM_DEBUG'])

    @property
    def config(self) -> PrismConfig:
        """Get current configuration"""
        with self._config_lock:
            return self._config

    def reload(self, new_config: Optional[PrismConfig] = None) -> bool:
        """
        Reload configuration and notify callbacks.

        Args:
            new_config: New configuration to apply (reloads from env if None)

        Returns:
            True if reload successful
        """
        with self._config_lock:
            old_config = self._config

            try:
                if new_config:
                    new_config.validate()
                    self._config = new_config
                else:
                    # Reload from environment into a copy, kept only if valid
                    candidate = copy.deepcopy(self._config)
                    self._load_environment_overrides(candidate)
                    candidate.validate()
                    self._config = candidate

                # Notify callbacks
                self._notify_callbacks(old_config, self._config)

                logger.info("Configuration reloaded successfully")
                return True

            except ValueError as e:
                logger.error(f"Configuration reload failed: {e}")
                self._config = old_config
                return False

    def register_callback(self, callback: Callable[[PrismConfig, PrismConfig], None]):
        """
        Register callback for configuration changes.

        Args:
            callback: Function called with (old_config, new_config)
        """
        with self._config_lock:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable):
        """Remove a registered callback"""
        with self._config_lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _notify_callbacks(self, old_config: PrismConfig, new_config: PrismConfig):
        """Notify all registered callbacks of configuration change"""
        for callback in list(self._callbacks):
            try:
                callback(old_config, new_config)
            except Exception as e:
                logger.error(f"Callback notification failed: {e}")


# ============================================================================
# PUBLIC API FUNCTIONS
# ============================================================================

_manager = ConfigurationManager()

def get_config() -> PrismConfig:
    """Get current engine configuration"""
    return _manager.config

def reload_config(new_config: Optional[PrismConfig] = None) -> bool:
    """Reload engine configuration"""
    return _manager.reload(new_config)

def register_config_callback(callback: Callable[[PrismConfig, PrismConfig], None]):
    """Register for configuration change notifications"""
    _manager.register_callback(callback)

def unregister_config_callback(callback: Callable):
    """Unregister a configuration change callback"""
    _manager.unregister_callback(callback)

# Module-specific convenience functions
def get_alignment_config() -> AlignmentConfig:
    """Get alignment configuration"""
    return _manager.config.alignment

def get_width_config() -> WidthConfig:
    """Get width table configuration"""
    return _manager.config.width

def get_markup_config() -> MarkupConfig:
    """Get markup configuration"""
    return _manager.config.markup

def get_color_config() -> ColorConfig:
    """Get color configuration"""
    return _manager.config.color

# ============================================================================
# PALETTE ACCESS
# ============================================================================

def legacy_palette() -> Dict[str, RGBColor]:
    """Legacy palette as code -> RGB, in declaration order"""
    return {code: entry['rgb'] for code, entry in LEGACY_16_COLORS.items()}
