#!/usr/bin/env python3
"""
🐧 PNGN Prism - Markup Module
=============================
Copyright (c) 2025 PNGN-Tec LLC

Markup Segment Parser
=====================
Splits a message into styled segments. A segment is a run of text with at
most one click action and one hover.

Tag Grammar
===========
    <ACTION:"argument">content</text>
    <ACTION:"argument"|ACTION2:"argument2">content</text>

ACTION is 'hover', 'hover_item' or one of the click names (run, click,
execute, run_command, suggest, suggest_command, url, open_url, file,
open_file, page, change_page, copy, clipboard, copy_to_clipboard). Names are
case-insensitive. The older form 'hover=[text]' (also run, suggest and url)
is rewritten to the quoted form before parsing.

Bare URLs in untagged text become their own segment with an implicit
open URL click.

Color Propagation
=================
A segment that does not start with a color inherits the color active at the
end of the previous segment, so colors keep flowing across tag boundaries.

Example Usage
=============
```python
from prism_markup import MarkupParser

parser = MarkupParser()
segments = parser.parse('<run:"/help">&aClick me</text> visit http://x.io')
# [StyledSegment('&aClick me', click=Click(EXECUTE, '/help')),
#  StyledSegment('&a visit '),
#  StyledSegment('&ahttp://x.io', click=Click(OPEN_URL, 'http://x.io'))]
```
"""

import re
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from prism_config import get_markup_config
from prism_color import ColorToken, end_color, starts_with_color

# Configure logging
logger = logging.getLogger('prism_markup')


# ============================================================================
# ACTIONS
# ============================================================================

class ClickAction(Enum):
    """
    Click kinds with every accepted name.

    The first name is the one written back into markup, the last one is the
    chat event name.
    """
    EXECUTE = ('run', 'click', 'execute', 'run_command')
    OPEN_URL = ('url', 'open_url')
    OPEN_FILE = ('file', 'open_file')
    SUGGEST = ('suggest', 'suggest_command')
    CHANGE_PAGE = ('page', 'change_page')
    CLIPBOARD = ('copy', 'clipboard', 'copy_to_clipboard')

    @property
    def names(self) -> Tuple[str, ...]:
        return self.value

    @property
    def key(self) -> str:
        return self.value[0]

    @property
    def event_name(self) -> str:
        return self.value[-1]

    @classmethod
    def from_name(cls, name: Optional[str]) -> 'ClickAction':
        """Look up a click by any of its names, SUGGEST when blank or unknown"""
        if name and name.strip():
            lowered = name.strip().lower()
            for action in cls:
                if lowered in action.value:
                    return action
        return cls.SUGGEST


@dataclass(frozen=True)
class Click:
    action: ClickAction
    argument: str


@dataclass(frozen=True)
class Hover:
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class HoverItem:
    """Item tooltip, payload is the unescaped JSON and raw the text as written"""
    payload: str
    raw: str


Action = Union[Click, Hover, HoverItem]


def unescape_json(raw: str) -> str:
    return raw.replace('\\\\', '\\').replace('\\"', '"')


def parse_action(name: str, argument: str, line_separator: str) -> Action:
    """
    Build the action for a tag name and its argument.

    Args:
        name: Tag action name
        argument: Quoted argument, without the quotes
        line_separator: Separator between hover lines

    Returns:
        Hover, HoverItem or Click
    """
    lowered = name.lower()
    if lowered == 'hover':
        return Hover(tuple(argument.split(line_separator)))
    if lowered == 'hover_item':
        return HoverItem(unescape_json(argument), argument)
    return Click(ClickAction.from_name(lowered), argument)


# ============================================================================
# SEGMENTS
# ============================================================================

@dataclass(frozen=True)
class StyledSegment:
    """
    Run of text sharing the same interactions.

    Attributes:
        content: Text with color markup
        trailing_color: Color active at the end of the content
        click: Click action, if any
        hover_lines: Tooltip lines, exclusive with hover_payload
        hover_payload: Item tooltip JSON, exclusive with hover_lines
    """
    content: str
    trailing_color: Optional[ColorToken] = None
    click: Optional[Click] = None
    hover_lines: Optional[Tuple[str, ...]] = None
    hover_payload: Optional[str] = None

    def __post_init__(self):
        if self.hover_lines is not None and self.hover_payload is not None:
            raise ValueError("A segment cannot have both hover lines and a hover payload")

    @property
    def has_click(self) -> bool:
        return self.click is not None

    @property
    def has_hover(self) -> bool:
        return bool(self.hover_lines) or bool(self.hover_payload)

    @property
    def has_events(self) -> bool:
        return self.has_click or self.has_hover

    def with_action(self, action: Action) -> 'StyledSegment':
        """Copy with the action set, a new hover replaces the other kind"""
        if isinstance(action, Click):
            return replace(self, click=action)
        if isinstance(action, Hover):
            return replace(self, hover_lines=tuple(action.lines), hover_payload=None)
        return replace(self, hover_lines=None, hover_payload=action.payload)

    def with_click(self, action: ClickAction, argument: str) -> 'StyledSegment':
        return self.with_action(Click(action, argument))

    def with_hover(self, lines: Iterable[str]) -> 'StyledSegment':
        return self.with_action(Hover(tuple(lines)))


# ============================================================================
# GRAMMAR
# ============================================================================

CLICK_NAMES = (
    r'execute|click|(?:run|suggest)(?:_command)?|(?:open_)?(?:url|file)'
    r'|(?:change_)?page|copy|(?:copy_to_)?clipboard'
)
_ACTION_NAMES = r'hover_item|hover|' + CLICK_NAMES

TAG_PATTERN = re.compile(
    rf'<(?P<action>{_ACTION_NAMES}):"(?P<argument>.[^|]*?)"'
    rf'(?:\|(?P<action2>{_ACTION_NAMES}):"(?P<argument2>.[^|]*?)")?>'
    r'(?P<content>.+?)</text>',
    re.IGNORECASE
)

# [scheme://]host.tld[/path], preceded by whitespace or a color code and
# followed by whitespace, optionally after closing punctuation
URL_PATTERN = re.compile(
    r'(?:(?<!\S)|(?<=[&§][\da-fk-or]))'
    r'(?:(https?)://)?((?:[-\w]+\.)+[a-z]{2,4})(/\S*?)?'
    r'(?=[.,;:!?)]*(?!\S))',
    re.IGNORECASE
)

_LEGACY_SYNTAX = re.compile(r'(hover|run|suggest|url)=\[(.[^|\[\]]*)\]', re.IGNORECASE)
_HOVER_ARGUMENT = re.compile(r'hover:"(.*?)"')


def normalize_legacy_syntax(text: str) -> str:
    """Rewrite 'hover=[x]' style arguments as 'hover:"x"'"""
    if not text or not text.strip():
        return text
    return _LEGACY_SYNTAX.sub(lambda m: f'{m.group(1)}:"{m.group(2)}"', text)


def remove_tags(text: str) -> str:
    """Replace every click and hover tag with its content"""
    text = normalize_legacy_syntax(text)
    if not text or not text.strip():
        return text
    return TAG_PATTERN.sub(lambda m: m.group('content'), text)


# ============================================================================
# PARSER
# ============================================================================

class MarkupParser:
    """
    Turns messages into StyledSegment lists.

    Args:
        line_separator: Separator between hover lines, from config when None
        detect_urls: Extract bare URLs from untagged text, from config when None
    """

    def __init__(self, line_separator: Optional[str] = None,
                 detect_urls: Optional[bool] = None):
        config = get_markup_config()
        self.line_separator = line_separator if line_separator is not None else config.line_separator
        self.detect_urls = detect_urls if detect_urls is not None else config.detect_urls

        if not self.line_separator:
            raise ValueError("Line separator cannot be empty")

    def parse(self, message: str) -> List[StyledSegment]:
        """
        Split a message into styled segments.

        Args:
            message: Raw message with tags, URLs and color markup

        Returns:
            Ordered segments, empty list for empty input
        """
        return self.append([], message)

    def append(self, segments: Sequence[StyledSegment], message: str) -> List[StyledSegment]:
        """
        Parse a message as a continuation of existing segments.

        The first new segment inherits the trailing color of the last
        existing one.

        Returns:
            New list with the existing and the parsed segments
        """
        result = list(segments)
        if not message:
            return result

        text = normalize_legacy_syntax(message)
        last_end = 0

        for match in TAG_PATTERN.finditer(text):
            self._add_plain(result, text[last_end:match.start()])

            actions = [parse_action(match.group('action'), match.group('argument'),
                                    self.line_separator)]
            if match.group('action2') and match.group('argument2'):
                actions.append(parse_action(match.group('action2'), match.group('argument2'),
                                            self.line_separator))

            self._add(result, match.group('content'), actions)
            last_end = match.end()

        self._add_plain(result, text[last_end:])
        logger.debug(f"Parsed {len(result) - len(segments)} segments from {len(message)} chars")
        return result

    def _add_plain(self, segments: List[StyledSegment], text: str):
        if not text:
            return
        if not self.detect_urls:
            self._add(segments, text, [])
            return

        last_end = 0
        for match in URL_PATTERN.finditer(text):
            self._add(segments, text[last_end:match.start()], [])
            url = match.group(0)
            self._add(segments, url, [Click(ClickAction.OPEN_URL, url)])
            last_end = match.end()
        self._add(segments, text[last_end:], [])

    def _add(self, segments: List[StyledSegment], content: str, actions: List[Action]):
        if not content:
            return

        previous = segments[-1] if segments else None
        if previous is not None and previous.trailing_color is not None \
                and not starts_with_color(content):
            content = previous.trailing_color.to_markup() + content

        segment = StyledSegment(content, trailing_color=end_color(content))
        for action in actions:
            segment = segment.with_action(action)
        segments.append(segment)

    def remove_format(self, message: str) -> str:
        """Replace every tag with its content, color markup is kept"""
        return remove_tags(message)

    def to_markup(self, segments: Iterable[StyledSegment]) -> str:
        """
        Write segments back as markup that parses to the same segments.

        Args:
            segments: Segments to serialize

        Returns:
            Markup string
        """
        parts = []
        for segment in segments:
            if not segment.has_events:
                parts.append(segment.content)
                continue

            actions = []
            if segment.click is not None:
                actions.append(f'{segment.click.action.key}:"{segment.click.argument}"')
            if segment.hover_lines:
                actions.append(f'hover:"{self.line_separator.join(segment.hover_lines)}"')
            elif segment.hover_payload:
                escaped = segment.hover_payload.replace('\\', '\\\\').replace('"', '\\"')
                actions.append(f'hover_item:"{escaped}"')

            parts.append(f"<{'|'.join(actions)}>{segment.content}</text>")
        return ''.join(parts)

    def hover_lines(self, text: str) -> List[str]:
        """
        Tooltip lines from plain text or hover markup.

        Every 'hover:"..."' is replaced by its argument before the text is
        split by the line separator.
        """
        if not text:
            return []
        return self.split_lines(_HOVER_ARGUMENT.sub(lambda m: m.group(1), text))

    def split_lines(self, text: str) -> List[str]:
        if not text:
            return [text] if text is not None else []
        return text.split(self.line_separator)


def with_click_all(segments: Iterable[StyledSegment], action: ClickAction,
                   argument: str) -> List[StyledSegment]:
    """Set the same click on every segment"""
    return [segment.with_click(action, argument) for segment in segments]


def with_hover_all(segments: Iterable[StyledSegment], lines: Iterable[str]) -> List[StyledSegment]:
    """Set the same hover lines on every segment"""
    lines = tuple(lines)
    return [segment.with_hover(lines) for segment in segments]


def with_click_last(segments: Iterable[StyledSegment], action: ClickAction,
                    argument: str) -> List[StyledSegment]:
    """Set a click on the last segment only"""
    result = list(segments)
    if result:
        result[-1] = result[-1].with_click(action, argument)
    return result


def with_hover_last(segments: Iterable[StyledSegment], lines: Iterable[str]) -> List[StyledSegment]:
    """Set hover lines on the last segment only"""
    result = list(segments)
    if result:
        result[-1] = result[-1].with_hover(lines)
    return result
