#!/usr/bin/env python3
"""
🌈 PNGN Prism - Chat Banner Example
===================================
Copyright (c) 2025 PNGN-Tec LLC
"""

import argparse
import logging
from typing import List

from PIL import ImageFont

from prism_config import PrismConfig
from prism_engine import create_engine
from prism_markup import StyledSegment

BANNER = [
    "&8&m                                                    ",
    "[C]<#ff5555:#ffaa00:#55ff55>&lPNGN PRISM</g>",
    "[C]&7Colors, gradients and <r:100>rainbows</r> for chat",
    "[C]<sc>small caps</sc> &8| <g:55ffff>centered text</g:5555ff>",
    '[C]<hover:"Opens the docs<n>&7(click)"|url:"https://example.com">&b&nDocumentation</text>',
    "&8&m                                                    ",
]


def describe_segments(segments: List[StyledSegment]) -> List[str]:
    lines = []
    for i, segment in enumerate(segments):
        events = []
        if segment.click is not None:
            events.append(f"click={segment.click.action.event_name}:{segment.click.argument}")
        if segment.hover_lines:
            events.append(f"hover={len(segment.hover_lines)} lines")
        if segment.hover_payload:
            events.append("hover=item")
        lines.append(f"  [{i}] {segment.content!r} {' '.join(events)}".rstrip())
    return lines


def main():
    parser = argparse.ArgumentParser(description='PNGN Prism Chat Banner')
    parser.add_argument('message', nargs='*', help='Lines to render instead of the banner')
    parser.add_argument('--legacy', action='store_true', help='Degrade colors to 16 colors')
    parser.add_argument('--limit', type=int, default=None, help='Centering half width in pixels')
    parser.add_argument('--segments', action='store_true', help='Print parsed segments')
    parser.add_argument('--font', default=None, help='TrueType font used to measure widths')
    parser.add_argument('--font-size', type=int, default=8)
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    engine = create_engine(PrismConfig())
    if args.font:
        font = ImageFont.truetype(args.font, args.font_size)
        engine.width_table.register_font(font, BANNER_CHARS)

    lines = args.message or BANNER

    print("🌈 PNGN Prism Chat Banner")
    print("=" * 60)
    print(f"Mode: {'legacy 16 colors' if args.legacy else 'RGB'}")
    print()

    for line in lines:
        print(engine.to_ansi(line, legacy=args.legacy, limit=args.limit))
        if args.segments:
            for described in describe_segments(engine.compile(line, legacy=args.legacy,
                                                              limit=args.limit)):
                print(described)

    stats = engine.get_stats()
    print()
    print(f"✓ Rendered {stats['messages_rendered']} lines, "
          f"width cache hit rate {stats['width_cache']['cache_hit_rate']:.0%}")


BANNER_CHARS = (
    'ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    'abcdefghijklmnopqrstuvwxyz'
    '0123456789 .,:;!?|()[]'
)


if __name__ == "__main__":
    main()
