"""SVG placeholder assembly used by the placeholder endpoints.

This module is intentionally narrow: it only builds markup strings from already
validated inputs. Dimension validation, caching and generation happen outside
this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of drawing layers (background, border, corners, dimensions,
      description, generating indicator).
    - No hidden side effects (no I/O, no global state mutation).

Markup safety model:
    - Every caller-supplied string (description and colors) passes through
      `escape_xml` before interpolation, which also drops characters XML 1.0
      cannot carry. Numbers are formatted locally.
"""

import base64
import html
import math
import re
from typing import List


DEFAULT_BACKGROUND_COLOR = "#f3f4f6"
DEFAULT_TEXT_COLOR = "#6b7280"

MIN_FONT_SIZE = 12
MAX_FONT_SIZE = 48
MAX_LINES = 4
CHAR_WIDTH_RATIO = 0.6
LINE_HEIGHT_RATIO = 1.2
CORNER_INSET = 20

GENERATING_LABEL = "Generating AI image..."


# Characters outside the XML 1.0 `Char` production (C0 controls other than
# tab/LF/CR, lone surrogates, U+FFFE/U+FFFF).
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def escape_xml(value: str) -> str:
    """Escape `& < > " '` and drop characters XML 1.0 cannot represent."""
    return html.escape(_XML_INVALID_CHARS.sub("", str(value)), quote=True)


def _num(value: float) -> str:
    # 400.0 -> "400", 43.75 -> "43.75"
    return format(value, "g")


def font_size_for(width: int, height: int) -> float:
    """Base font size: average dimension / 8, clamped to [12, 48]."""
    average = (width + height) / 2
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, average / 8))


def wrap_text(text: str, max_chars: int) -> List[str]:
    """Greedily pack space-separated words into lines of at most `max_chars`.

    A word longer than `max_chars` is kept whole on its own line.
    """
    lines = []
    current = ""

    for word in text.split(" "):
        if len(current) + len(word) + 1 <= max_chars:
            current = f"{current} {word}" if current else word
        else:
            if current:
                lines.append(current)
            current = word

    if current:
        lines.append(current)
    return lines


# =========================================================
# PLACEHOLDER SVG
# =========================================================
# Layer order:
#   1) Background fill
#   2) Dashed border inset by 2px
#   3) Four corner markers
#   4) Dimension label ("W × H") near the top edge
#   5) Description, wrapped to at most 4 centered lines
#   6) Pulsing dot plus "Generating AI image..." near the bottom edge

def generate_placeholder_svg(
    width: int,
    height: int,
    text: str,
    background_color: str = DEFAULT_BACKGROUND_COLOR,
    text_color: str = DEFAULT_TEXT_COLOR,
) -> str:
    """Build the placeholder SVG document shown while an image is generated.

    Args:
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        text: Free-text description; wrapped and escaped.
        background_color: Fill color of the canvas.
        text_color: Color of border, markers and all text.

    Returns:
        SVG markup as a string.

    Edge cases:
        - Empty `text` renders no description lines.
        - Descriptions needing more than 4 lines are truncated to the first 4.
    """
    font_size = font_size_for(width, height)
    max_chars = math.floor(width / (font_size * CHAR_WIDTH_RATIO))
    lines = wrap_text(text, max_chars)[:MAX_LINES]

    line_height = font_size * LINE_HEIGHT_RATIO
    start_y = (height - len(lines) * line_height) / 2 + font_size

    bg = escape_xml(background_color)
    fg = escape_xml(text_color)
    small_font = max(10, font_size * 0.6)
    label_font = max(10, font_size * 0.5)

    corners = [
        (CORNER_INSET, CORNER_INSET),
        (width - CORNER_INSET, CORNER_INSET),
        (CORNER_INSET, height - CORNER_INSET),
        (width - CORNER_INSET, height - CORNER_INSET),
    ]

    parts = [
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">',
        f'  <rect width="100%" height="100%" fill="{bg}"/>',
        f'  <rect x="2" y="2" width="{_num(width - 4)}" height="{_num(height - 4)}" '
        f'fill="none" stroke="{fg}" stroke-width="2" stroke-dasharray="10,5" opacity="0.5"/>',
    ]

    for cx, cy in corners:
        parts.append(
            f'  <circle cx="{_num(cx)}" cy="{_num(cy)}" r="3" fill="{fg}" opacity="0.3"/>'
        )

    parts.append(
        f'  <text x="{_num(width / 2)}" y="25" font-family="Arial, sans-serif" '
        f'font-size="{_num(small_font)}" fill="{fg}" text-anchor="middle" opacity="0.6">'
        f'{width} × {height}</text>'
    )

    parts.append(f'  <g transform="translate({_num(width / 2)}, {_num(start_y)})">')
    for index, line in enumerate(lines):
        parts.append(
            f'    <text y="{_num(index * line_height)}" font-family="Arial, sans-serif" '
            f'font-size="{_num(font_size)}" fill="{fg}" text-anchor="middle" opacity="0.8">'
            f'{escape_xml(line)}</text>'
        )
    parts.append('  </g>')

    parts.extend([
        f'  <g transform="translate({_num(width / 2)}, {_num(height - 40)})">',
        f'    <circle cx="0" cy="0" r="3" fill="{fg}" opacity="0.4">',
        '      <animate attributeName="opacity" values="0.4;1;0.4" dur="1.5s" repeatCount="indefinite"/>',
        '    </circle>',
        f'    <text y="20" font-family="Arial, sans-serif" font-size="{_num(label_font)}" '
        f'fill="{fg}" text-anchor="middle" opacity="0.5">{GENERATING_LABEL}</text>',
        '  </g>',
        '</svg>',
    ])

    return "\n".join(parts)


# =========================================================
# DATA URL
# =========================================================
# Same markup, base64-encoded for inline `<img src>` use.

def placeholder_data_url(
    width: int,
    height: int,
    text: str,
    background_color: str = DEFAULT_BACKGROUND_COLOR,
    text_color: str = DEFAULT_TEXT_COLOR,
) -> str:
    """Return the placeholder as a `data:image/svg+xml;base64,...` URL."""
    svg = generate_placeholder_svg(width, height, text, background_color, text_color)
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
