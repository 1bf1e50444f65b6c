"""
Colour parsing and WCAG 2.x contrast ratio.

Supports hex (#rgb, #rgba, #rrggbb, #rrggbbaa), rgb()/rgba() with integer or
percentage channels, and the common CSS named colours. Alpha is ignored.
"""

import re
from typing import Tuple

RGB = Tuple[int, int, int]

# Minimum ratio for normal-size text at WCAG AA
AA_NORMAL_TEXT = 4.5

# Map CSS named colors to hex (common subset)
CSS_NAMED_COLORS = {
    'black': '#000000', 'white': '#ffffff', 'red': '#ff0000',
    'green': '#008000', 'blue': '#0000ff', 'yellow': '#ffff00',
    'orange': '#ffa500', 'gray': '#808080', 'grey': '#808080',
    'silver': '#c0c0c0', 'navy': '#000080', 'teal': '#008080',
    'purple': '#800080', 'maroon': '#800000', 'lime': '#00ff00',
    'aqua': '#00ffff', 'cyan': '#00ffff', 'fuchsia': '#ff00ff',
    'magenta': '#ff00ff', 'olive': '#808000', 'brown': '#a52a2a',
    'pink': '#ffc0cb', 'gold': '#ffd700', 'beige': '#f5f5dc',
    'ivory': '#fffff0', 'khaki': '#f0e68c', 'coral': '#ff7f50',
    'salmon': '#fa8072', 'tomato': '#ff6347', 'crimson': '#dc143c',
    'indigo': '#4b0082', 'violet': '#ee82ee', 'orchid': '#da70d6',
    'darkgray': '#a9a9a9', 'darkgrey': '#a9a9a9', 'dimgray': '#696969',
    'dimgrey': '#696969', 'lightgray': '#d3d3d3', 'lightgrey': '#d3d3d3',
    'gainsboro': '#dcdcdc', 'whitesmoke': '#f5f5f5', 'snow': '#fffafa',
    'darkblue': '#00008b', 'darkred': '#8b0000', 'darkgreen': '#006400',
    'lightblue': '#add8e6', 'lightgreen': '#90ee90', 'lightyellow': '#ffffe0',
    'steelblue': '#4682b4', 'slategray': '#708090', 'slategrey': '#708090',
    'royalblue': '#4169e1', 'skyblue': '#87ceeb', 'midnightblue': '#191970',
}

_RGB_FUNC = re.compile(r'^rgba?\(\s*([^)]*)\)$')


class ColorParseError(ValueError):
    """Raised when a CSS colour value cannot be interpreted."""


def _parse_hex(value: str) -> RGB:
    digits = value[1:]
    if len(digits) in (3, 4):
        digits = ''.join(ch * 2 for ch in digits[:3])
    elif len(digits) in (6, 8):
        digits = digits[:6]
    else:
        raise ColorParseError(f"Unsupported hex colour: {value}")
    try:
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
    except ValueError as exc:
        raise ColorParseError(f"Invalid hex colour: {value}") from exc


def _parse_channel(part: str, value: str) -> int:
    try:
        if part.endswith('%'):
            channel = round(float(part[:-1]) * 2.55)
        else:
            channel = round(float(part))
    except ValueError as exc:
        raise ColorParseError(f"Invalid colour channel in {value}") from exc
    return max(0, min(255, channel))


def parse_color(value: str) -> RGB:
    """
    Parse a CSS colour value into an (r, g, b) tuple.

    Raises:
        ColorParseError: if the value is empty, transparent, or unsupported
    """
    if value is None:
        raise ColorParseError("No colour value")
    color = value.strip().lower()
    if color in CSS_NAMED_COLORS:
        color = CSS_NAMED_COLORS[color]
    if color.startswith('#'):
        return _parse_hex(color)

    match = _RGB_FUNC.match(color)
    if match:
        parts = [p for p in re.split(r'[\s,/]+', match.group(1)) if p]
        if len(parts) < 3:
            raise ColorParseError(f"Incomplete rgb() colour: {value}")
        r, g, b = (_parse_channel(p, value) for p in parts[:3])
        return r, g, b

    raise ColorParseError(f"Unknown colour format: {value}")


def relative_luminance(rgb: RGB) -> float:
    """sRGB relative luminance per WCAG 2.x."""
    def _ch(c: int) -> float:
        v = c / 255.0
        return v / 12.92 if v <= 0.04045 else ((v + 0.055) / 1.055) ** 2.4

    r, g, b = rgb
    return 0.2126 * _ch(r) + 0.7152 * _ch(g) + 0.0722 * _ch(b)


def contrast_ratio(foreground: str, background: str) -> float:
    """
    Calculate the WCAG contrast ratio between two CSS colours.

    Args:
        foreground: Text colour
        background: Background colour

    Returns:
        Ratio between 1.0 and 21.0

    Raises:
        ColorParseError: if either colour cannot be parsed
    """
    l1 = relative_luminance(parse_color(foreground))
    l2 = relative_luminance(parse_color(background))
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)
