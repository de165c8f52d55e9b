"""CSS value parsing: lengths, box shorthands, colors, fonts and transforms."""

import math
import re
from typing import Optional

from pptx.dml.color import RGBColor

# ── Base units ────────────────────────────────────────────────────────────────
BASE_FONT_PX = 16.0  # 1em / 1rem
PERCENT_BASE_PX = 1280.0  # % with no reference box resolves against this
PX_PER_PT = 4.0 / 3.0
PT_PER_PX = 0.75

DEFAULT_FONT = "Arial"

_NUMBER = re.compile(r"^\s*(-?\d*\.?\d+)\s*([a-z%]*)\s*$", re.IGNORECASE)

NAMED_COLORS = {
    "white": "FFFFFF",
    "black": "000000",
    "red": "FF0000",
    "green": "008000",
    "lime": "00FF00",
    "blue": "0000FF",
    "gray": "808080",
    "grey": "808080",
    "silver": "C0C0C0",
    "navy": "000080",
    "orange": "FFA500",
    "yellow": "FFFF00",
    "purple": "800080",
    "teal": "008080",
}

FONT_MAP = {
    "roboto": "Arial",
    "montserrat": "Arial",
    "helvetica": "Arial",
    "helvetica neue": "Arial",
    "inter": "Arial",
    "system-ui": "Arial",
    "sans-serif": "Arial",
    "serif": "Times New Roman",
    "monospace": "Courier New",
}


def _split_number(value: str) -> Optional[tuple[float, str]]:
    m = _NUMBER.match(value)
    if not m:
        return None
    return float(m.group(1)), m.group(2).lower()


def parse_length(value: Optional[str], reference: Optional[float] = None) -> Optional[float]:
    """Convert a CSS length to pixels.

    Percentages resolve against *reference* (or the canonical canvas width when
    no reference box is known). Returns None for ``auto`` and anything that is
    not a plain length.
    """
    if value is None:
        return None
    parsed = _split_number(str(value))
    if parsed is None:
        return None
    number, unit = parsed
    if unit in ("", "px"):
        return number
    if unit == "%":
        base = PERCENT_BASE_PX if reference is None else reference
        return number / 100.0 * base
    if unit in ("em", "rem"):
        return number * BASE_FONT_PX
    if unit == "pt":
        return number * PX_PER_PT
    return None


def parse_box(value: Optional[str]) -> tuple[float, float, float, float]:
    """Expand a 1-4 value padding/margin shorthand to (top, right, bottom, left)."""
    if not value:
        return (0.0, 0.0, 0.0, 0.0)
    parts = [parse_length(p) or 0.0 for p in value.split()]
    if not parts:
        return (0.0, 0.0, 0.0, 0.0)
    if len(parts) == 1:
        return (parts[0],) * 4
    if len(parts) == 2:
        return (parts[0], parts[1], parts[0], parts[1])
    if len(parts) == 3:
        return (parts[0], parts[1], parts[2], parts[1])
    return (parts[0], parts[1], parts[2], parts[3])


def parse_font_size_pt(value: Optional[str]) -> Optional[float]:
    """Convert a CSS font-size to points."""
    if not value:
        return None
    parsed = _split_number(value)
    if parsed is None:
        return None
    number, unit = parsed
    if unit in ("", "px"):
        return round(number * PT_PER_PX, 1)
    if unit in ("em", "rem"):
        return round(number * BASE_FONT_PX * PT_PER_PX, 1)
    if unit == "pt":
        return number
    return None


def hex_to_rgb(hex_str: str) -> Optional[RGBColor]:
    """Convert #RGB or #RRGGBB to RGBColor."""
    hex_str = hex_str.strip().lstrip("#")
    if len(hex_str) == 3:
        hex_str = "".join(c * 2 for c in hex_str)
    if len(hex_str) != 6:
        return None
    try:
        return RGBColor.from_string(hex_str.upper())
    except ValueError:
        return None


def parse_color(value: Optional[str]) -> Optional[RGBColor]:
    """Parse a CSS color. Transparent and unknown colors yield None."""
    if not value:
        return None
    color = value.strip().lower()
    if color.startswith("rgb"):
        numbers = re.findall(r"-?\d*\.?\d+", color)
        if len(numbers) < 3:
            return None
        if len(numbers) >= 4 and float(numbers[3]) == 0:
            return None
        r, g, b = (max(0, min(255, int(float(n)))) for n in numbers[:3])
        return RGBColor(r, g, b)
    if color.startswith("#"):
        return hex_to_rgb(color)
    if color in NAMED_COLORS:
        return RGBColor.from_string(NAMED_COLORS[color])
    return None


def color_from_shorthand(value: Optional[str]) -> Optional[RGBColor]:
    """Find the first color token in a shorthand like ``border`` or ``background``."""
    if not value:
        return None
    for token in re.findall(r"rgba?\([^)]*\)|#[0-9a-fA-F]{3,6}\b|[a-zA-Z]+", value):
        rgb = parse_color(token)
        if rgb is not None:
            return rgb
    return None


def parse_font_family(value: Optional[str]) -> str:
    """Map the first family of a CSS font stack to an Office font."""
    if not value:
        return DEFAULT_FONT
    font = value.split(",")[0].strip().strip("'\"")
    if not font:
        return DEFAULT_FONT
    return FONT_MAP.get(font.lower(), font)


def parse_rotation(value: Optional[str]) -> float:
    """Return the rotation in degrees of a CSS transform, 0 if there is none."""
    if not value or value == "none":
        return 0.0
    m = re.search(r"rotate\(\s*(-?\d*\.?\d+)\s*(deg|rad|turn)?\s*\)", value)
    if m:
        angle = float(m.group(1))
        unit = m.group(2) or "deg"
        if unit == "rad":
            angle = math.degrees(angle)
        elif unit == "turn":
            angle *= 360.0
        return angle % 360.0
    m = re.search(r"matrix\(\s*(-?[\d.e-]+)\s*,\s*(-?[\d.e-]+)", value)
    if m:
        a, b = float(m.group(1)), float(m.group(2))
        return round(math.degrees(math.atan2(b, a)), 4) % 360.0
    return 0.0
