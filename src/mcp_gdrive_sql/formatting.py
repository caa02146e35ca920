"""
Style translation for format_sheet.

build_format() turns the caller's style attributes into a Sheets CellFormat and
the field mask for a partial update. The mask names exactly the top-level
CellFormat keys that were built: bold, italic, fontSize and textColor all land
under "textFormat", so they contribute one mask entry between them.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from .errors import InvalidArguments, InvalidColor

# =============================================================================
# COLOR PALETTE - Named colors for easy use
# =============================================================================
COLORS = {
    "black": {"red": 0, "green": 0, "blue": 0},
    "white": {"red": 1, "green": 1, "blue": 1},
    "red": {"red": 0.92, "green": 0.26, "blue": 0.21},
    "green": {"red": 0.2, "green": 0.66, "blue": 0.33},
    "blue": {"red": 0.26, "green": 0.52, "blue": 0.96},
    "yellow": {"red": 1, "green": 0.95, "blue": 0.0},
    "orange": {"red": 0.98, "green": 0.74, "blue": 0.02},
    "purple": {"red": 0.67, "green": 0.28, "blue": 0.74},
    "gray": {"red": 0.62, "green": 0.62, "blue": 0.62},
    "grey": {"red": 0.62, "green": 0.62, "blue": 0.62},
    "light_gray": {"red": 0.85, "green": 0.85, "blue": 0.85},
    "light_grey": {"red": 0.85, "green": 0.85, "blue": 0.85},
    "light_red": {"red": 0.96, "green": 0.80, "blue": 0.78},
    "light_green": {"red": 0.85, "green": 0.92, "blue": 0.83},
    "light_blue": {"red": 0.81, "green": 0.89, "blue": 0.95},
    "light_yellow": {"red": 1, "green": 0.98, "blue": 0.8},
}

HORIZONTAL_ALIGNMENTS = ("LEFT", "CENTER", "RIGHT")
VERTICAL_ALIGNMENTS = ("TOP", "MIDDLE", "BOTTOM")
WRAP_STRATEGIES = {"overflow": "OVERFLOW_CELL", "overflow_cell": "OVERFLOW_CELL", "clip": "CLIP", "wrap": "WRAP"}

# caller attribute -> key inside textFormat
_TEXT_ATTRIBUTES = {
    "bold": "bold",
    "italic": "italic",
    "underline": "underline",
    "strikethrough": "strikethrough",
    "fontSize": "fontSize",
}


def parse_color(color: str) -> Dict[str, float]:
    """
    Parse a color string into RGB dict (0-1 scale).
    Supports: hex ("#4285F4", "F00"), rgb("rgb(66,133,244)") and named colors ("blue")
    """
    if not isinstance(color, str) or not color.strip():
        raise InvalidColor(str(color))

    value = color.strip().lower()

    if value in COLORS:
        return dict(COLORS[value])

    hex_match = re.match(r'^#?([0-9a-f]{6}|[0-9a-f]{3})$', value)
    if hex_match:
        hex_str = hex_match.group(1)
        if len(hex_str) == 3:
            hex_str = ''.join([c * 2 for c in hex_str])
        return {
            "red": int(hex_str[0:2], 16) / 255,
            "green": int(hex_str[2:4], 16) / 255,
            "blue": int(hex_str[4:6], 16) / 255,
        }

    rgb_match = re.match(r'^rgb\s*\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$', value)
    if rgb_match:
        channels = [int(rgb_match.group(i)) for i in range(1, 4)]
        if all(c <= 255 for c in channels):
            return {"red": channels[0] / 255, "green": channels[1] / 255, "blue": channels[2] / 255}

    raise InvalidColor(color)


def _choice(name: str, value: str, allowed) -> str:
    normalized = str(value).strip().upper()
    if normalized not in allowed:
        raise InvalidArguments(f"{name} must be one of {', '.join(allowed)}, got {value!r}")
    return normalized


@dataclass(frozen=True)
class FormatSpec:
    cell_format: Dict[str, Any]
    fields: Tuple[str, ...]

    @property
    def mask(self) -> str:
        return "userEnteredFormat(" + ",".join(self.fields) + ")"


def build_format(formatting: Mapping[str, Any]) -> FormatSpec:
    """Build the CellFormat for the attributes present in formatting (None means absent)."""
    supplied = {k: v for k, v in (formatting or {}).items() if v is not None}
    cell_format: Dict[str, Any] = {}
    text_format: Dict[str, Any] = {}

    if "backgroundColor" in supplied:
        cell_format["backgroundColor"] = parse_color(supplied["backgroundColor"])

    if "textColor" in supplied:
        text_format["foregroundColor"] = parse_color(supplied["textColor"])
    for attribute, key in _TEXT_ATTRIBUTES.items():
        if attribute in supplied:
            text_format[key] = supplied[attribute]
    if text_format:
        cell_format["textFormat"] = text_format

    if "horizontalAlignment" in supplied:
        cell_format["horizontalAlignment"] = _choice(
            "horizontalAlignment", supplied["horizontalAlignment"], HORIZONTAL_ALIGNMENTS)
    if "verticalAlignment" in supplied:
        cell_format["verticalAlignment"] = _choice(
            "verticalAlignment", supplied["verticalAlignment"], VERTICAL_ALIGNMENTS)
    if "wrapStrategy" in supplied:
        wrap = str(supplied["wrapStrategy"]).strip().lower()
        if wrap not in WRAP_STRATEGIES:
            raise InvalidArguments(f"wrapStrategy must be one of overflow, clip, wrap, got {supplied['wrapStrategy']!r}")
        cell_format["wrapStrategy"] = WRAP_STRATEGIES[wrap]
    if "numberFormat" in supplied:
        cell_format["numberFormat"] = {"type": "NUMBER", "pattern": supplied["numberFormat"]}

    if not cell_format:
        raise InvalidArguments("No formatting options specified")

    return FormatSpec(cell_format=cell_format, fields=tuple(cell_format))


def repeat_cell_request(grid_range: Dict[str, Any], spec: FormatSpec) -> Dict[str, Any]:
    """One repeatCell request applying spec uniformly over grid_range."""
    return {
        "repeatCell": {
            "range": grid_range,
            "cell": {"userEnteredFormat": spec.cell_format},
            "fields": spec.mask,
        }
    }
