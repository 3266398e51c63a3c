"""Style sheet for converted documents.

A style sheet holds one paragraph style and four heading styles. Callers may
hand in a partial mapping (the shape the editor's format settings panel
saves, camelCase or snake_case keys); every missing or invalid field falls
back to the built-in default for that field alone.
"""
import json
from dataclasses import asdict, dataclass, fields, is_dataclass, replace
from enum import Enum
from typing import Any, Mapping

from work2word.log import get_logger

LOGGER = get_logger(__name__)

HEADING_SLOTS = ("heading1", "heading2", "heading3", "heading4")


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


@dataclass(frozen=True)
class ParagraphStyle:
    font_family: str
    font_size: float
    line_height: float
    paragraph_spacing: float
    first_line_indent: float

    def first_line_indent_pt(self) -> float:
        # Indent is counted in characters of the body font.
        return self.first_line_indent * self.font_size


@dataclass(frozen=True)
class HeadingStyle:
    font_family: str
    font_size: float
    line_height: float
    alignment: Alignment
    spacing_before: float
    spacing_after: float


DEFAULT_PARAGRAPH = ParagraphStyle("宋体", 12, 1.5, 6, 2)
DEFAULT_HEADINGS = {
    "heading1": HeadingStyle("黑体", 22, 1.5, Alignment.CENTER, 12, 12),
    "heading2": HeadingStyle("黑体", 16, 1.5, Alignment.LEFT, 12, 6),
    "heading3": HeadingStyle("黑体", 14, 1.5, Alignment.LEFT, 6, 6),
    "heading4": HeadingStyle("黑体", 12, 1.5, Alignment.LEFT, 6, 6),
}

_CAMEL_KEYS = {
    "fontFamily": "font_family",
    "fontSize": "font_size",
    "lineHeight": "line_height",
    "paragraphSpacing": "paragraph_spacing",
    "firstLineIndent": "first_line_indent",
    "spacingBefore": "spacing_before",
    "spacingAfter": "spacing_after",
}
_SNAKE_TO_CAMEL = {v: k for k, v in _CAMEL_KEYS.items()}
_POSITIVE_FIELDS = {"font_size", "line_height"}


def heading_slot(depth: int) -> str:
    try:
        depth = int(depth)
    except (TypeError, ValueError):
        depth = 1
    return HEADING_SLOTS[min(max(depth, 1), 4) - 1]


@dataclass(frozen=True)
class StyleSheet:
    paragraph: ParagraphStyle = DEFAULT_PARAGRAPH
    heading1: HeadingStyle = DEFAULT_HEADINGS["heading1"]
    heading2: HeadingStyle = DEFAULT_HEADINGS["heading2"]
    heading3: HeadingStyle = DEFAULT_HEADINGS["heading3"]
    heading4: HeadingStyle = DEFAULT_HEADINGS["heading4"]

    def heading(self, depth: int) -> HeadingStyle:
        return getattr(self, heading_slot(depth))

    @classmethod
    def from_mapping(cls, data: Any = None) -> "StyleSheet":
        if isinstance(data, StyleSheet):
            return data
        data = _as_mapping(data, "style sheet")
        values = {"paragraph": _merge(data.get("paragraph"), DEFAULT_PARAGRAPH, "paragraph")}
        for slot in HEADING_SLOTS:
            values[slot] = _merge(data.get(slot), DEFAULT_HEADINGS[slot], slot)
        return cls(**values)

    def to_dict(self) -> dict:
        out = {}
        for item in fields(self):
            style = getattr(self, item.name)
            entry = {}
            for key, value in asdict(style).items():
                if isinstance(value, Alignment):
                    value = value.value
                entry[_SNAKE_TO_CAMEL.get(key, key)] = value
            out[item.name] = entry
        return out


def _as_mapping(data, label: str) -> Mapping:
    if data is None:
        return {}
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, Mapping):
        return data
    LOGGER.warning("Ignoring %s of type %s, using defaults", label, type(data).__name__)
    return {}


def _normalize_keys(data: Mapping) -> dict:
    return {_CAMEL_KEYS.get(key, key): value for key, value in data.items()}


def _coerce_number(value, default: float, name: str, where: str) -> float:
    if isinstance(value, bool):
        number = None
    elif isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    else:
        number = None
    if number is None or number != number:
        LOGGER.warning("Invalid %s.%s=%r, using %s", where, name, value, default)
        return default
    if number < 0 or (name in _POSITIVE_FIELDS and number == 0):
        LOGGER.warning("Out of range %s.%s=%r, using %s", where, name, value, default)
        return default
    return number


def _coerce_alignment(value, default: Alignment, where: str) -> Alignment:
    if isinstance(value, Alignment):
        return value
    try:
        return Alignment(str(value).strip().lower())
    except ValueError:
        LOGGER.warning("Unknown %s.alignment=%r, using %s", where, value, default.value)
        return default


def _merge(data, default, where: str):
    data = _normalize_keys(_as_mapping(data, where))
    changes = {}
    for item in fields(default):
        if item.name not in data or data[item.name] is None:
            continue
        value = data[item.name]
        current = getattr(default, item.name)
        if item.name == "alignment":
            changes[item.name] = _coerce_alignment(value, current, where)
        elif item.name == "font_family":
            if isinstance(value, str) and value.strip():
                changes[item.name] = value.strip()
            else:
                LOGGER.warning("Invalid %s.font_family=%r, using %s", where, value, current)
        else:
            changes[item.name] = _coerce_number(value, current, item.name, where)
    return replace(default, **changes) if changes else default


def resolve_style(override: Any, block_kind) -> ParagraphStyle | HeadingStyle:
    """Return the effective style for ``block_kind``.

    ``block_kind`` is ``"paragraph"``, a heading slot name (``"heading2"``)
    or a heading depth. Depths above four use the fourth heading style.
    """
    sheet = StyleSheet.from_mapping(override)
    if isinstance(block_kind, int) and not isinstance(block_kind, bool):
        return sheet.heading(block_kind)
    if block_kind == "paragraph":
        return sheet.paragraph
    if isinstance(block_kind, str) and block_kind.startswith("heading"):
        return sheet.heading(block_kind[len("heading"):] or 1)
    raise ValueError(f"unknown block kind: {block_kind!r}")


def load_style_sheet(path: str) -> StyleSheet:
    with open(path, "r", encoding="utf-8-sig") as f:
        data = json.load(f)
    if isinstance(data, dict) and "format_settings" in data:
        data = data["format_settings"]
    return StyleSheet.from_mapping(data)
