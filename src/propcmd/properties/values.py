"""Property value shapes, type inference, and per-type input codecs."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, List, Mapping, Union

PropertyValue = Union[str, int, float, bool, List[str], None]

RESERVED_KEY = "tags"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TRUE_WORDS = frozenset({"true", "yes", "y", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "n", "off", "0", ""})


class ValueType(str, Enum):
    """Semantic type of a property value, used to pick how it is edited."""

    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    DATE = "date"
    LIST = "list"


def is_property_value(raw: Any) -> bool:
    """Return True when ``raw`` is a shape propcmd can edit.

    Scalars, ``None``, and flat lists of strings qualify; mappings and nested
    or mixed lists do not.
    """
    if raw is None or isinstance(raw, (str, bool, int, float)):
        return True
    return isinstance(raw, list) and all(isinstance(item, str) for item in raw)


def infer_type(value: Any) -> ValueType:
    """Classify a stored value.

    Booleans are checked before numbers because ``bool`` is an ``int`` subclass.
    """
    if isinstance(value, bool):
        return ValueType.CHECKBOX
    if isinstance(value, (int, float)):
        return ValueType.NUMBER
    if isinstance(value, list):
        return ValueType.LIST
    if isinstance(value, str) and _DATE_PATTERN.match(value):
        return ValueType.DATE
    return ValueType.TEXT


def default_value(value_type: ValueType) -> PropertyValue:
    """Return the value a property gets when its type is (re)selected."""
    return VALUE_CODECS[ValueType(value_type)].default()


def format_value(value: Any) -> str:
    """Return a short preview of a value for property listings."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return f"[{len(value)} items]"
    if isinstance(value, dict):
        return "{...}"
    return str(value)[:20]


def value_key(value: Any) -> tuple[str, Any]:
    """Return a hashable identity for ``value`` that keeps ``True`` and ``1`` apart."""
    if isinstance(value, list):
        return ("list", tuple(value_key(item) for item in value))
    if isinstance(value, dict):
        return ("dict", tuple(sorted((str(k), value_key(v)) for k, v in value.items())))
    return (type(value).__name__, value)


# Codecs ---------------------------------------------------------------


def _parse_text(text: str) -> PropertyValue:
    return text


def _render_text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_number(text: str) -> PropertyValue:
    cleaned = text.strip()
    if not cleaned:
        return 0
    try:
        number = float(cleaned)
    except ValueError as exc:
        raise ValueError(f"'{text}' is not a number") from exc
    if not math.isfinite(number):
        raise ValueError(f"'{text}' is not a finite number")
    return int(number) if number.is_integer() and "." not in cleaned else number


def _render_number(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return "0"


def _parse_checkbox(text: str) -> PropertyValue:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"'{text}' is not a checkbox value (use true or false)")


def _render_checkbox(value: Any) -> str:
    return "true" if value is True else "false"


def _parse_date(text: str) -> PropertyValue:
    cleaned = text.strip()
    if not cleaned:
        return ""
    if not _DATE_PATTERN.match(cleaned):
        raise ValueError(f"'{text}' is not a date in YYYY-MM-DD form")
    try:
        date.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError(f"'{text}' is not a valid calendar date") from exc
    return cleaned


def _render_date(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_list(text: str) -> PropertyValue:
    return [item.strip() for item in text.split(",") if item.strip()]


def _render_list(value: Any) -> str:
    return ", ".join(value) if isinstance(value, list) else ""


@dataclass(frozen=True)
class ValueCodec:
    """How one value type is read from user input, shown back, and defaulted.

    Attributes:
        parse: Convert typed text into a stored value; raises ``ValueError``.
        render: Convert a stored value into editable text.
        default: Produce a fresh default value.
    """

    parse: Callable[[str], PropertyValue]
    render: Callable[[Any], str]
    default: Callable[[], PropertyValue]


VALUE_CODECS: Mapping[ValueType, ValueCodec] = {
    ValueType.TEXT: ValueCodec(_parse_text, _render_text, lambda: ""),
    ValueType.NUMBER: ValueCodec(_parse_number, _render_number, lambda: 0),
    ValueType.CHECKBOX: ValueCodec(_parse_checkbox, _render_checkbox, lambda: False),
    ValueType.DATE: ValueCodec(_parse_date, _render_date, lambda: ""),
    ValueType.LIST: ValueCodec(_parse_list, _render_list, list),
}


def parse_value(text: str, value_type: ValueType) -> PropertyValue:
    """Convert user input into a value of ``value_type``.

    Raises:
        ValueError: If ``text`` cannot be read as that type.
    """
    return VALUE_CODECS[ValueType(value_type)].parse(text)


def render_value(value: Any, value_type: ValueType) -> str:
    """Return the editable text form of ``value`` for ``value_type``."""
    return VALUE_CODECS[ValueType(value_type)].render(value)


__all__ = [
    "PropertyValue",
    "RESERVED_KEY",
    "VALUE_CODECS",
    "ValueCodec",
    "ValueType",
    "default_value",
    "format_value",
    "infer_type",
    "is_property_value",
    "parse_value",
    "render_value",
    "value_key",
]
