"""Value stringification, strict scalar parsing and date layout helpers."""

import re
import json
import math
from functools import lru_cache
from typing import Any, Optional

_INT_RE = re.compile(r"[+-]?[0-9]+")

_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}

# Reference-date layout tokens, longest first where prefixes overlap.
_LAYOUT_TOKENS = [
    ("Z07:00", "%z"),
    ("-07:00", "%z"),
    ("-0700", "%z"),
    ("January", "%B"),
    ("Monday", "%A"),
    (".000000", ".%f"),
    (".000", ".%f"),
    ("2006", "%Y"),
    ("Jan", "%b"),
    ("Mon", "%a"),
    ("MST", "%Z"),
    ("01", "%m"),
    ("02", "%d"),
    ("15", "%H"),
    ("03", "%I"),
    ("04", "%M"),
    ("05", "%S"),
    ("06", "%y"),
    ("PM", "%p"),
]


def stringify(value: Any) -> str:
    """
    Render a JSON value as text.

    Booleans become ``true``/``false``, null becomes ``null``, integral
    floats drop their fractional part and containers become compact JSON.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def parse_int(text: str) -> int:
    """Parse a base-10 integer with an optional sign and nothing else."""
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    return int(text)


def parse_float(text: str) -> float:
    """Parse a float without surrounding whitespace or digit separators."""
    if not text or text != text.strip() or "_" in text or not text.isascii():
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


def parse_bool(text: str) -> bool:
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"invalid syntax: {text!r}")


def as_number(value: Any) -> Optional[float]:
    """Numeric view of a value, or None if it has none."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return parse_float(value)
        except ValueError:
            return None
    return None


@lru_cache(maxsize=256)
def to_strftime(layout: str) -> str:
    """
    Translate a date layout into strftime directives.

    Layouts that already contain ``%`` are returned unchanged. Anything else
    is read as a reference-date layout (``2006-01-02T15:04:05Z07:00``).
    """
    if "%" in layout:
        return layout

    out = []
    position = 0
    while position < len(layout):
        for token, directive in _LAYOUT_TOKENS:
            if layout.startswith(token, position):
                out.append(directive)
                position += len(token)
                break
        else:
            out.append(layout[position])
            position += 1

    return "".join(out)
