"""Render runtime values as length-bounded, Java-source-like literals."""

import math
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from powerassert.runtime.values import (
    JArray,
    JChar,
    JFloat,
    JLong,
    java_double_str,
    java_float_str,
    java_str,
)


@runtime_checkable
class ValueFormatter(Protocol):
    def format(self, value: Any) -> str:
        """Return the string representation of ``value``."""
        ...


def escape_java_string(text: str, length_hint: int) -> str:
    """Escape ``text`` as Java source would; stop with "..." once ``length_hint`` characters are out."""
    out: list[str] = []
    size = 0
    for c in text:
        piece = _ESCAPES.get(c)
        if piece is None:
            piece = f"\\u{ord(c):04x}" if ord(c) < 32 else c
        out.append(piece)
        size += len(piece)
        if size >= length_hint:
            out.append("...")
            break
    return "".join(out)


_ESCAPES = {
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\b": "\\b",
    "\r": "\\r",
    "'": "\\'",
    '"': '\\"',
}


def abbreviate(text: str, max_length: int) -> str:
    return text[:max_length] + "..." if len(text) > max_length else text


class _Entry:
    """Map entry, rendered as ``key=value``."""
    __slots__ = ("key", "value")

    def __init__(self, key: Any, value: Any):
        self.key = key
        self.value = value

    def __str__(self) -> str:
        return f"{java_str(self.key)}={java_str(self.value)}"


class DefaultValueFormatter:
    """Formats primitives as literals, strings quoted and escaped, containers as ``[a, b, ...]``.

    ``length_hint`` bounds the output: containers stop with ``...`` once the text written so far
    exceeds it, and strings and other objects are abbreviated to what is left of it.
    """

    def __init__(self, length_hint: int = 100):
        self.length_hint = length_hint

    def format(self, value: Any) -> str:
        out: list[str] = []
        self._format_value(out, value)
        return "".join(out)

    def _format_value(self, out: list[str], value: Any) -> None:
        if value is None:
            out.append("null")
        elif isinstance(value, bool):
            out.append("true" if value else "false")
        elif isinstance(value, JChar):
            out.append("'" + escape_java_string(value, 100) + "'")
        elif isinstance(value, JLong):
            out.append(f"{int(value)}L")
        elif isinstance(value, int):
            out.append(java_str(value))
        elif isinstance(value, JFloat):
            out.append(self._float_literal(value))
        elif isinstance(value, float):
            out.append(self._double_literal(value))
        elif isinstance(value, str):
            budget = max(10, self.length_hint - _length(out) - 1)
            out.append('"' + escape_java_string(value, budget) + '"')
        elif isinstance(value, Mapping):
            self._format_value(out, [_Entry(k, v) for k, v in value.items()])
        elif isinstance(value, (JArray, list, tuple, set, frozenset)):
            self._format_collection(out, value)
        else:
            out.append(abbreviate(java_str(value), max(10, self.length_hint - _length(out))))

    def _format_collection(self, out: list[str], items: Any) -> None:
        out.append("[")
        first = True
        for item in items:
            if not first:
                out.append(", ")
            if _length(out) > self.length_hint:
                out.append("...")
                break
            self._format_value(out, item)
            first = False
        out.append("]")

    @staticmethod
    def _float_literal(value: float) -> str:
        if math.isnan(value):
            return "Float.NaN"
        if math.isinf(value):
            return "Float.POSITIVE_INFINITY" if value > 0 else "Float.NEGATIVE_INFINITY"
        return java_float_str(value) + "F"

    @staticmethod
    def _double_literal(value: float) -> str:
        if math.isnan(value):
            return "Double.NaN"
        if math.isinf(value):
            return "Double.POSITIVE_INFINITY" if value > 0 else "Double.NEGATIVE_INFINITY"
        return java_double_str(value)


def _length(out: list[str]) -> int:
    return sum(len(s) for s in out)


DEFAULT = DefaultValueFormatter(100)
