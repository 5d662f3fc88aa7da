"""Java primitive arithmetic over runtime values.

Every function returns the result as a runtime value, raises ArithmeticException for integer division
by zero, or returns None when the operand kinds are not supported by the operation.
"""

import math
from typing import Any, Callable, Optional

from powerassert.errors import ArithmeticException
from powerassert.runtime.values import (
    INT_MAX,
    INT_MIN,
    LONG_MAX,
    LONG_MIN,
    JByte,
    JChar,
    JDouble,
    JFloat,
    JInt,
    JLong,
    JShort,
    kind_of,
    to_f32,
)
from powerassert.typerefs import BYTE, CHAR, DOUBLE, FLOAT, INT, LONG, SHORT, PrimitiveType

# Integer kinds that take part in mixed comparisons
_INTEGRAL = (BYTE, SHORT, CHAR, INT, LONG)
_FLOATING = (FLOAT, DOUBLE)


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _trunc_mod(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _float_div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _float_mod(a: float, b: float) -> float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)


def _int_div(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticException("/ by zero")
    return _trunc_div(a, b)


def _int_mod(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticException("/ by zero")
    return _trunc_mod(a, b)


_INT_OPS: dict[str, Callable[[int, int], int]] = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "div": _int_div,
    "mod": _int_mod,
    "and": lambda a, b: a & b,
    "or": lambda a, b: a | b,
    "xor": lambda a, b: a ^ b,
}

_FLOAT_OPS: dict[str, Callable[[float, float], float]] = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "div": _float_div,
    "mod": _float_mod,
}

SHIFTS = ("lshl", "ashr", "lshr")


def _shift(kind: str, left: Any, right: Any) -> Optional[Any]:
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind not in (INT, LONG) or right_kind not in _INTEGRAL:
        return None
    width = 32 if left_kind == INT else 64
    wrapper = JInt if left_kind == INT else JLong
    amount = (right.code if right_kind == CHAR else int(right)) & (width - 1)
    value = int(left)
    if kind == "lshl":
        return wrapper(value << amount)
    if kind == "ashr":
        return wrapper(value >> amount)
    return wrapper((value & ((1 << width) - 1)) >> amount)


def binary(kind: str, left: Any, right: Any) -> Optional[Any]:
    """Apply a binary arithmetic, bitwise or shift op (``kind`` is the op name, e.g. "add")."""
    if kind in SHIFTS:
        return _shift(kind, left, right)
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind != right_kind:
        return None
    if left_kind == INT and kind in _INT_OPS:
        return JInt(_INT_OPS[kind](int(left), int(right)))
    if left_kind == LONG and kind in _INT_OPS:
        return JLong(_INT_OPS[kind](int(left), int(right)))
    if left_kind == FLOAT and kind in _FLOAT_OPS:
        return JFloat(_FLOAT_OPS[kind](float(left), float(right)))
    if left_kind == DOUBLE and kind in _FLOAT_OPS:
        return JDouble(_FLOAT_OPS[kind](float(left), float(right)))
    return None


def negate(value: Any) -> Optional[Any]:
    k = kind_of(value)
    if k == INT:
        return JInt(-int(value))
    if k == LONG:
        return JLong(-int(value))
    if k == FLOAT:
        return JFloat(-float(value))
    if k == DOUBLE:
        return JDouble(-float(value))
    return None


def _numeric(value: Any) -> Optional[float | int]:
    k = kind_of(value)
    if k == CHAR:
        return value.code
    if k in _INTEGRAL:
        return int(value)
    if k in _FLOATING:
        return float(value)
    return None


_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "lt": lambda a, b: a < b,
    "le": lambda a, b: a <= b,
    "gt": lambda a, b: a > b,
    "ge": lambda a, b: a >= b,
}


def compare(kind: str, left: Any, right: Any) -> Optional[bool]:
    """Relational test; double comparison if either side is floating, long comparison otherwise."""
    a, b = _numeric(left), _numeric(right)
    if a is None or b is None:
        return None
    if isinstance(a, float) or isinstance(b, float):
        return _COMPARISONS[kind](float(a), float(b))
    return _COMPARISONS[kind](a, b)


def equals(left: Any, right: Any) -> bool:
    """Value equality: numeric kinds are promoted to the wider kind, references use host equality."""
    a, b = _numeric(left), _numeric(right)
    if a is not None and b is not None:
        if isinstance(a, float) or isinstance(b, float):
            return float(a) == float(b)
        return a == b
    if left is None or right is None:
        return left is right
    if kind_of(left) != kind_of(right):
        return False
    return bool(left == right)


def _float_to_integral(x: float, lo: int, hi: int) -> int:
    if math.isnan(x):
        return 0
    if x <= lo:
        return lo
    if x >= hi:
        return hi
    return int(x)


def _int_to_f32(value: int) -> float:
    """Round an integer to binary32 in one step (no intermediate binary64 rounding)."""
    magnitude = abs(value)
    excess = magnitude.bit_length() - 24
    if excess > 0:
        quotient, remainder = divmod(magnitude, 1 << excess)
        half = 1 << (excess - 1)
        if remainder > half or (remainder == half and quotient & 1):
            quotient += 1
        magnitude = quotient << excess
    return to_f32(math.copysign(float(magnitude), value))


_INTEGRAL_TARGETS = {
    BYTE: JByte,
    SHORT: JShort,
    INT: JInt,
    LONG: JLong,
}


def convert(target: PrimitiveType, value: Any) -> Optional[Any]:
    """Primitive conversion (widening or narrowing) of ``value`` to ``target``."""
    source = kind_of(value)
    if source is None or source == target:
        return None
    if source in _INTEGRAL:
        n = value.code if source == CHAR else int(value)
        if target in _INTEGRAL_TARGETS:
            return _INTEGRAL_TARGETS[target](n)
        if target == CHAR:
            return JChar(n & 0xFFFF)
        if target == FLOAT:
            return JFloat(_int_to_f32(n))
        if target == DOUBLE:
            return JDouble(float(n))
        return None
    if source in _FLOATING:
        x = float(value)
        if target == LONG:
            return JLong(_float_to_integral(x, LONG_MIN, LONG_MAX))
        if target in (INT, SHORT, BYTE, CHAR):
            n = _float_to_integral(x, INT_MIN, INT_MAX)
            return JChar(n & 0xFFFF) if target == CHAR else _INTEGRAL_TARGETS[target](n)
        if target == FLOAT:
            return JFloat(x)
        if target == DOUBLE:
            return JDouble(x)
    return None
