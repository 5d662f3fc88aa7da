"""Runtime values: Java primitive wrappers, arrays, captured-slot cells and host boxing.

Primitives are immutable subclasses of the Python builtin they resemble, so host code receiving them
(user methods, ``len``, ``in``) keeps working, while the evaluator can still dispatch on the exact
Java kind via the ``kind`` class attribute.
"""

import math
import struct
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from powerassert.errors import ArrayIndexOutOfBoundsException, NegativeArraySizeException
from powerassert.typerefs import (
    BOOLEAN,
    BYTE,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    OBJECT,
    SHORT,
    STRING,
    ArrayType,
    ClassType,
    PrimitiveType,
    TypeRef,
)

INT_MIN, INT_MAX = -(1 << 31), (1 << 31) - 1
LONG_MIN, LONG_MAX = -(1 << 63), (1 << 63) - 1


def wrap(value: int, bits: int) -> int:
    """Two's complement truncation of an arbitrary int to ``bits`` bits."""
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def to_f32(x: float) -> float:
    """Round a binary64 value to the nearest binary32 value (ties to even, overflow to infinity)."""
    if math.isnan(x) or math.isinf(x):
        return x
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


class JIntegral(int):
    __slots__ = ()
    bits = 32
    kind: PrimitiveType = INT

    def __new__(cls, value: Any = 0):
        return super().__new__(cls, wrap(int(value), cls.bits))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int.__repr__(self)})"

    def __str__(self) -> str:
        return int.__repr__(self)


class JByte(JIntegral):
    __slots__ = ()
    bits = 8
    kind = BYTE


class JShort(JIntegral):
    __slots__ = ()
    bits = 16
    kind = SHORT


class JInt(JIntegral):
    __slots__ = ()
    bits = 32
    kind = INT


class JLong(JIntegral):
    __slots__ = ()
    bits = 64
    kind = LONG


class JFloating(float):
    kind: PrimitiveType = DOUBLE

    def __repr__(self) -> str:
        return f"{type(self).__name__}({float.__repr__(self)})"

    def __str__(self) -> str:
        return float.__repr__(self)


class JFloat(JFloating):
    kind = FLOAT

    def __new__(cls, value: Any = 0.0):
        return super().__new__(cls, to_f32(float(value)))


class JDouble(JFloating):
    kind = DOUBLE

    def __new__(cls, value: Any = 0.0):
        return super().__new__(cls, float(value))


class JChar(str):
    """A single UTF-16 code unit."""
    kind = CHAR

    def __new__(cls, value: Any = "\0"):
        if isinstance(value, int):
            value = chr(value & 0xFFFF)
        if len(value) != 1:
            raise ValueError(f"char needs exactly one character, got {value!r}")
        return super().__new__(cls, value)

    @property
    def code(self) -> int:
        return ord(self)

    def __repr__(self) -> str:
        return f"JChar({str.__repr__(self)})"


WRAPPERS = {
    BYTE: JByte,
    SHORT: JShort,
    INT: JInt,
    LONG: JLong,
    FLOAT: JFloat,
    DOUBLE: JDouble,
    CHAR: JChar,
}


class Cell:
    """One-field holder for a captured local slot."""
    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Cell({self.value!r})"


def default_value(t: TypeRef) -> Any:
    if t == BOOLEAN:
        return False
    wrapper = WRAPPERS.get(t) if isinstance(t, PrimitiveType) else None
    return wrapper() if wrapper else None


def coerce(t: TypeRef, value: Any) -> Any:
    """Convert a host value to the representation an array of component ``t`` stores."""
    if t == BOOLEAN:
        return bool(value)
    wrapper = WRAPPERS.get(t) if isinstance(t, PrimitiveType) else None
    if wrapper is None:
        return value
    return wrapper(value)


class JArray:
    """Fixed-length Java array with a declared component type."""
    __slots__ = ("component_type", "_items")

    def __init__(self, component_type: TypeRef, items: Iterable[Any] = ()):
        self.component_type = component_type
        self._items = [coerce(component_type, v) for v in items]

    @classmethod
    def new(cls, component_type: TypeRef, dims: list[int]) -> "JArray":
        """Allocate a (multi-dimensional) array; ``component_type`` is the element type of the outer array."""
        length = dims[0]
        if length < 0:
            raise NegativeArraySizeException(str(length))
        if len(dims) > 1:
            if not isinstance(component_type, ArrayType):
                raise ValueError(f"too many dimensions for component type {component_type}")
            inner = [cls.new(component_type.component, dims[1:]) for _ in range(length)]
            return cls(component_type, inner)
        return cls(component_type, [default_value(component_type)] * length)

    @classmethod
    def of(cls, component_type: TypeRef, *values: Any) -> "JArray":
        return cls(component_type, values)

    @property
    def type(self) -> ArrayType:
        return ArrayType(self.component_type)

    def _check(self, index: int) -> int:
        if index < 0 or index >= len(self._items):
            raise ArrayIndexOutOfBoundsException(
                f"Index {index} out of bounds for length {len(self._items)}"
            )
        return index

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Any:
        return self._items[self._check(index)]

    def __setitem__(self, index: int, value: Any) -> None:
        self._items[self._check(index)] = coerce(self.component_type, value)

    def __repr__(self) -> str:
        return f"JArray({self.component_type}, {self._items!r})"


def infer_array(values: list[Any]) -> JArray:
    """Build an array from host values, picking the narrowest common component type."""
    boxed = [box(v) for v in values]
    kinds = {kind_of(v) for v in boxed}
    if kinds and None not in kinds and len(kinds) == 1:
        return JArray(kinds.pop(), boxed)
    if kinds == {INT, LONG}:
        return JArray(LONG, boxed)
    if kinds and kinds <= {INT, LONG, DOUBLE}:
        return JArray(DOUBLE, boxed)
    if boxed and all(isinstance(v, str) and not isinstance(v, JChar) for v in boxed):
        return JArray(STRING, boxed)
    return JArray(OBJECT, boxed)


def box(value: Any) -> Any:
    """Tag a plain host number with its Java kind; other values pass through unchanged."""
    if type(value) is int:
        if INT_MIN <= value <= INT_MAX:
            return JInt(value)
        if LONG_MIN <= value <= LONG_MAX:
            return JLong(value)
        return value
    if type(value) is float:
        return JDouble(value)
    return value


def kind_of(value: Any) -> Optional[PrimitiveType]:
    """Primitive kind of a runtime value, or None for references (and untagged host numbers)."""
    if isinstance(value, bool):
        return BOOLEAN
    return getattr(type(value), "kind", None) if isinstance(value, (JIntegral, JFloating, JChar)) else None


def qualified_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def static_type_of(value: Any) -> TypeRef:
    """Type the front-end assumes for a captured value."""
    kind = kind_of(value)
    if kind is not None:
        return kind
    if value is None:
        return OBJECT
    if isinstance(value, str):
        return STRING
    if isinstance(value, JArray):
        return value.type
    if isinstance(value, (list, tuple)):
        return ClassType("java.util.List")
    if isinstance(value, (set, frozenset)):
        return ClassType("java.util.Set")
    if isinstance(value, Mapping):
        return ClassType("java.util.Map")
    cls = type(value)
    return ClassType(getattr(cls, "java_name", None) or qualified_name(cls), host=cls)


# --- Java toString rendering ---

def _java_decimal(text: str) -> str:
    """Lay out the digits of a shortest round-trip repr the way Double.toString does."""
    sign, digits, exponent = Decimal(text).as_tuple()
    digit_str = "".join(map(str, digits)).rstrip("0") or "0"
    point = exponent + len(digits) - 1  # exponent of the leading digit
    prefix = "-" if sign else ""
    if -3 <= point < 7:
        if point >= 0:
            whole = digit_str[: point + 1].ljust(point + 1, "0")
            frac = digit_str[point + 1:] or "0"
        else:
            whole = "0"
            frac = "0" * (-point - 1) + digit_str
        return f"{prefix}{whole}.{frac}"
    mantissa = digit_str[0] + "." + (digit_str[1:] or "0")
    return f"{prefix}{mantissa}E{point}"


def _special(x: float) -> Optional[str]:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "-0.0" if math.copysign(1.0, x) < 0 else "0.0"
    return None


def java_double_str(x: float) -> str:
    return _special(x) or _java_decimal(float.__repr__(float(x)))


def java_float_str(x: float) -> str:
    special = _special(x)
    if special:
        return special
    x = float(x)
    for precision in range(1, 10):
        text = f"{x:.{precision - 1}e}"
        if to_f32(float(text)) == x:
            return _java_decimal(text)
    return _java_decimal(float.__repr__(x))


def throwable_str(error: BaseException) -> str:
    name = getattr(error, "java_name", None) or qualified_name(type(error))
    message = str(error)
    return f"{name}: {message}" if message else name


def java_str(value: Any) -> str:
    """String.valueOf equivalent for runtime and host values."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, JFloat):
        return java_float_str(value)
    if isinstance(value, float):
        return java_double_str(value)
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, str):
        return str.__str__(value)
    if isinstance(value, BaseException):
        return throwable_str(value)
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{java_str(k)}={java_str(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (JArray, list, tuple, set, frozenset)):
        return "[" + ", ".join(java_str(v) for v in value) + "]"
    return str(value)
