"""Java library surface over Python builtins: type table, static members and instance methods.

Registries map Java names to host implementations. Each method entry records its return type so the
front-end can type expressions that use it; a ``None`` return type means "the promoted type of the
arguments" (``Math.max(1, 2L)`` is a ``long``).
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from powerassert.errors import (
    ArithmeticException,
    IndexOutOfBoundsException,
    JavaException,
    NullPointerException,
    NumberFormatException,
    StringIndexOutOfBoundsException,
)
from powerassert.runtime import arith
from powerassert.runtime.values import (
    JArray,
    JByte,
    JChar,
    JDouble,
    JFloat,
    JFloating,
    JInt,
    JIntegral,
    JLong,
    JShort,
    box,
    java_str,
    kind_of,
)
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
    ClassType,
    PrimitiveType,
    TypeRef,
)

LIST = ClassType("java.util.List")
SET = ClassType("java.util.Set")
MAP = ClassType("java.util.Map")

_COLLECTIONS = (list, tuple, set, frozenset, JArray)
_SEQUENCES = (list, tuple)
_NUMBERS = (JByte, JShort, JInt, JLong, JFloat, JDouble)

# Java class name -> host classes whose instances are instances of it
JAVA_TYPES: dict[str, tuple[type, ...]] = {
    "java.lang.Object": (object,),
    "java.lang.String": (str,),
    "java.lang.CharSequence": (str,),
    "java.lang.Boolean": (bool,),
    "java.lang.Character": (JChar,),
    "java.lang.Byte": (JByte,),
    "java.lang.Short": (JShort,),
    "java.lang.Integer": (JInt,),
    "java.lang.Long": (JLong,),
    "java.lang.Float": (JFloat,),
    "java.lang.Double": (JDouble,),
    "java.lang.Number": _NUMBERS,
    "java.lang.Comparable": (str, bool) + _NUMBERS,
    "java.lang.Throwable": (BaseException,),
    "java.lang.Exception": (Exception,),
    "java.lang.RuntimeException": (JavaException,),
    "java.lang.Math": (),
    "java.util.Objects": (),
    "java.util.Arrays": (),
    "java.util.Collection": (list, tuple, set, frozenset),
    "java.util.List": _SEQUENCES,
    "java.util.ArrayList": (list,),
    "java.util.Set": (set, frozenset),
    "java.util.HashSet": (set,),
    "java.util.Map": (Mapping,),
    "java.util.HashMap": (dict,),
}

# Simple names usable without an import
DEFAULT_IMPORTS: dict[str, str] = {name.rsplit(".", 1)[-1]: name for name in JAVA_TYPES}

# Classes `new` can instantiate: Java name -> factory
CONSTRUCTORS: dict[str, Callable[..., Any]] = {
    "java.lang.Object": object,
    "java.lang.String": lambda value="": str(value),
    "java.util.ArrayList": lambda items=(): list(items),
    "java.util.HashSet": lambda items=(): set(items),
    "java.util.HashMap": lambda items=None: dict(items or {}),
}


@dataclass(frozen=True)
class Member:
    fn: Callable[..., Any]
    return_type: Optional[TypeRef] = OBJECT
    # primitive parameter types the front-end converts arguments to; None passes them as typed
    param_types: Optional[tuple[TypeRef, ...]] = None


# --- static fields ---

STATIC_FIELDS: dict[tuple[str, str], tuple[Any, TypeRef]] = {
    ("java.lang.Integer", "MAX_VALUE"): (JInt(2**31 - 1), INT),
    ("java.lang.Integer", "MIN_VALUE"): (JInt(-(2**31)), INT),
    ("java.lang.Long", "MAX_VALUE"): (JLong(2**63 - 1), LONG),
    ("java.lang.Long", "MIN_VALUE"): (JLong(-(2**63)), LONG),
    ("java.lang.Short", "MAX_VALUE"): (JShort(2**15 - 1), SHORT),
    ("java.lang.Short", "MIN_VALUE"): (JShort(-(2**15)), SHORT),
    ("java.lang.Byte", "MAX_VALUE"): (JByte(127), BYTE),
    ("java.lang.Byte", "MIN_VALUE"): (JByte(-128), BYTE),
    ("java.lang.Character", "MAX_VALUE"): (JChar(0xFFFF), CHAR),
    ("java.lang.Character", "MIN_VALUE"): (JChar(0), CHAR),
    ("java.lang.Double", "NaN"): (JDouble(math.nan), DOUBLE),
    ("java.lang.Double", "POSITIVE_INFINITY"): (JDouble(math.inf), DOUBLE),
    ("java.lang.Double", "NEGATIVE_INFINITY"): (JDouble(-math.inf), DOUBLE),
    ("java.lang.Double", "MAX_VALUE"): (JDouble(1.7976931348623157e308), DOUBLE),
    ("java.lang.Double", "MIN_VALUE"): (JDouble(5e-324), DOUBLE),
    ("java.lang.Float", "NaN"): (JFloat(math.nan), FLOAT),
    ("java.lang.Float", "POSITIVE_INFINITY"): (JFloat(math.inf), FLOAT),
    ("java.lang.Float", "NEGATIVE_INFINITY"): (JFloat(-math.inf), FLOAT),
    ("java.lang.Float", "MAX_VALUE"): (JFloat(3.4028234663852886e38), FLOAT),
    ("java.lang.Boolean", "TRUE"): (True, BOOLEAN),
    ("java.lang.Boolean", "FALSE"): (False, BOOLEAN),
    ("java.lang.Math", "PI"): (JDouble(math.pi), DOUBLE),
    ("java.lang.Math", "E"): (JDouble(math.e), DOUBLE),
}


# --- static methods ---

def _abs(x: Any) -> Any:
    # abs(MIN_VALUE) wraps back to MIN_VALUE
    return type(x)(abs(x)) if isinstance(x, _NUMBERS) else abs(x)


def _extremum(pick: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def apply(a: Any, b: Any) -> Any:
        if isinstance(a, JFloating) and (math.isnan(a) or math.isnan(b)):
            return type(a)(math.nan)
        return pick(a, b)
    return apply


def _sqrt(x: float) -> JDouble:
    return JDouble(math.sqrt(x) if x >= 0 else math.nan)


def _pow(a: float, b: float) -> JDouble:
    try:
        return JDouble(math.pow(a, b))
    except OverflowError:
        return JDouble(math.inf)
    except ValueError:
        return JDouble(math.nan)


def _floor_div(a: Any, b: Any) -> Any:
    if int(b) == 0:
        raise ArithmeticException("/ by zero")
    return type(a)(int(a) // int(b))


_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: Any) -> JInt:
    if text is None or not _DECIMAL.fullmatch(text) or JInt(int(text)) != int(text):
        raise NumberFormatException(f'For input string: "{text}"')
    return JInt(int(text))


def _compare(a: Any, b: Any) -> JInt:
    return JInt((a > b) - (a < b))


def _require_non_null(value: Any) -> Any:
    if value is None:
        raise NullPointerException()
    return value


STATIC_METHODS: dict[tuple[str, str], Member] = {
    ("java.lang.Math", "abs"): Member(_abs, None),
    ("java.lang.Math", "max"): Member(_extremum(max), None),
    ("java.lang.Math", "min"): Member(_extremum(min), None),
    ("java.lang.Math", "floorDiv"): Member(_floor_div, None),
    ("java.lang.Math", "sqrt"): Member(_sqrt, DOUBLE, (DOUBLE,)),
    ("java.lang.Math", "pow"): Member(_pow, DOUBLE, (DOUBLE, DOUBLE)),
    ("java.lang.Integer", "parseInt"): Member(_parse_int, INT),
    ("java.lang.Integer", "valueOf"): Member(lambda x: _parse_int(x) if isinstance(x, str) else JInt(x), INT),
    ("java.lang.Integer", "compare"): Member(_compare, INT, (INT, INT)),
    ("java.lang.Long", "valueOf"): Member(JLong, LONG, (LONG,)),
    ("java.lang.Long", "compare"): Member(_compare, INT, (LONG, LONG)),
    ("java.lang.Double", "valueOf"): Member(JDouble, DOUBLE, (DOUBLE,)),
    ("java.lang.Double", "isNaN"): Member(math.isnan, BOOLEAN, (DOUBLE,)),
    ("java.lang.Double", "compare"): Member(_compare, INT, (DOUBLE, DOUBLE)),
    ("java.lang.Float", "isNaN"): Member(math.isnan, BOOLEAN, (FLOAT,)),
    ("java.lang.String", "valueOf"): Member(java_str, STRING),
    ("java.lang.Character", "isDigit"): Member(lambda c: c.isdigit(), BOOLEAN, (CHAR,)),
    ("java.lang.Character", "isLetter"): Member(lambda c: c.isalpha(), BOOLEAN, (CHAR,)),
    ("java.util.Objects", "equals"): Member(lambda a, b: a is b or (a is not None and equals(a, b)), BOOLEAN),
    ("java.util.Objects", "isNull"): Member(lambda a: a is None, BOOLEAN),
    ("java.util.Objects", "nonNull"): Member(lambda a: a is not None, BOOLEAN),
    ("java.util.Objects", "requireNonNull"): Member(_require_non_null),
    ("java.util.List", "of"): Member(lambda *items: tuple(_require_non_null(i) for i in items), LIST),
    ("java.util.Set", "of"): Member(lambda *items: frozenset(items), SET),
    ("java.util.Map", "of"): Member(lambda *kv: dict(zip(kv[::2], kv[1::2])), MAP),
    ("java.util.Arrays", "asList"): Member(lambda *items: list(items), LIST),
}


def equals(a: Any, b: Any) -> bool:
    """``a.equals(b)``: boxed primitives are equal only to the same wrapper kind."""
    if kind_of(a) is not None or kind_of(b) is not None:
        return kind_of(a) == kind_of(b) and arith.equals(a, b)
    return bool(a == b)


# --- instance methods on host builtins ---

def _char_at(s: str, index: int) -> JChar:
    if index < 0 or index >= len(s):
        raise StringIndexOutOfBoundsException(f"Index {index} out of bounds for length {len(s)}")
    return JChar(s[index])


def _substring(s: str, begin: int, end: Optional[int] = None) -> str:
    end = len(s) if end is None else end
    if begin < 0 or end > len(s) or begin > end:
        raise StringIndexOutOfBoundsException(f"begin {begin}, end {end}, length {len(s)}")
    return s[begin:end]


def _get(container: Any, key: Any) -> Any:
    if isinstance(container, Mapping):
        return container.get(key)
    if key < 0 or key >= len(container):
        raise IndexOutOfBoundsException(f"Index {key} out of bounds for length {len(container)}")
    return container[key]


def _index_of(container: Any, item: Any) -> JInt:
    if isinstance(container, str):
        return JInt(container.find(item))
    for i, element in enumerate(container):
        if equals(element, item):
            return JInt(i)
    return JInt(-1)


def _contains(container: Any, item: Any) -> bool:
    if isinstance(container, str):
        return item in container
    return any(equals(element, item) for element in container)


def _hash_code(value: Any) -> JInt:
    if isinstance(value, str):
        h = 0
        for c in value:
            h = (31 * h + ord(c)) & 0xFFFFFFFF
        return JInt(h)
    return JInt(hash(value))


def _unbox_as(target: PrimitiveType) -> Callable[[Any], Any]:
    def unbox(x: Any) -> Any:
        return x if kind_of(x) == target else arith.convert(target, x)
    return unbox


# method name -> [(receiver host types, member)], first match wins
INSTANCE_METHODS: dict[str, list[tuple[tuple[type, ...], Member]]] = {
    "length": [((str,), Member(lambda s: JInt(len(s)), INT))],
    "size": [(_COLLECTIONS + (Mapping,), Member(lambda c: JInt(len(c)), INT))],
    "isEmpty": [((str, Mapping) + _COLLECTIONS, Member(lambda c: len(c) == 0, BOOLEAN))],
    "contains": [((str,) + _COLLECTIONS, Member(_contains, BOOLEAN))],
    "containsKey": [((Mapping,), Member(lambda m, k: k in m, BOOLEAN))],
    "containsValue": [((Mapping,), Member(lambda m, v: any(equals(x, v) for x in m.values()), BOOLEAN))],
    "get": [(_SEQUENCES + (Mapping,), Member(_get))],
    "indexOf": [((str,) + _SEQUENCES, Member(_index_of, INT))],
    "charAt": [((str,), Member(_char_at, CHAR, (INT,)))],
    "startsWith": [((str,), Member(lambda s, p: s.startswith(p), BOOLEAN))],
    "endsWith": [((str,), Member(lambda s, p: s.endswith(p), BOOLEAN))],
    "substring": [((str,), Member(_substring, STRING, (INT, INT)))],
    "toUpperCase": [((str,), Member(lambda s: s.upper(), STRING))],
    "toLowerCase": [((str,), Member(lambda s: s.lower(), STRING))],
    "trim": [((str,), Member(lambda s: s.strip(" \t\n\r\f\v\0"), STRING))],
    "equals": [((object,), Member(equals, BOOLEAN))],
    "toString": [((object,), Member(java_str, STRING))],
    "hashCode": [((object,), Member(_hash_code, INT))],
    "intValue": [((JIntegral, JFloating), Member(_unbox_as(INT), INT))],
    "longValue": [((JIntegral, JFloating), Member(_unbox_as(LONG), LONG))],
    "doubleValue": [((JIntegral, JFloating), Member(_unbox_as(DOUBLE), DOUBLE))],
}


def find_instance_method(receiver: Any, name: str) -> Optional[Member]:
    """Bridge entry for ``receiver.name(...)``, or None."""
    for host_types, member in INSTANCE_METHODS.get(name, ()):
        if isinstance(receiver, host_types):
            return member
    return None


def instance_member(host_types: tuple[type, ...], name: str) -> Optional[Member]:
    """Bridge entry for a receiver statically known to be one of ``host_types``."""
    for receiver_types, member in INSTANCE_METHODS.get(name, ()):
        if any(issubclass(t, receiver_types) for t in host_types):
            return member
    return None


def call(member: Member, *args: Any) -> Any:
    return box(member.fn(*args))
