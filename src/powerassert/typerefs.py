"""Type references carried by IR ops: primitives, arrays and named reference types."""

from dataclasses import dataclass, field
from typing import Any, Optional


class TypeRef:
    """Base for all type references."""

    def simple_name(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> Any:
        return str(self)


@dataclass(frozen=True)
class PrimitiveType(TypeRef):
    name: str  # "int", "long", ...

    @property
    def is_numeric(self) -> bool:
        return self.name in NUMERIC_NAMES

    @property
    def is_integral(self) -> bool:
        return self.name in INTEGRAL_NAMES

    @property
    def is_floating(self) -> bool:
        return self.name in ("float", "double")

    def simple_name(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ArrayType(TypeRef):
    component: TypeRef

    def simple_name(self) -> str:
        return self.component.simple_name() + "[]"

    def deep_component_type(self) -> TypeRef:
        t: TypeRef = self
        while isinstance(t, ArrayType):
            t = t.component
        return t

    @property
    def dimensions(self) -> int:
        n = 0
        t: TypeRef = self
        while isinstance(t, ArrayType):
            t = t.component
            n += 1
        return n

    def __str__(self) -> str:
        return f"{self.component}[]"


@dataclass(frozen=True)
class ClassType(TypeRef):
    """Reference type by fully-qualified name, optionally carrying the resolved host class."""
    name: str
    host: Optional[type] = field(default=None, compare=False, hash=False)

    def simple_name(self) -> str:
        if self.host is not None:
            return self.host.__name__
        return self.name.rsplit(".", 1)[-1]

    def __str__(self) -> str:
        return self.name


BYTE = PrimitiveType("byte")
SHORT = PrimitiveType("short")
CHAR = PrimitiveType("char")
INT = PrimitiveType("int")
LONG = PrimitiveType("long")
FLOAT = PrimitiveType("float")
DOUBLE = PrimitiveType("double")
BOOLEAN = PrimitiveType("boolean")
VOID = PrimitiveType("void")

PRIMITIVES = {t.name: t for t in (BYTE, SHORT, CHAR, INT, LONG, FLOAT, DOUBLE, BOOLEAN, VOID)}
INTEGRAL_NAMES = ("byte", "short", "char", "int", "long")
NUMERIC_NAMES = INTEGRAL_NAMES + ("float", "double")

OBJECT = ClassType("java.lang.Object")
STRING = ClassType("java.lang.String")

# Boxed wrapper class -> primitive it unboxes to
UNBOXED = {
    "java.lang.Byte": BYTE,
    "java.lang.Short": SHORT,
    "java.lang.Character": CHAR,
    "java.lang.Integer": INT,
    "java.lang.Long": LONG,
    "java.lang.Float": FLOAT,
    "java.lang.Double": DOUBLE,
    "java.lang.Boolean": BOOLEAN,
}

BOXED = {prim: ClassType(name) for name, prim in UNBOXED.items()}


def unboxed(t: TypeRef) -> TypeRef:
    """Primitive behind a wrapper class type, or the type itself."""
    if isinstance(t, ClassType):
        return UNBOXED.get(t.name, t)
    return t
