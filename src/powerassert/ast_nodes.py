"""AST node definitions for Java expressions. Every grammar production maps to one node type."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class SourceLoc:
    line: int
    column: int
    path: Optional[str] = None


@dataclass
class TypeName:
    """A type as written: primitive keyword or (possibly dotted) class name, plus array dimensions."""
    name: str
    dims: int = 0
    loc: Optional[SourceLoc] = None

    def __str__(self) -> str:
        return self.name + "[]" * self.dims


# --- Expressions ---

class Expr:
    """Base for all expressions; no fields so subclasses control field order."""
    pass


@dataclass(eq=False)
class Literal(Expr):
    kind: str  # "int", "long", "float", "double", "char", "string", "boolean", "null"
    value: Any
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class Name(Expr):
    """Simple name: a local, a field of ``this``, or the first part of a type name."""
    name: str
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class This(Expr):
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class FieldAccess(Expr):
    """target.name; also a qualified name like java.lang.Integer.MAX_VALUE before resolution."""
    target: Expr
    name: str
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class MethodCall(Expr):
    """target.name(args); target None calls a method of ``this``."""
    target: Optional[Expr]
    name: str
    args: list[Expr] = field(default_factory=list)
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class ArrayAccess(Expr):
    array: Expr
    index: Expr
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class NewObject(Expr):
    type: TypeName
    args: list[Expr] = field(default_factory=list)
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class NewArray(Expr):
    """new T[d1][d2]...[]...: ``element`` has no dims; ``extra_dims`` counts the trailing []."""
    element: TypeName
    dims: list[Expr] = field(default_factory=list)
    extra_dims: int = 0
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class Unary(Expr):
    op: str  # "-", "+", "!", "~"
    operand: Expr
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class Binary(Expr):
    op: str  # source symbol: "+", "<<", "==", "&&", ...
    left: Expr
    right: Expr
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class InstanceOfExpr(Expr):
    operand: Expr
    type: TypeName
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class CastExpr(Expr):
    type: TypeName
    operand: Expr
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class Conditional(Expr):
    cond: Expr
    then: Expr
    other: Expr
    loc: Optional[SourceLoc] = None


@dataclass(eq=False)
class Assign(Expr):
    target: Expr
    value: Expr
    loc: Optional[SourceLoc] = None
