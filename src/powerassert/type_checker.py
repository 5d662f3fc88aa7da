"""Type checker: attribute a static type to every expression node, reject type errors.

Names resolve to captured locals first, then fields of the captured ``this``, then types. Values of
unknown reference type (``Object``) pass through unchecked; the evaluator dispatches on what they
hold at run time.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from powerassert.ast_nodes import (
    ArrayAccess,
    Assign,
    Binary,
    CastExpr,
    Conditional,
    Expr,
    FieldAccess,
    InstanceOfExpr,
    Literal,
    MethodCall,
    Name,
    NewArray,
    NewObject,
    SourceLoc,
    This,
    TypeName,
    Unary,
)
from powerassert.errors import ClassNotFoundException, TypeCheckError
from powerassert.runtime.resolver import Resolver
from powerassert.runtime.values import Cell, box, static_type_of
from powerassert.typerefs import (
    BOOLEAN,
    BYTE,
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    OBJECT,
    PRIMITIVES,
    SHORT,
    STRING,
    ArrayType,
    ClassType,
    PrimitiveType,
    TypeRef,
    unboxed,
)

NULL = ClassType("<null>")

ARITHMETIC = ("+", "-", "*", "/", "%")
SHIFTS = ("<<", ">>", ">>>")
BITWISE = ("&", "|", "^")
LOGICAL = ("&&", "||")
EQUALITY = ("==", "!=")
RELATIONAL = ("<", ">", "<=", ">=")


@dataclass
class Scope:
    """What the names of a predicate can refer to: captured locals and an optional ``this``."""
    locals: Mapping[str, Any] = field(default_factory=dict)
    this: Any = None
    has_this: bool = False
    resolver: Resolver = field(default_factory=Resolver)

    def local(self, name: str) -> Any:
        value = self.locals[name]
        return box(value.value if isinstance(value, Cell) else value)


@dataclass(frozen=True)
class Symbol:
    """How a name-like node resolved. kind: local, this_field, field, static_field, length,
    type, static, virtual, this_method."""
    kind: str
    owner: Optional[TypeRef] = None


@dataclass
class Types:
    """Result of type checking, keyed by AST node identity."""
    of: dict[Expr, TypeRef] = field(default_factory=dict)
    symbols: dict[Expr, Symbol] = field(default_factory=dict)
    # per node, the primitive type each operand is converted to (None: as is)
    conversions: dict[Expr, list[Optional[TypeRef]]] = field(default_factory=dict)
    # instanceof: the type tested against
    targets: dict[Expr, TypeRef] = field(default_factory=dict)
    uses_this: bool = False

    def __getitem__(self, expr: Expr) -> TypeRef:
        return self.of[expr]


def is_numeric(t: TypeRef) -> bool:
    u = unboxed(t)
    return isinstance(u, PrimitiveType) and u.is_numeric


def is_integral(t: TypeRef) -> bool:
    u = unboxed(t)
    return isinstance(u, PrimitiveType) and u.is_integral


def is_boolean(t: TypeRef) -> bool:
    return unboxed(t) == BOOLEAN


def is_reference(t: TypeRef) -> bool:
    return not isinstance(t, PrimitiveType)


def unary_promotion(t: TypeRef) -> TypeRef:
    u = unboxed(t)
    return INT if u in (BYTE, SHORT, CHAR) else u


def binary_promotion(a: TypeRef, b: TypeRef) -> TypeRef:
    kinds = (unboxed(a), unboxed(b))
    for t in (DOUBLE, FLOAT, LONG):
        if t in kinds:
            return t
    return INT


def _dynamic(*types: TypeRef) -> bool:
    return any(t == OBJECT for t in types)


class TypeChecker:
    def __init__(self, scope: Scope, path: Optional[str] = None):
        self.scope = scope
        self.resolver = scope.resolver
        self.path = path
        self.types = Types()
        # runtime values known at quote time (captured locals, this), for field typing
        self.samples: dict[Expr, Any] = {}

    def error(self, message: str, loc: Optional[SourceLoc]) -> TypeCheckError:
        line = loc.line if loc else None
        column = loc.column if loc else None
        return TypeCheckError(message, line, column, (loc.path if loc else None) or self.path)

    def record(self, expr: Expr, t: TypeRef, conversions: Optional[list[Optional[TypeRef]]] = None) -> TypeRef:
        self.types.of[expr] = t
        if conversions is not None:
            self.types.conversions[expr] = conversions
        return t

    # --- types written in source ---

    def type_ref(self, type_name: TypeName) -> TypeRef:
        """Type for a written type; unknown class names stay unresolved until evaluation."""
        base: TypeRef
        if type_name.name in PRIMITIVES:
            base = PRIMITIVES[type_name.name]
        else:
            base = self.resolver.lookup_type(type_name.name) or self._importable(type_name.name) or ClassType(type_name.name)
        for _ in range(type_name.dims):
            base = ArrayType(base)
        return base

    def _importable(self, dotted: str) -> Optional[ClassType]:
        if "." not in dotted:
            return None
        try:
            cls = self.resolver.load_class(dotted)
        except ClassNotFoundException:
            return None
        return ClassType(getattr(cls, "java_name", None) or dotted, host=cls)

    def _is_variable(self, name: str) -> bool:
        return name in self.scope.locals or self._is_this_field(name)

    def _is_this_field(self, name: str) -> bool:
        if not self.scope.has_this or self.scope.this is None:
            return False
        return self.resolver.has_attribute(self.scope.this, name)

    def type_of_name(self, expr: Expr) -> Optional[ClassType]:
        """The type a Name/FieldAccess chain denotes, if it is a type name rather than a value."""
        parts: list[str] = []
        node = expr
        while isinstance(node, FieldAccess):
            parts.append(node.name)
            node = node.target
        if not isinstance(node, Name) or self._is_variable(node.name):
            return None
        parts.append(node.name)
        dotted = ".".join(reversed(parts))
        return self.resolver.lookup_type(dotted) or self._importable(dotted)

    # --- expressions ---

    def check_predicate(self, expr: Expr) -> Types:
        t = self.check(expr)
        if not (is_boolean(t) or _dynamic(t) or isinstance(expr, Assign)):
            raise self.error(f"Predicate must be boolean, found {t}", getattr(expr, "loc", None))
        return self.types

    def check(self, expr: Expr) -> TypeRef:
        method = getattr(self, "check_" + type(expr).__name__, None)
        if method is None:
            raise self.error(f"Unsupported expression: {type(expr).__name__}", getattr(expr, "loc", None))
        return method(expr)

    def check_Literal(self, expr: Literal) -> TypeRef:
        if expr.kind == "string":
            return self.record(expr, STRING)
        if expr.kind == "null":
            return self.record(expr, NULL)
        return self.record(expr, PRIMITIVES[expr.kind])

    def check_Name(self, expr: Name) -> TypeRef:
        if expr.name in self.scope.locals:
            value = self.scope.local(expr.name)
            self.samples[expr] = value
            self.types.symbols[expr] = Symbol("local")
            return self.record(expr, static_type_of(value))
        if self._is_this_field(expr.name):
            this = self.scope.this
            self.types.uses_this = True
            owner = static_type_of(this)
            self.types.symbols[expr] = Symbol("this_field", owner)
            return self.record(expr, self.resolver.field_type(owner, expr.name, this))
        raise self.error(f"Cannot find symbol: {expr.name}", expr.loc)

    def check_This(self, expr: This) -> TypeRef:
        if not self.scope.has_this:
            raise self.error("'this' is not bound", expr.loc)
        self.types.uses_this = True
        self.samples[expr] = self.scope.this
        return self.record(expr, static_type_of(self.scope.this))

    def check_FieldAccess(self, expr: FieldAccess) -> TypeRef:
        owner = self.type_of_name(expr.target)
        if owner is not None:
            self.types.symbols[expr] = Symbol("static_field", owner)
            return self.record(expr, self.resolver.field_type(owner, expr.name))
        target = self.check(expr.target)
        if isinstance(target, ArrayType):
            if expr.name != "length":
                raise self.error(f"Cannot find symbol: {expr.name}", expr.loc)
            self.types.symbols[expr] = Symbol("length")
            return self.record(expr, INT)
        if isinstance(target, PrimitiveType):
            raise self.error(f"{target} cannot be dereferenced", expr.loc)
        self.types.symbols[expr] = Symbol("field", target)
        if expr.target in self.samples:
            return self.record(expr, self.resolver.field_type(target, expr.name, self.samples[expr.target]))
        return self.record(expr, self.resolver.field_type(target, expr.name))

    def check_MethodCall(self, expr: MethodCall) -> TypeRef:
        if expr.target is None:
            if not self.scope.has_this:
                raise self.error(f"Cannot find symbol: {expr.name}()", expr.loc)
            self.types.uses_this = True
            owner: TypeRef = static_type_of(self.scope.this)
            symbol = Symbol("this_method", owner)
        else:
            static_owner = self.type_of_name(expr.target)
            if static_owner is not None:
                owner, symbol = static_owner, Symbol("static", static_owner)
            else:
                owner = self.check(expr.target)
                if isinstance(owner, PrimitiveType):
                    raise self.error(f"{owner} cannot be dereferenced", expr.loc)
                symbol = Symbol("virtual", owner)
        self.types.symbols[expr] = symbol
        arg_types = [self.check(a) for a in expr.args]
        static = symbol.kind == "static"
        params = self.resolver.method_param_types(owner, expr.name, static)
        result = self.resolver.method_return_type(owner, expr.name, static)
        conversions: list[Optional[TypeRef]] = [None] * len(arg_types)
        if params is not None:
            conversions = [p if isinstance(p, PrimitiveType) and is_numeric(a) else None
                           for p, a in zip(params, arg_types)]
            conversions += [None] * (len(arg_types) - len(conversions))
        if result is None:
            numeric = [a for a in arg_types if is_numeric(a)]
            if len(numeric) != len(arg_types) or not numeric:
                result = OBJECT
            else:
                result = unary_promotion(numeric[0])
                for a in numeric[1:]:
                    result = binary_promotion(result, a)
                conversions = [result] * len(arg_types)
        return self.record(expr, result, conversions)

    def check_ArrayAccess(self, expr: ArrayAccess) -> TypeRef:
        array = self.check(expr.array)
        index = self.check(expr.index)
        if not is_integral(index) or unary_promotion(index) != INT:
            if not _dynamic(index):
                raise self.error(f"Array index must be int, found {index}", expr.loc)
        conversions = [None, INT if is_integral(index) else None]
        if isinstance(array, ArrayType):
            return self.record(expr, array.component, conversions)
        if _dynamic(array) or array == ClassType("java.util.List"):
            return self.record(expr, OBJECT, conversions)
        raise self.error(f"Array required, but {array} found", expr.loc)

    def check_NewObject(self, expr: NewObject) -> TypeRef:
        t = self.type_ref(expr.type)
        for a in expr.args:
            self.check(a)
        return self.record(expr, t)

    def check_NewArray(self, expr: NewArray) -> TypeRef:
        conversions: list[Optional[TypeRef]] = []
        for d in expr.dims:
            dt = self.check(d)
            if not is_integral(dt) or unary_promotion(dt) != INT:
                raise self.error(f"Array dimension must be int, found {dt}", getattr(d, "loc", None) or expr.loc)
            conversions.append(INT)
        t = self.type_ref(expr.element)
        for _ in range(len(expr.dims) + expr.extra_dims):
            t = ArrayType(t)
        return self.record(expr, t, conversions)

    def check_Unary(self, expr: Unary) -> TypeRef:
        t = self.check(expr.operand)
        if expr.op == "!":
            if not (is_boolean(t) or _dynamic(t)):
                raise self.error(f"Bad operand type {t} for unary operator '!'", expr.loc)
            return self.record(expr, BOOLEAN, [None])
        if _dynamic(t):
            return self.record(expr, OBJECT, [None])
        if expr.op == "~" and not is_integral(t):
            raise self.error(f"Bad operand type {t} for unary operator '~'", expr.loc)
        if not is_numeric(t):
            raise self.error(f"Bad operand type {t} for unary operator '{expr.op}'", expr.loc)
        promoted = unary_promotion(t)
        return self.record(expr, promoted, [promoted])

    def check_Binary(self, expr: Binary) -> TypeRef:
        left = self.check(expr.left)
        right = self.check(expr.right)
        op = expr.op

        def bad() -> TypeCheckError:
            return self.error(f"Bad operand types for binary operator '{op}': {left} and {right}", expr.loc)

        if op == "+" and (left == STRING or right == STRING):
            return self.record(expr, STRING, [None, None])
        if op in LOGICAL:
            if not all(is_boolean(t) or _dynamic(t) for t in (left, right)):
                raise bad()
            return self.record(expr, BOOLEAN, [None, None])
        if op in BITWISE and is_boolean(left) and is_boolean(right):
            return self.record(expr, BOOLEAN, [BOOLEAN, BOOLEAN])
        if op in ARITHMETIC + BITWISE + SHIFTS:
            if _dynamic(left, right) and all(is_numeric(t) or _dynamic(t) for t in (left, right)):
                return self.record(expr, OBJECT, [None, None])
            if op in ARITHMETIC and is_numeric(left) and is_numeric(right):
                t = binary_promotion(left, right)
                return self.record(expr, t, [t, t])
            if op in BITWISE and is_integral(left) and is_integral(right):
                t = binary_promotion(left, right)
                return self.record(expr, t, [t, t])
            if op in SHIFTS and is_integral(left) and is_integral(right):
                t = unary_promotion(left)
                return self.record(expr, t, [t, unary_promotion(right)])
            raise bad()
        if op in RELATIONAL:
            if _dynamic(left, right) and all(is_numeric(t) or _dynamic(t) for t in (left, right)):
                return self.record(expr, BOOLEAN, [None, None])
            if not (is_numeric(left) and is_numeric(right)):
                raise bad()
            t = binary_promotion(left, right)
            return self.record(expr, BOOLEAN, [t, t])
        if op in EQUALITY:
            if is_numeric(left) and is_numeric(right) and not (is_reference(left) and is_reference(right)):
                t = binary_promotion(left, right)
                return self.record(expr, BOOLEAN, [t, t])
            if is_boolean(left) and is_boolean(right):
                return self.record(expr, BOOLEAN, [None, None])
            if is_reference(left) and is_reference(right):
                return self.record(expr, BOOLEAN, [None, None])
            if _dynamic(left, right):
                return self.record(expr, BOOLEAN, [None, None])
            raise bad()
        raise bad()

    def check_InstanceOfExpr(self, expr: InstanceOfExpr) -> TypeRef:
        t = self.check(expr.operand)
        if isinstance(t, PrimitiveType):
            raise self.error(f"Unexpected type {t}: instanceof needs a reference", expr.loc)
        target = self.type_ref(expr.type)
        if isinstance(target, PrimitiveType):
            raise self.error(f"Unexpected type {target}: instanceof needs a reference type", expr.loc)
        self.types.targets[expr] = target
        return self.record(expr, BOOLEAN)

    def check_CastExpr(self, expr: CastExpr) -> TypeRef:
        t = self.check(expr.operand)
        target = self.type_ref(expr.type)
        if isinstance(target, PrimitiveType):
            ok = (
                (is_numeric(target) and (is_numeric(t) or _dynamic(t)))
                or (target == BOOLEAN and (is_boolean(t) or _dynamic(t)))
            )
            if not ok:
                raise self.error(f"Incompatible types: {t} cannot be converted to {target}", expr.loc)
            return self.record(expr, target, [target])
        if isinstance(t, PrimitiveType):
            raise self.error(f"Incompatible types: {t} cannot be converted to {target}", expr.loc)
        return self.record(expr, target)

    def check_Conditional(self, expr: Conditional) -> TypeRef:
        cond = self.check(expr.cond)
        if not (is_boolean(cond) or _dynamic(cond)):
            raise self.error(f"Incompatible types: {cond} cannot be converted to boolean", expr.loc)
        then = self.check(expr.then)
        other = self.check(expr.other)
        if is_numeric(then) and is_numeric(other) and not (is_reference(then) and is_reference(other)):
            t = binary_promotion(then, other)
            return self.record(expr, t, [None, t, t])
        if is_boolean(then) and is_boolean(other):
            return self.record(expr, BOOLEAN, [None, None, None])
        if then == other or other == NULL:
            return self.record(expr, then, [None, None, None])
        if then == NULL:
            return self.record(expr, other, [None, None, None])
        return self.record(expr, OBJECT, [None, None, None])

    def check_Assign(self, expr: Assign) -> TypeRef:
        if not isinstance(expr.target, Name) or expr.target.name not in self.scope.locals:
            raise self.error("Only captured local variables can be assigned", expr.loc)
        target = self.check(expr.target)
        self.check(expr.value)
        return self.record(expr, target)


def check(expr: Expr, scope: Scope, path: Optional[str] = None) -> Types:
    """Type-check a predicate expression. Raises TypeCheckError on failure."""
    return TypeChecker(scope, path).check_predicate(expr)
