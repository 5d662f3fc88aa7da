"""Lower a type-checked expression AST to IR: a Lambda whose single block returns the predicate value.

Every op is recorded in the block it is evaluated in; short-circuit and ternary operands get their own
bodies, each ending in a Yield. Primitive promotions become explicit Conv ops.
"""

import logging
from typing import Optional

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
    This,
    Unary,
)
from powerassert.ir import (
    ArrayLength,
    ArrayLoad,
    BinaryOp,
    Block,
    Body,
    Cast,
    CompareOp,
    CondAnd,
    CondOr,
    Const,
    Conv,
    FieldLoad,
    FieldRef,
    InstanceOf,
    Invoke,
    Lambda,
    MethodRef,
    Neg,
    New,
    Not,
    Op,
    Parameter,
    Quoted,
    Return,
    Ternary,
    Value,
    Var,
    VarLoad,
    VarStore,
    Yield,
)
from powerassert.runtime.values import Cell, JInt, JLong, box, static_type_of
from powerassert.type_checker import NULL, Scope, Types
from powerassert.typerefs import INT, LONG, OBJECT, PrimitiveType, TypeRef, unboxed

logger = logging.getLogger(__name__)

BINARY_OPS = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "div",
    "%": "mod",
    "&": "and",
    "|": "or",
    "^": "xor",
    "<<": "lshl",
    ">>": "ashr",
    ">>>": "lshr",
}

COMPARE_OPS = {"==": "eq", "!=": "neq", "<": "lt", "<=": "le", ">": "gt", ">=": "ge"}


class Lowerer:
    def __init__(self, scope: Scope, types: Types):
        self.scope = scope
        self.types = types
        self.vars: dict[str, Var] = {}
        self.this_param: Optional[Parameter] = None
        if types.uses_this:
            self.this_param = Parameter("this", static_type_of(scope.this))
        self.blocks: list[Block] = []

    def emit(self, op: Op) -> Op:
        self.blocks[-1].ops.append(op)
        return op

    def lower(self, expr: Expr) -> Quoted:
        entry = Block(parameters=[self.this_param] if self.this_param else [])
        self.blocks.append(entry)
        self.emit(Return(self.lower_expr(expr)))
        self.blocks.pop()
        root = Lambda(Body([entry]))

        captured: dict = {var: _cell(self.scope.locals[name]) for name, var in self.vars.items()}
        if self.this_param is not None:
            captured[self.this_param] = self.scope.this
        logger.debug("lowered predicate: %d ops, %d captured", len(entry.ops), len(captured))
        return Quoted(root, captured)

    def body(self, expr: Expr, target: Optional[TypeRef] = None) -> Body:
        """Lower ``expr`` into a fresh single-block body ending in a Yield."""
        block = Block()
        self.blocks.append(block)
        value = self.convert(self.lower_expr(expr), self.types[expr], target)
        self.emit(Yield(value))
        self.blocks.pop()
        return Body([block])

    def convert(self, value: Value, source: TypeRef, target: Optional[TypeRef]) -> Value:
        """Insert a Conv when a primitive (or boxed) value changes primitive type."""
        if not isinstance(target, PrimitiveType) or source == OBJECT or source == NULL:
            return value
        if source == target:
            return value
        if not isinstance(unboxed(source), PrimitiveType):
            return value
        return self.emit(Conv(target, value))

    def operand(self, parent: Expr, index: int, expr: Expr) -> Value:
        conversions = self.types.conversions.get(parent)
        target = conversions[index] if conversions and index < len(conversions) else None
        return self.convert(self.lower_expr(expr), self.types[expr], target)

    def variable(self, name: str) -> Var:
        if name not in self.vars:
            self.vars[name] = Var(name, len(self.vars), static_type_of(self.scope.local(name)))
        return self.vars[name]

    def this_value(self) -> Value:
        assert self.this_param is not None
        return self.this_param

    # --- expressions ---

    def lower_expr(self, expr: Expr) -> Value:
        method = getattr(self, "lower_" + type(expr).__name__)
        return method(expr)

    def lower_Literal(self, expr: Literal) -> Value:
        return self.emit(Const(expr.value, self.types[expr] if expr.kind != "null" else OBJECT))

    def lower_Name(self, expr: Name) -> Value:
        symbol = self.types.symbols[expr]
        if symbol.kind == "local":
            return self.emit(VarLoad(self.variable(expr.name)))
        field = FieldRef(symbol.owner, expr.name, self.types[expr])
        return self.emit(FieldLoad(field, self.this_value()))

    def lower_This(self, expr: This) -> Value:
        return self.this_value()

    def lower_FieldAccess(self, expr: FieldAccess) -> Value:
        symbol = self.types.symbols[expr]
        if symbol.kind == "static_field":
            return self.emit(FieldLoad(FieldRef(symbol.owner, expr.name, self.types[expr])))
        target = self.lower_expr(expr.target)
        if symbol.kind == "length":
            return self.emit(ArrayLength(target))
        return self.emit(FieldLoad(FieldRef(symbol.owner, expr.name, self.types[expr]), target))

    def lower_MethodCall(self, expr: MethodCall) -> Value:
        symbol = self.types.symbols[expr]
        receiver: Optional[Value] = None
        if symbol.kind == "this_method":
            receiver = self.this_value()
        elif symbol.kind == "virtual":
            receiver = self.lower_expr(expr.target)
        args = [self.operand(expr, i, a) for i, a in enumerate(expr.args)]
        conversions = self.types.conversions.get(expr) or []
        param_types = tuple(
            (conversions[i] if i < len(conversions) and conversions[i] else self.types[a])
            for i, a in enumerate(expr.args)
        )
        method = MethodRef(symbol.owner, expr.name, param_types, self.types[expr])
        if receiver is None:
            return self.emit(Invoke(method, args))
        return self.emit(Invoke(method, [receiver] + args, has_receiver=True))

    def lower_ArrayAccess(self, expr: ArrayAccess) -> Value:
        array = self.lower_expr(expr.array)
        index = self.operand(expr, 1, expr.index)
        return self.emit(ArrayLoad(array, index, self.types[expr]))

    def lower_NewObject(self, expr: NewObject) -> Value:
        args = [self.lower_expr(a) for a in expr.args]
        return self.emit(New(self.types[expr], args, tuple(self.types[a] for a in expr.args)))

    def lower_NewArray(self, expr: NewArray) -> Value:
        dims = [self.operand(expr, i, d) for i, d in enumerate(expr.dims)]
        return self.emit(New(self.types[expr], dims))

    def lower_Unary(self, expr: Unary) -> Value:
        operand = self.operand(expr, 0, expr.operand)
        t = self.types[expr]
        if expr.op == "!":
            return self.emit(Not(operand))
        if expr.op == "+":
            return operand
        if expr.op == "-":
            return self.emit(Neg(operand, t))
        # ~x is x ^ -1
        minus_one = self.emit(Const(JLong(-1), LONG) if t == LONG else Const(JInt(-1), INT))
        return self.emit(BinaryOp("xor", operand, minus_one, t))

    def lower_Binary(self, expr: Binary) -> Value:
        if expr.op in ("&&", "||"):
            operands = _flatten(expr, expr.op)
            bodies = [self.body(o) for o in operands]
            return self.emit(CondAnd(bodies) if expr.op == "&&" else CondOr(bodies))
        left = self.operand(expr, 0, expr.left)
        right = self.operand(expr, 1, expr.right)
        if expr.op in COMPARE_OPS:
            return self.emit(CompareOp(COMPARE_OPS[expr.op], left, right))
        return self.emit(BinaryOp(BINARY_OPS[expr.op], left, right, self.types[expr]))

    def lower_InstanceOfExpr(self, expr: InstanceOfExpr) -> Value:
        operand = self.lower_expr(expr.operand)
        return self.emit(InstanceOf(self.types.targets[expr], operand))

    def lower_CastExpr(self, expr: CastExpr) -> Value:
        target = self.types[expr]
        operand = self.lower_expr(expr.operand)
        if isinstance(target, PrimitiveType):
            source = self.types[expr.operand]
            if source == target:
                return operand
            if source == OBJECT:
                return self.emit(Conv(target, operand))
            return self.convert(operand, source, target)
        return self.emit(Cast(target, operand))

    def lower_Conditional(self, expr: Conditional) -> Value:
        conversions = self.types.conversions.get(expr) or [None, None, None]
        bodies = [
            self.body(expr.cond),
            self.body(expr.then, conversions[1]),
            self.body(expr.other, conversions[2]),
        ]
        return self.emit(Ternary(bodies, self.types[expr]))

    def lower_Assign(self, expr: Assign) -> Value:
        value = self.lower_expr(expr.value)
        return self.emit(VarStore(self.variable(expr.target.name), value))


def _flatten(expr: Expr, op: str) -> list[Expr]:
    """Operands of a left-nested chain ``a op b op c``."""
    if isinstance(expr, Binary) and expr.op == op:
        return _flatten(expr.left, op) + [expr.right]
    return [expr]


def _cell(value) -> Cell:
    return value if isinstance(value, Cell) else Cell(box(value))


def lower(expr: Expr, scope: Scope, types: Types) -> Quoted:
    """Lower a type-checked predicate to a Quoted op tree with its captured values."""
    return Lowerer(scope, types).lower(expr)

