"""Decompiler: render an op (or value) back to a Java-like source expression.

The output is meant for humans reading a diagnostic; it need not be a compilable expression, and ops
outside the supported set fall back to a structural dump.
"""

from enum import IntEnum
from typing import Optional

from powerassert import value_formatter
from powerassert.errors import ClassNotFoundException
from powerassert.ir import (
    BINARY_KINDS,
    COMPARE_KINDS,
    ArrayLength,
    ArrayLoad,
    BinaryOp,
    Body,
    Cast,
    CompareOp,
    CondAnd,
    Const,
    Conv,
    FieldLoad,
    InstanceOf,
    Invoke,
    Neg,
    New,
    Not,
    Op,
    Parameter,
    Return,
    Ternary,
    ThisOp,
    Value,
    VarLoad,
    Yield,
)
from powerassert.runtime.resolver import Resolver
from powerassert.typerefs import ArrayType, ClassType, TypeRef
from powerassert.value_formatter import ValueFormatter


class Precedence(IntEnum):
    """Strongest binding first."""
    LITERAL = 0
    DEREFERENCE = 1
    POSTFIX = 2
    UNARY = 3
    MULTIPLICATIVE = 4
    ADDITIVE = 5
    SHIFT = 6
    RELATIONAL = 7
    EQUALITY = 8
    BITWISE_AND = 9
    BITWISE_XOR = 10
    BITWISE_OR = 11
    LOGICAL_AND = 12
    LOGICAL_OR = 13
    TERNARY = 14
    ASSIGNMENT = 15
    PARENTHESES = 16

    @staticmethod
    def of(op: Op) -> "Precedence":
        return _PRECEDENCE.get(op.kind, Precedence.LITERAL)


_PRECEDENCE = {
    "java.cexpression": Precedence.TERNARY,
    "java.cand": Precedence.LOGICAL_AND,
    "java.cor": Precedence.LOGICAL_OR,
    "add": Precedence.ADDITIVE,
    "sub": Precedence.ADDITIVE,
    "mul": Precedence.MULTIPLICATIVE,
    "div": Precedence.MULTIPLICATIVE,
    "mod": Precedence.MULTIPLICATIVE,
    "ashr": Precedence.SHIFT,
    "lshr": Precedence.SHIFT,
    "lshl": Precedence.SHIFT,
    "eq": Precedence.EQUALITY,
    "neq": Precedence.EQUALITY,
    "lt": Precedence.RELATIONAL,
    "le": Precedence.RELATIONAL,
    "gt": Precedence.RELATIONAL,
    "ge": Precedence.RELATIONAL,
    "instanceof": Precedence.RELATIONAL,
    "and": Precedence.BITWISE_AND,
    "or": Precedence.BITWISE_OR,
    "xor": Precedence.BITWISE_XOR,
    "not": Precedence.UNARY,
    "neg": Precedence.UNARY,
    "conv": Precedence.UNARY,
    "cast": Precedence.UNARY,
    "array.load": Precedence.DEREFERENCE,
    "array.length": Precedence.DEREFERENCE,
    "invoke": Precedence.DEREFERENCE,
    "field.load": Precedence.DEREFERENCE,
}

OP_SYMBOLS = {
    "eq": "==",
    "neq": "!=",
    "lt": "<",
    "gt": ">",
    "le": "<=",
    "ge": ">=",
    "neg": "-",
    "not": "!",
    "mul": "*",
    "and": "&",
    "or": "|",
    "add": "+",
    "lshr": ">>>",
    "ashr": ">>",
    "lshl": "<<",
    "sub": "-",
    "xor": "^",
    "div": "/",
    "mod": "%",
    "java.cand": "&&",
    "java.cor": "||",
}


def op_symbol(op: Op) -> str:
    return OP_SYMBOLS.get(op.kind, op.kind)


class Decompiler:
    def __init__(self, formatter: ValueFormatter, resolver: Optional[Resolver] = None):
        self.formatter = formatter
        self.resolver = resolver or Resolver()

    def value_text(self, value: Value, precedence: Precedence = Precedence.PARENTHESES) -> str:
        """Text of an operand placed under an operator of the given (outer) precedence."""
        if isinstance(value, Parameter):
            return "this"
        return self.op_text(value, precedence)

    def op_text(self, op: Op, outer: Optional[Precedence] = None) -> str:
        """Text of ``op``; with ``outer``, parenthesised when the outer operator binds as tight or tighter."""
        text = self._raw_text(op)
        if outer is None:
            return text
        inner = Precedence.of(op)
        if inner < outer or (inner == outer and inner == Precedence.DEREFERENCE):
            return text
        return f"({text})"

    def _raw_text(self, op: Op) -> str:
        precedence = Precedence.of(op)
        if isinstance(op, Const):
            return self.formatter.format(op.value)
        if isinstance(op, VarLoad):
            return op.var.name
        if isinstance(op, ThisOp):
            return "this"
        if isinstance(op, FieldLoad):
            if op.receiver is not None:
                return self.value_text(op.receiver, precedence) + "." + op.field.name
            return self.type_name(op.field.owner) + "." + op.field.name
        if isinstance(op, Invoke):
            return self._invoke_text(op, precedence)
        if isinstance(op, New):
            if isinstance(op.type, ArrayType):
                dims = "".join(f"[{self.value_text(v)}]" for v in op.args)
                empty = "[]" * (op.type.dimensions - len(op.args))
                return "new " + self.type_name(op.type.deep_component_type()) + dims + empty
            args = ",".join(self.value_text(v) for v in op.args)
            return f"new {self.type_name(op.type)}({args})"
        if isinstance(op, ArrayLength):
            return self.value_text(op.array, precedence) + ".length"
        if isinstance(op, ArrayLoad):
            return self.value_text(op.array, precedence) + "[" + self.value_text(op.index) + "]"
        if isinstance(op, (BinaryOp, CompareOp)) and op.kind in BINARY_KINDS + COMPARE_KINDS:
            return (
                self.value_text(op.lhs, precedence)
                + f" {op_symbol(op)} "
                + self.value_text(op.rhs, precedence)
            )
        if isinstance(op, (Not, Neg)):
            return op_symbol(op) + self.value_text(op.operand, precedence)
        if isinstance(op, Conv):
            return f"({op.type})" + self.value_text(op.operand, precedence)
        if isinstance(op, Cast):
            return f"({self.type_name(op.type)})" + self.value_text(op.operand, precedence)
        if isinstance(op, InstanceOf):
            return self.value_text(op.operand, precedence) + " instanceof " + self.type_name(op.type)
        if isinstance(op, Return):
            return "return " + self.value_text(op.value)
        if isinstance(op, Yield):
            return self.value_text(op.value)
        if isinstance(op, CondAnd):
            return f" {op_symbol(op)} ".join(self._body_text(body, precedence) for body in op.children)
        if isinstance(op, Ternary) and len(op.children) == 3:
            cond, then, other = (self._body_text(b, precedence) for b in op.children)
            return f"{cond} ? {then} : {other}"
        return f"{op.to_text()}:{op.kind}"

    def _body_text(self, body: Body, precedence: Precedence) -> str:
        term = body.entry_block.terminating_op
        if isinstance(term, Yield):
            return self.value_text(term.value, precedence)
        return self.op_text(term, precedence)

    def _invoke_text(self, op: Invoke, precedence: Precedence) -> str:
        operands = op.operands
        if op.has_receiver:
            args = ", ".join(self.value_text(v) for v in operands[1:])
            return self.value_text(operands[0], precedence) + f".{op.method.name}({args})"
        args = ",".join(self.value_text(v) for v in operands)
        return f"{self.type_name(op.method.owner)}.{op.method.name}({args})"

    def type_name(self, t: TypeRef) -> str:
        """Simple (unqualified) name of a type, resolving class handles where possible."""
        if isinstance(t, ClassType):
            try:
                return self.resolver.simple_name(t)
            except ClassNotFoundException:
                return t.name.rsplit(".", 1)[-1]
        if isinstance(t, ArrayType):
            return self.type_name(t.component) + "[]"
        return str(t).rsplit(".", 1)[-1]


DEFAULT = Decompiler(value_formatter.DEFAULT)
