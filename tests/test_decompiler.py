"""Tests for rendering IR back to Java source text."""

import pytest

from powerassert.decompiler import DEFAULT, Precedence, op_symbol
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
    MethodRef,
    Neg,
    New,
    Not,
    Parameter,
    Ternary,
    Var,
    VarLoad,
    VarStore,
    Yield,
)
from powerassert.runtime.values import JInt
from powerassert.typerefs import INT, LONG, STRING, ArrayType, ClassType


def c(value):
    return Const(JInt(value), INT)


def var(name):
    return VarLoad(Var(name, 0))


def body(op):
    return Body([Block([op, Yield(op)])])


def text(op):
    return DEFAULT.op_text(op)


def test_weaker_operand_is_parenthesised():
    assert text(BinaryOp("mul", BinaryOp("add", c(1), c(2)), c(3))) == "(1 + 2) * 3"
    assert text(BinaryOp("add", c(1), BinaryOp("mul", c(2), c(3)))) == "1 + 2 * 3"


def test_equal_precedence_is_parenthesised():
    assert text(BinaryOp("div", BinaryOp("mul", c(3), c(2)), c(0))) == "(3 * 2) / 0"
    assert text(BinaryOp("sub", c(1), BinaryOp("sub", c(2), c(3)))) == "1 - (2 - 3)"


def test_dereference_chain_is_not_parenthesised():
    assert text(ArrayLength(ArrayLoad(var("x"), c(0)))) == "x[0].length"
    call = Invoke(MethodRef(STRING, "trim"), [var("s")], has_receiver=True)
    outer = Invoke(MethodRef(STRING, "length"), [call], has_receiver=True)
    assert text(outer) == "s.trim().length()"


def test_index_is_not_parenthesised():
    assert text(ArrayLoad(var("x"), BinaryOp("add", c(1), c(2)))) == "x[1 + 2]"


def test_invoke_arguments():
    call = Invoke(MethodRef(STRING, "substring"), [var("s"), c(1), c(2)], has_receiver=True)
    assert text(call) == "s.substring(1, 2)"
    static = Invoke(MethodRef(ClassType("java.lang.Math"), "max"), [c(1), c(2)])
    assert text(static) == "Math.max(1,2)"


def test_fields():
    assert text(FieldLoad(FieldRef(ClassType("java.lang.Integer"), "MAX_VALUE", INT))) == "Integer.MAX_VALUE"
    this_field = FieldLoad(FieldRef(ClassType("Point"), "x", INT), receiver=Parameter())
    assert text(this_field) == "this.x"


def test_new():
    assert text(New(ArrayType(ArrayType(INT)), [c(10), c(5)])) == "new int[10][5]"
    assert text(New(ArrayType(ArrayType(INT)), [c(10)])) == "new int[10][]"
    assert text(New(ClassType("java.util.ArrayList"))) == "new ArrayList()"
    assert text(ArrayLength(New(ArrayType(INT), [c(3)]))) == "new int[3].length"


def test_unary_and_casts():
    assert text(Not(CompareOp("eq", var("x"), c(1)))) == "!(x == 1)"
    assert text(Neg(var("x"))) == "-x"
    assert text(Conv(LONG, var("x"))) == "(long)x"
    cast = Cast(STRING, var("obj"))
    assert text(cast) == "(String)obj"
    call = Invoke(MethodRef(STRING, "length"), [cast], has_receiver=True)
    assert text(call) == "((String)obj).length()"


def test_instanceof():
    assert text(InstanceOf(STRING, var("o"))) == "o instanceof String"


def test_short_circuit_and_ternary():
    a, b = CompareOp("lt", c(2), c(3)), CompareOp("gt", c(4), c(5))
    assert text(CondOr([body(a), body(b)])) == "2 < 3 || 4 > 5"
    assert text(CondAnd([body(var("a")), body(var("b")), body(var("c"))])) == "a && b && c"
    ternary = Ternary([body(var("a")), body(c(1)), body(c(2))], INT)
    assert text(ternary) == "a ? 1 : 2"
    assert text(CompareOp("eq", ternary, c(1))) == "(a ? 1 : 2) == 1"


def test_unknown_class_uses_simple_name():
    assert DEFAULT.type_name(ClassType("com.example.Missing")) == "Missing"
    assert DEFAULT.type_name(ArrayType(STRING)) == "String[]"


def test_unknown_op_falls_back_to_structure():
    store = VarStore(Var("x", 0), c(3))
    assert text(store) == "var.store(x, constant(JInt(3))):var.store"


def test_outer_parentheses_change_nothing():
    op = BinaryOp("add", c(1), BinaryOp("mul", c(2), c(3)))
    assert DEFAULT.op_text(op, Precedence.PARENTHESES) == DEFAULT.op_text(op)
    assert DEFAULT.value_text(op) == DEFAULT.op_text(op)


@pytest.mark.parametrize("kind, symbol", [
    ("eq", "=="), ("neq", "!="), ("lt", "<"), ("gt", ">"), ("le", "<="), ("ge", ">="),
    ("add", "+"), ("sub", "-"), ("mul", "*"), ("div", "/"), ("mod", "%"),
    ("and", "&"), ("or", "|"), ("xor", "^"),
    ("lshl", "<<"), ("ashr", ">>"), ("lshr", ">>>"),
])
def test_symbol_table(kind, symbol):
    op = (CompareOp if kind in ("eq", "neq", "lt", "gt", "le", "ge") else BinaryOp)(kind, c(1), c(2))
    assert op_symbol(op) == symbol
    assert text(op) == f"1 {symbol} 2"


def test_precedence_of_ops():
    assert Precedence.of(c(1)) == Precedence.LITERAL
    assert Precedence.of(var("x")) == Precedence.LITERAL
    assert Precedence.of(ArrayLength(var("x"))) == Precedence.DEREFERENCE
    assert Precedence.of(CondOr([])) == Precedence.LOGICAL_OR
