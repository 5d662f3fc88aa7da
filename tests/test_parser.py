"""Tests for the Java expression parser."""

import pytest

from powerassert.ast_nodes import (
    ArrayAccess,
    Assign,
    Binary,
    CastExpr,
    Conditional,
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
from powerassert.errors import ParseError
from powerassert.parser import parse
from powerassert.runtime.values import JChar, JDouble, JFloat, JInt, JLong


def test_precedence_multiplicative_over_additive():
    expr = parse("2 + 2 * 2 == 6")
    assert isinstance(expr, Binary) and expr.op == "=="
    add = expr.left
    assert isinstance(add, Binary) and add.op == "+"
    assert isinstance(add.right, Binary) and add.right.op == "*"


def test_left_associative():
    expr = parse("3 * 2 / 0")
    assert expr.op == "/"
    assert expr.left.op == "*"


def test_logical_levels():
    expr = parse("a || b && c | d")
    assert expr.op == "||"
    assert expr.right.op == "&&"
    assert expr.right.right.op == "|"


def test_literals():
    assert parse("42").value == JInt(42) and isinstance(parse("42").value, JInt)
    assert isinstance(parse("42L").value, JLong)
    assert isinstance(parse("1.5f").value, JFloat)
    assert isinstance(parse("1.5").value, JDouble)
    assert isinstance(parse("'c'").value, JChar)
    assert parse('"s"').kind == "string"
    assert parse("true").value is True
    assert parse("null").kind == "null"


def test_min_value_literals():
    assert parse("-2147483648").value == -2147483648
    assert parse("-9223372036854775808L").value == -(2**63)
    assert parse("0xFFFFFFFF").value == -1


@pytest.mark.parametrize("source", ["2147483648", "9223372036854775808L", "1e999", "1e-999"])
def test_literal_out_of_range(source):
    with pytest.raises(ParseError):
        parse(source)


def test_postfix_chain():
    expr = parse("a.b.c(1, 2)[0].length")
    assert isinstance(expr, FieldAccess) and expr.name == "length"
    index = expr.target
    assert isinstance(index, ArrayAccess)
    call = index.array
    assert isinstance(call, MethodCall) and call.name == "c" and len(call.args) == 2
    assert isinstance(call.target, FieldAccess) and call.target.name == "b"
    assert isinstance(call.target.target, Name)


def test_implicit_this_call():
    expr = parse("size() > 0")
    assert isinstance(expr.left, MethodCall) and expr.left.target is None


def test_this():
    expr = parse("this.x")
    assert isinstance(expr.target, This)


def test_casts():
    expr = parse("((String)obj).length()")
    cast = expr.target
    assert isinstance(cast, CastExpr) and cast.type.name == "String"
    assert isinstance(cast.operand, Name)

    primitive = parse("(int) -x")
    assert isinstance(primitive, CastExpr) and isinstance(primitive.operand, Unary)


def test_parenthesised_name_is_not_a_cast():
    expr = parse("(a) - b")
    assert isinstance(expr, Binary) and expr.op == "-"
    assert isinstance(expr.left, Name)


def test_array_cast():
    expr = parse("(int[]) o")
    assert isinstance(expr, CastExpr) and expr.type.dims == 1


def test_instanceof():
    expr = parse("o instanceof java.lang.String && o != null")
    check = expr.left
    assert isinstance(check, InstanceOfExpr)
    assert check.type.name == "java.lang.String"


def test_new_array():
    expr = parse("new int[10][5].length")
    arr = expr.target
    assert isinstance(arr, NewArray)
    assert arr.element.name == "int"
    assert len(arr.dims) == 2 and arr.extra_dims == 0
    assert isinstance(parse("new String[3][]"), NewArray)
    assert parse("new String[3][]").extra_dims == 1


def test_new_object():
    expr = parse("new java.util.ArrayList()")
    assert isinstance(expr, NewObject)
    assert expr.type.name == "java.util.ArrayList"
    assert expr.args == []


def test_ternary_and_assignment():
    expr = parse("a ? b : c ? d : e")
    assert isinstance(expr, Conditional)
    assert isinstance(expr.other, Conditional)
    assign = parse("x = 3")
    assert isinstance(assign, Assign) and isinstance(assign.value, Literal)


def test_unary():
    expr = parse("!~-x")
    assert expr.op == "!"
    assert expr.operand.op == "~"
    assert expr.operand.operand.op == "-"


@pytest.mark.parametrize("source", [
    "1 +",
    "(1",
    "a b",
    "x++",
    "--x",
    "new int[]",
    "new int()",
    "1 = 2",
    "a ? b",
])
def test_parse_errors(source):
    with pytest.raises(ParseError):
        parse(source)


def test_parse_error_location():
    with pytest.raises(ParseError) as exc_info:
        parse("a +\n  )")
    assert exc_info.value.line == 2
    assert exc_info.value.column == 3
