"""End-to-end tests: quote an expression, evaluate it and render the diagnostic."""

import math

import pytest

from powerassert.errors import ResolutionError
from powerassert.nodes import ExceptionNode, UnsupportedNode, ValueNode
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model
from powerassert.runtime.values import JArray
from powerassert.typerefs import INT


def test_arithmetic_precedence(explain):
    assert explain("2 + 2 * 2 == 6") == (
        "2 * 2 -> 4\n"
        "2 + 2 * 2 -> 6\n"
        "2 + 2 * 2 == 6 -> true\n"
    )


def test_division_by_zero_propagates(explain):
    assert explain("3 * 2 / 0 >= 5") == (
        "3 * 2 -> 6\n"
        "(3 * 2) / 0 -> throws java.lang.ArithmeticException: / by zero\n"
        "(3 * 2) / 0 >= 5 -> throws java.lang.ArithmeticException: / by zero\n"
    )


def test_array_local(explain):
    x = JArray.of(INT, 1, 2, 3)
    assert explain("x[1] == x.length", {"x": x}) == (
        "x -> [1, 2, 3]\n"
        "x[1] -> 2\n"
        "x -> [1, 2, 3]\n"
        "x.length -> 3\n"
        "x[1] == x.length -> false\n"
    )


def test_short_circuit_or(explain):
    assert explain("2 < 3 || 4 > 5") == (
        "2 < 3 -> true\n"
        "2 < 3 || 4 > 5 -> true\n"
    )


def test_short_circuit_and(explain):
    assert explain("a && b", {"a": False, "b": True}) == (
        "a -> false\n"
        "a && b -> false\n"
    )


def test_cast_then_invoke(explain):
    assert explain("((String)obj).length() == 5", {"obj": "Hello"}) == (
        'obj -> "Hello"\n'
        '(String)obj -> "Hello"\n'
        "((String)obj).length() -> 5\n"
        "((String)obj).length() == 5 -> true\n"
    )


def test_multi_dimensional_array_is_abbreviated(explain):
    row = "[0, 0, 0, 0, 0]"
    assert explain("new int[10][5].length == 10") == (
        "new int[10][5] -> [" + ", ".join([row] * 6) + ", ...]\n"
        "new int[10][5].length -> 10\n"
        "new int[10][5].length == 10 -> true\n"
    )


def test_integer_math(explain):
    assert explain("Integer.MAX_VALUE % 10 - 2 >= 5") == (
        "Integer.MAX_VALUE -> 2147483647\n"
        "Integer.MAX_VALUE % 10 -> 7\n"
        "Integer.MAX_VALUE % 10 - 2 -> 5\n"
        "Integer.MAX_VALUE % 10 - 2 >= 5 -> true\n"
    )
    assert explain("3 * 2 / 4 >= 5") == (
        "3 * 2 -> 6\n"
        "(3 * 2) / 4 -> 1\n"
        "(3 * 2) / 4 >= 5 -> false\n"
    )


def test_bitwise_math(explain):
    assert explain("(0xFF & 0x123 | 0x3210) == (20 ^ 10)") == (
        "255 & 291 -> 35\n"
        "255 & 291 | 12816 -> 12851\n"
        "20 ^ 10 -> 30\n"
        "(255 & 291 | 12816) == (20 ^ 10) -> false\n"
    )


def test_double_math(explain):
    assert explain("0.1 + 0.2 == 0.3") == (
        "0.1 + 0.2 -> 0.30000000000000004\n"
        "0.1 + 0.2 == 0.3 -> false\n"
    )
    assert explain("0.1 - 0.2 < 0").startswith("0.1 - 0.2 -> -0.1\n")
    assert explain("0.1 * 0.2 > 0.02").startswith("0.1 * 0.2 -> 0.020000000000000004\n")
    assert explain("0.1 / 0.2 == 0.5").startswith("0.1 / 0.2 -> 0.5\n")
    assert explain("0.1 % 0.2 == 0.1").startswith("0.1 % 0.2 -> 0.1\n")


def test_float_math(explain):
    assert explain("0.1F + 0.2F == 0.3F") == (
        "0.1F + 0.2F -> 0.3F\n"
        "0.1F + 0.2F == 0.3F -> true\n"
    )
    assert explain("0.1F * 0.2F > 0.0F").startswith("0.1F * 0.2F -> 0.020000001F\n")


def test_float_division_by_zero_is_a_value(explain):
    assert explain("1.0 / 0 > 0") == (
        "1.0 / (double)0 -> Double.POSITIVE_INFINITY\n"
        "1.0 / (double)0 > (double)0 -> true\n"
    )


def test_widening_of_constants_is_not_reported(explain):
    assert explain("2.0 + 2 == 4") == (
        "2.0 + (double)2 -> 4.0\n"
        "2.0 + (double)2 == (double)4 -> true\n"
    )


def test_widening_of_variables_is_reported(explain):
    assert explain("x + 0.5 > 2", {"x": 2}) == (
        "x -> 2\n"
        "(double)x -> 2.0\n"
        "(double)x + 0.5 -> 2.5\n"
        "(double)x + 0.5 > (double)2 -> true\n"
    )


def test_negated_constant_is_trivial(explain):
    assert explain("x > -1", {"x": 0}) == (
        "x -> 0\n"
        "x > -1 -> true\n"
    )


def test_nan_is_not_equal_to_itself(explain):
    assert explain("d == d", {"d": math.nan}) == (
        "d -> Double.NaN\n"
        "d -> Double.NaN\n"
        "d == d -> false\n"
    )


def test_static_invoke(explain):
    assert explain('List.of("a", "b", "c", "d").contains("e")') == (
        'List.of("a","b","c","d") -> ["a", "b", "c", "d"]\n'
        'List.of("a","b","c","d").contains("e") -> false\n'
    )


def test_string_concatenation(explain):
    assert explain('s + 1 == "a1"', {"s": "a"}) == (
        's -> "a"\n'
        's + 1 -> "a1"\n'
        's + 1 == "a1" -> true\n'
    )


def test_ternary_reports_taken_branch(explain):
    assert explain("(a ? x : 2) == 1", {"a": True, "x": 1}) == (
        "a -> true\n"
        "x -> 1\n"
        "a ? x : 2 -> 1\n"
        "(a ? x : 2) == 1 -> true\n"
    )


def test_null_receiver(explain):
    assert explain("s.length() == 0", {"s": None}) == (
        "s -> null\n"
        "s.length() -> throws java.lang.NullPointerException\n"
        "s.length() == 0 -> throws java.lang.NullPointerException\n"
    )


def test_class_cast_failure(explain):
    text = explain("((String)obj).length() == 5", {"obj": [1, 2]})
    lines = text.splitlines()
    assert lines[0] == "obj -> [1, 2]"
    assert lines[1].startswith("(String)obj -> throws java.lang.ClassCastException: ")
    assert lines[1].endswith("cannot be cast to class java.lang.String")
    assert len(lines) == 4
    assert all(line.endswith("cannot be cast to class java.lang.String") for line in lines[1:])


def test_array_index_out_of_bounds(explain):
    x = JArray.of(INT, 1, 2, 3)
    assert explain("x[3] == 0", {"x": x}) == (
        "x -> [1, 2, 3]\n"
        "x[3] -> throws java.lang.ArrayIndexOutOfBoundsException: Index 3 out of bounds for length 3\n"
        "x[3] == 0 -> throws java.lang.ArrayIndexOutOfBoundsException: Index 3 out of bounds for length 3\n"
    )


def test_host_exception_is_captured(explain, point):
    assert explain("p.boom() == 1", {"p": point}) == (
        "p -> Point(3, -4)\n"
        "p.boom() -> throws ValueError: boom\n"
        "p.boom() == 1 -> throws ValueError: boom\n"
    )


def test_exception_node_keeps_throwable(point):
    model = build_model(quote("p.boom() == 1", {"p": point}))
    assert isinstance(model, ExceptionNode)
    (call,) = model.children
    assert isinstance(call, ExceptionNode)
    assert call.throwable is model.throwable
    assert isinstance(model.throwable, ValueError)


def test_unknown_member_is_not_captured(point):
    with pytest.raises(ResolutionError):
        build_model(quote("p.missing() == 1", {"p": point}))


def test_boolean_bitwise_is_unsupported(explain):
    assert explain("a & b", {"a": True, "b": True}) == (
        "a -> true\n"
        "b -> true\n"
        "Unsupported node: a & b (and)\n"
    )


def test_assignment_root_is_unsupported(explain):
    model = build_model(quote("x = 3", {"x": 1}))
    assert isinstance(model, UnsupportedNode)
    assert explain("x = 3", {"x": 1}).startswith("Unsupported node: ")


def test_this_bound_predicate(explain, point):
    assert explain("x > 0 && norm1() == 7", this=point) == (
        "this -> Point(3, -4)\n"
        "this.x -> 3\n"
        "this.x > 0 -> true\n"
        "this -> Point(3, -4)\n"
        "this.norm1() -> 7\n"
        "this.norm1() == 7 -> true\n"
        "this.x > 0 && this.norm1() == 7 -> true\n"
    )


def test_model_of_successful_predicate():
    model = build_model(quote("2 + 2 * 2 == 6"))
    assert isinstance(model, ValueNode) and model.value is True
    add, six = model.children
    assert add.value == 6 and six.is_trivial()
