"""Tests for assert_true and assertion conditions."""

import pytest

from powerassert import AssertionCondition, assert_true, condition, quote
from powerassert.assertion_formatter import DefaultAssertionFormatter
from powerassert.errors import ParseError
from powerassert.value_formatter import DefaultValueFormatter


def test_true_predicate_returns():
    assert assert_true("2 + 2 * 2 == 6") is None
    assert_true(condition("x.length() == 5", {"x": "Hello"}))
    assert_true(quote("a || b", {"a": False, "b": True}))


def test_false_predicate_raises_with_diagnostic():
    with pytest.raises(AssertionError) as exc_info:
        assert_true(condition("x > 3", {"x": 2}))
    assert str(exc_info.value) == (
        "failed\n"
        "x -> 2\n"
        "x > 3 -> false\n"
    )


def test_custom_message():
    with pytest.raises(AssertionError) as exc_info:
        assert_true("1 > 2", message="expected one to win")
    message = str(exc_info.value)
    assert message.startswith("expected one to win\n")
    assert message.endswith("1 > 2 -> false\n")


def test_exception_fails_the_assertion():
    with pytest.raises(AssertionError) as exc_info:
        assert_true("3 * 2 / 0 >= 5")
    assert "(3 * 2) / 0 >= 5 -> throws java.lang.ArithmeticException: / by zero\n" in str(exc_info.value)


def test_custom_formatter():
    formatter = DefaultAssertionFormatter(DefaultValueFormatter(length_hint=10))
    with pytest.raises(AssertionError) as exc_info:
        assert_true(condition("s.isEmpty()", {"s": "a rather long string"}), formatter=formatter)
    assert 's -> "a rather l..."\n' in str(exc_info.value)


def test_configured_length_hint(tmp_path):
    (tmp_path / "powerassert.yaml").write_text("length_hint: 10\n")
    with pytest.raises(AssertionError) as exc_info:
        assert_true(condition("s.isEmpty()", {"s": "a rather long string"}))
    assert 's -> "a rather l..."\n' in str(exc_info.value)


def test_unsupported_root_falls_back_to_direct_evaluation():
    assert_true(condition("x = 3", {"x": 1}, fallback=lambda: True))
    with pytest.raises(AssertionError) as exc_info:
        assert_true(condition("x = 3", {"x": 1}, fallback=lambda: False))
    assert str(exc_info.value) == "failed"


def test_unsupported_without_fallback_reports_node():
    with pytest.raises(AssertionError) as exc_info:
        assert_true(condition("a & b", {"a": True, "b": True}))
    assert str(exc_info.value).endswith("Unsupported node: a & b (and)\n")


def test_unsupported_string_and_quoted_predicates_have_no_fallback():
    with pytest.raises(AssertionError) as exc_info:
        assert_true(quote("a & b", {"a": True, "b": True}))
    assert str(exc_info.value) == (
        "failed\n"
        "a -> true\n"
        "b -> true\n"
        "Unsupported node: a & b (and)\n"
    )


def test_condition_call():
    cond = condition("x > 0", {"x": 1}, fallback=lambda: True)
    assert isinstance(cond, AssertionCondition)
    assert cond() is True
    with pytest.raises(TypeError):
        condition("x > 0", {"x": 1})()


def test_malformed_source_raises_before_evaluation():
    with pytest.raises(ParseError):
        assert_true("1 +")
