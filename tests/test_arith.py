"""Tests for Java primitive arithmetic."""

import math

import pytest

from powerassert.errors import ArithmeticException
from powerassert.runtime import arith
from powerassert.runtime.values import JByte, JChar, JDouble, JFloat, JInt, JLong, JShort, kind_of
from powerassert.typerefs import BYTE, CHAR, DOUBLE, FLOAT, INT, LONG, SHORT


def test_int_overflow_wraps():
    result = arith.binary("add", JInt(2**31 - 1), JInt(1))
    assert result == -(2**31) and isinstance(result, JInt)
    assert arith.binary("mul", JLong(2**62), JLong(4)) == 0


def test_division_truncates_toward_zero():
    assert arith.binary("div", JInt(-7), JInt(2)) == -3
    assert arith.binary("mod", JInt(-7), JInt(2)) == -1
    assert arith.binary("mod", JInt(7), JInt(-2)) == 1


def test_min_value_divided_by_minus_one():
    assert arith.binary("div", JInt(-(2**31)), JInt(-1)) == -(2**31)
    assert arith.binary("div", JLong(-(2**63)), JLong(-1)) == -(2**63)


@pytest.mark.parametrize("kind", ["div", "mod"])
def test_integer_division_by_zero(kind):
    with pytest.raises(ArithmeticException) as exc_info:
        arith.binary(kind, JInt(1), JInt(0))
    assert str(exc_info.value) == "/ by zero"


def test_float_division_by_zero_follows_ieee():
    assert arith.binary("div", JDouble(1.0), JDouble(0.0)) == math.inf
    assert arith.binary("div", JDouble(-1.0), JDouble(0.0)) == -math.inf
    assert math.isnan(arith.binary("div", JDouble(0.0), JDouble(0.0)))
    assert math.isnan(arith.binary("mod", JDouble(1.0), JDouble(0.0)))


def test_float_ops_round_to_binary32():
    result = arith.binary("add", JFloat(0.1), JFloat(0.2))
    assert isinstance(result, JFloat)
    assert kind_of(result) == FLOAT
    assert float(result) != 0.1 + 0.2


def test_mixed_kinds_unsupported():
    assert arith.binary("add", JInt(1), JLong(1)) is None
    assert arith.binary("add", JInt(1), "s") is None
    assert arith.binary("and", JDouble(1.0), JDouble(1.0)) is None


def test_bitwise():
    assert arith.binary("and", JInt(12), JInt(10)) == 8
    assert arith.binary("or", JInt(12), JInt(10)) == 14
    assert arith.binary("xor", JInt(5), JInt(-1)) == -6


def test_shifts_mask_amount():
    assert arith.binary("lshl", JInt(1), JInt(33)) == 2
    assert arith.binary("lshl", JLong(1), JInt(33)) == 2**33
    assert arith.binary("ashr", JInt(-8), JInt(1)) == -4
    assert arith.binary("lshr", JInt(-1), JInt(28)) == 15
    assert arith.binary("lshr", JLong(-1), JLong(60)) == 15


def test_negate():
    assert arith.negate(JInt(-(2**31))) == -(2**31)
    assert isinstance(arith.negate(JDouble(1.5)), JDouble)
    assert arith.negate("x") is None


def test_compare():
    assert arith.compare("lt", JInt(2), JInt(3)) is True
    assert arith.compare("ge", JLong(2), JDouble(2.5)) is False
    assert arith.compare("gt", JChar("b"), JInt(97)) is True
    nan = JDouble(math.nan)
    assert not any(arith.compare(k, nan, nan) for k in ("lt", "le", "gt", "ge"))
    assert arith.compare("lt", "a", "b") is None


def test_equals():
    assert arith.equals(JInt(2), JLong(2))
    assert arith.equals(JInt(2), JDouble(2.0))
    assert not arith.equals(JDouble(math.nan), JDouble(math.nan))
    assert arith.equals(None, None)
    assert not arith.equals(None, "x")
    assert arith.equals("ab", "ab")
    assert arith.equals(True, True)


def test_widening_conversions():
    assert arith.convert(LONG, JInt(-5)) == -5 and isinstance(arith.convert(LONG, JInt(-5)), JLong)
    assert arith.convert(DOUBLE, JInt(3)) == 3.0
    assert arith.convert(INT, JChar("a")) == 97


def test_narrowing_conversions():
    assert arith.convert(BYTE, JInt(300)) == 44
    assert arith.convert(SHORT, JInt(70000)) == 4464
    assert arith.convert(CHAR, JInt(65)) == "A"
    assert arith.convert(INT, JDouble(-3.9)) == -3


def test_float_to_integral_saturates():
    assert arith.convert(INT, JDouble(math.nan)) == 0
    assert arith.convert(INT, JDouble(1e20)) == 2**31 - 1
    assert arith.convert(LONG, JDouble(-math.inf)) == -(2**63)
    # byte narrows from the saturated int
    assert arith.convert(BYTE, JDouble(1e20)) == -1


def test_long_to_float_rounds_once():
    # 2**24 + 1 is not representable in binary32; ties go to even
    assert float(arith.convert(FLOAT, JLong(2**24 + 1))) == 2.0**24
    assert float(arith.convert(FLOAT, JLong(2**24 + 3))) == 2.0**24 + 4


def test_identity_and_unsupported_conversions():
    assert arith.convert(INT, JInt(1)) is None
    assert arith.convert(INT, "1") is None
    assert arith.convert(INT, True) is None


def test_byte_and_short_wrap():
    assert JByte(128) == -128
    assert JShort(-32769) == 32767
