"""Tests for the Java expression lexer."""

import pytest

from powerassert.errors import ParseError
from powerassert.lexer import TokenKind, tokenize


def kinds(source):
    return [t.kind for t in tokenize(source)]


def values(source):
    return [t.value for t in tokenize(source)[:-1]]


def test_tokenize_simple():
    tokens = tokenize("x[1] == x.length")
    assert [t.kind for t in tokens] == [
        TokenKind.IDENT, TokenKind.OP, TokenKind.INT, TokenKind.OP,
        TokenKind.OP, TokenKind.IDENT, TokenKind.OP, TokenKind.IDENT, TokenKind.EOF,
    ]
    assert tokens[0].value == "x"
    assert tokens[4].value == "=="


def test_tokenize_keywords():
    tokens = tokenize("obj instanceof String && this != null")
    assert tokens[1].is_keyword("instanceof")
    assert tokens[2].kind == TokenKind.IDENT
    assert tokens[4].is_keyword("this")
    assert tokens[6].is_keyword("null")


def test_longest_operator_wins():
    assert values("a >>> 2 >> 1 << 3") == ["a", ">>>", 2, ">>", 1, "<<", 3]
    assert values("a<=b>=c") == ["a", "<=", "b", ">=", "c"]


def test_relational_operators():
    assert values("a < b > c <= d >= e") == ["a", "<", "b", ">", "c", "<=", "d", ">=", "e"]
    assert values("a<b>c") == ["a", "<", "b", ">", "c"]
    assert values("x<-1") == ["x", "<", "-", 1]


def test_integer_literals():
    assert values("0x1F 0b101 017 1_000 0") == [31, 5, 15, 1000, 0]
    assert kinds("42L")[0] == TokenKind.LONG


def test_floating_literals():
    tokens = tokenize("1.5 2f 3.0D 1e3 .5")
    assert [t.kind for t in tokens[:-1]] == [
        TokenKind.DOUBLE, TokenKind.FLOAT, TokenKind.DOUBLE, TokenKind.DOUBLE, TokenKind.DOUBLE,
    ]
    assert [t.value for t in tokens[:-1]] == [1.5, 2.0, 3.0, 1000.0, 0.5]


def test_string_escapes():
    tokens = tokenize(r'"a\tb\n\"q\" A \101"')
    assert tokens[0].kind == TokenKind.STRING
    assert tokens[0].value == 'a\tb\n"q" A A'


def test_char_literal():
    tokens = tokenize(r"'\n' 'x'")
    assert tokens[0].kind == TokenKind.CHAR and tokens[0].value == "\n"
    assert tokens[1].value == "x"


def test_comments_skipped():
    assert values("1 /* two\n lines */ + // tail\n 2") == [1, "+", 2]


def test_positions_are_one_based():
    tokens = tokenize("a +\n  b")
    assert (tokens[0].line, tokens[0].column) == (1, 1)
    assert (tokens[1].line, tokens[1].column) == (1, 3)
    assert (tokens[2].line, tokens[2].column) == (2, 3)


@pytest.mark.parametrize("source", ['"open', "'ab'", "1 # 2", "09", "0x", "12abc", "/* open"])
def test_lex_errors(source):
    with pytest.raises(ParseError):
        tokenize(source)


def test_error_carries_location():
    with pytest.raises(ParseError) as exc_info:
        tokenize("a + #", path="pred.java")
    assert exc_info.value.line == 1
    assert exc_info.value.column == 5
    assert str(exc_info.value).startswith("pred.java:1:5: ")
