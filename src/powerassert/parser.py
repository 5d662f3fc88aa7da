"""Recursive-descent parser: tokens -> Java expression AST. One method per precedence level."""

import math
from typing import Any, Callable, Optional

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
from powerassert.errors import ParseError
from powerassert.lexer import Token, TokenKind, tokenize
from powerassert.runtime.values import JChar, JDouble, JFloat, JInt, JLong

PRIMITIVE_TYPES = ("boolean", "byte", "short", "char", "int", "long", "float", "double")

_INT_LIMIT = 1 << 31
_LONG_LIMIT = 1 << 63


class Parser:
    def __init__(self, tokens: list[Token], path: Optional[str] = None):
        self.tokens = tokens
        self.path = path
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        if self.pos + offset >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos + offset]

    def advance(self) -> Token:
        t = self.peek()
        if self.pos < len(self.tokens):
            self.pos += 1
        return t

    def at(self, kind: str, value: Any = None) -> bool:
        t = self.peek()
        if t.kind != kind:
            return False
        if value is not None and t.value != value:
            return False
        return True

    def at_op(self, *symbols: str) -> bool:
        return self.peek().is_op(*symbols)

    def expect(self, kind: str, value: Any = None) -> Token:
        t = self.advance()
        if t.kind != kind or (value is not None and t.value != value):
            expected = repr(value) if value is not None else kind
            raise self.error(f"Expected {expected}, got {_describe(t)}", t)
        return t

    def expect_op(self, symbol: str) -> Token:
        return self.expect(TokenKind.OP, symbol)

    def error(self, message: str, token: Token) -> ParseError:
        return ParseError(message, token.line, token.column, self.path)

    def loc(self, token: Token) -> SourceLoc:
        return SourceLoc(token.line, token.column, self.path)

    # --- entry ---

    def parse_predicate(self) -> Expr:
        """A whole expression; anything left over is an error."""
        expr = self.parse_expression()
        if not self.at(TokenKind.EOF):
            raise self.error(f"Unexpected {_describe(self.peek())} after expression", self.peek())
        return expr

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        target = self.parse_ternary()
        if self.at_op("="):
            op_t = self.advance()
            if not isinstance(target, (Name, FieldAccess, ArrayAccess)):
                raise self.error("Invalid assignment target", op_t)
            return Assign(target, self.parse_assignment(), loc=self.loc(op_t))
        return target

    def parse_ternary(self) -> Expr:
        cond = self.parse_or()
        if self.at_op("?"):
            op_t = self.advance()
            then = self.parse_ternary()
            self.expect_op(":")
            other = self.parse_ternary()
            return Conditional(cond, then, other, loc=self.loc(op_t))
        return cond

    def _binary_level(self, symbols: tuple[str, ...], operand: Callable[[], Expr]) -> Expr:
        left = operand()
        while self.at_op(*symbols):
            op_t = self.advance()
            left = Binary(op_t.value, left, operand(), loc=self.loc(op_t))
        return left

    def parse_or(self) -> Expr:
        return self._binary_level(("||",), self.parse_and)

    def parse_and(self) -> Expr:
        return self._binary_level(("&&",), self.parse_bit_or)

    def parse_bit_or(self) -> Expr:
        return self._binary_level(("|",), self.parse_bit_xor)

    def parse_bit_xor(self) -> Expr:
        return self._binary_level(("^",), self.parse_bit_and)

    def parse_bit_and(self) -> Expr:
        return self._binary_level(("&",), self.parse_equality)

    def parse_equality(self) -> Expr:
        return self._binary_level(("==", "!="), self.parse_relational)

    def parse_relational(self) -> Expr:
        left = self.parse_shift()
        while True:
            if self.at_op("<", ">", "<=", ">="):
                op_t = self.advance()
                left = Binary(op_t.value, left, self.parse_shift(), loc=self.loc(op_t))
            elif self.at(TokenKind.KEYWORD, "instanceof"):
                op_t = self.advance()
                left = InstanceOfExpr(left, self.parse_type(), loc=self.loc(op_t))
            else:
                return left

    def parse_shift(self) -> Expr:
        return self._binary_level(("<<", ">>", ">>>"), self.parse_additive)

    def parse_additive(self) -> Expr:
        return self._binary_level(("+", "-"), self.parse_multiplicative)

    def parse_multiplicative(self) -> Expr:
        return self._binary_level(("*", "/", "%"), self.parse_unary)

    def parse_unary(self) -> Expr:
        t = self.peek()
        if t.is_op("++", "--"):
            raise self.error(f"Operator {t.value} is not supported in predicates", t)
        if t.is_op("-"):
            self.advance()
            literal = self._negated_literal()
            if literal is not None:
                return literal
            return Unary("-", self.parse_unary(), loc=self.loc(t))
        if t.is_op("+"):
            self.advance()
            return Unary("+", self.parse_unary(), loc=self.loc(t))
        return self.parse_unary_not_plus_minus()

    def parse_unary_not_plus_minus(self) -> Expr:
        t = self.peek()
        if t.is_op("!", "~"):
            self.advance()
            return Unary(t.value, self.parse_unary(), loc=self.loc(t))
        if t.is_op("(") and self._is_cast():
            self.advance()
            cast_type = self.parse_type()
            self.expect_op(")")
            if cast_type.name in PRIMITIVE_TYPES and cast_type.dims == 0:
                operand = self.parse_unary()
            else:
                operand = self.parse_unary_not_plus_minus()
            return CastExpr(cast_type, operand, loc=self.loc(t))
        return self.parse_postfix()

    def _negated_literal(self) -> Optional[Literal]:
        """``-2147483648`` and ``-9223372036854775808L`` are only legal as negated literals."""
        t = self.peek()
        limit = {TokenKind.INT: _INT_LIMIT, TokenKind.LONG: _LONG_LIMIT}.get(t.kind)
        if limit is None or not _is_decimal(t) or t.value != limit:
            return None
        self.advance()
        if t.kind == TokenKind.INT:
            return Literal("int", JInt(-limit), loc=self.loc(t))
        return Literal("long", JLong(-limit), loc=self.loc(t))

    def _is_cast(self) -> bool:
        """At "(": does a cast follow? Primitive types always cast; class types need a unary operand next."""
        first = self.peek(1)
        if first.kind == TokenKind.KEYWORD and first.value in PRIMITIVE_TYPES:
            return True
        if first.kind != TokenKind.IDENT:
            return False
        i = 2
        while self.peek(i).is_op(".") and self.peek(i + 1).kind == TokenKind.IDENT:
            i += 2
        while self.peek(i).is_op("[") and self.peek(i + 1).is_op("]"):
            i += 2
        if not self.peek(i).is_op(")"):
            return False
        after = self.peek(i + 1)
        if after.kind in (TokenKind.IDENT, TokenKind.INT, TokenKind.LONG, TokenKind.FLOAT,
                          TokenKind.DOUBLE, TokenKind.CHAR, TokenKind.STRING):
            return True
        if after.kind == TokenKind.KEYWORD:
            return after.value in ("this", "new", "true", "false", "null")
        return after.is_op("(", "!", "~")

    def parse_postfix(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.at_op("."):
                dot = self.advance()
                name_t = self.expect(TokenKind.IDENT)
                if self.at_op("("):
                    expr = MethodCall(expr, name_t.value, self.parse_arguments(), loc=self.loc(name_t))
                else:
                    expr = FieldAccess(expr, name_t.value, loc=self.loc(dot))
            elif self.at_op("[") and not isinstance(expr, NewArray):
                bracket = self.advance()
                index = self.parse_expression()
                self.expect_op("]")
                expr = ArrayAccess(expr, index, loc=self.loc(bracket))
            elif self.at_op("++", "--"):
                raise self.error(f"Operator {self.peek().value} is not supported in predicates", self.peek())
            else:
                return expr

    def parse_arguments(self) -> list[Expr]:
        self.expect_op("(")
        args: list[Expr] = []
        if not self.at_op(")"):
            args.append(self.parse_expression())
            while self.at_op(","):
                self.advance()
                args.append(self.parse_expression())
        self.expect_op(")")
        return args

    def parse_primary(self) -> Expr:
        t = self.peek()
        if t.kind in (TokenKind.INT, TokenKind.LONG, TokenKind.FLOAT, TokenKind.DOUBLE,
                      TokenKind.CHAR, TokenKind.STRING):
            self.advance()
            return self._literal(t)
        if t.kind == TokenKind.KEYWORD:
            if t.value in ("true", "false"):
                self.advance()
                return Literal("boolean", t.value == "true", loc=self.loc(t))
            if t.value == "null":
                self.advance()
                return Literal("null", None, loc=self.loc(t))
            if t.value == "this":
                self.advance()
                return This(loc=self.loc(t))
            if t.value == "new":
                return self.parse_new()
        if t.kind == TokenKind.IDENT:
            self.advance()
            if self.at_op("("):
                return MethodCall(None, t.value, self.parse_arguments(), loc=self.loc(t))
            return Name(t.value, loc=self.loc(t))
        if t.is_op("("):
            self.advance()
            expr = self.parse_expression()
            self.expect_op(")")
            return expr
        raise self.error(f"Expected expression, got {_describe(t)}", t)

    def parse_new(self) -> Expr:
        new_t = self.expect(TokenKind.KEYWORD, "new")
        element = self.parse_type_name()
        if self.at_op("["):
            dims: list[Expr] = []
            extra = 0
            while self.at_op("["):
                bracket = self.advance()
                if self.at_op("]"):
                    self.advance()
                    extra += 1
                    continue
                if extra:
                    raise self.error("Array dimension missing", bracket)
                dims.append(self.parse_expression())
                self.expect_op("]")
            if not dims:
                raise self.error("Array initializers are not supported", new_t)
            return NewArray(element, dims, extra, loc=self.loc(new_t))
        if element.name in PRIMITIVE_TYPES:
            raise self.error(f"Cannot instantiate primitive type {element.name}", new_t)
        return NewObject(element, self.parse_arguments(), loc=self.loc(new_t))

    def parse_type_name(self) -> TypeName:
        """Primitive keyword or dotted class name, without dimensions."""
        t = self.advance()
        if t.kind == TokenKind.KEYWORD and t.value in PRIMITIVE_TYPES:
            return TypeName(t.value, loc=self.loc(t))
        if t.kind != TokenKind.IDENT:
            raise self.error(f"Expected type, got {_describe(t)}", t)
        parts = [t.value]
        while self.at_op(".") and self.peek(1).kind == TokenKind.IDENT:
            self.advance()
            parts.append(self.advance().value)
        return TypeName(".".join(parts), loc=self.loc(t))

    def parse_type(self) -> TypeName:
        type_name = self.parse_type_name()
        while self.at_op("[") and self.peek(1).is_op("]"):
            self.advance()
            self.advance()
            type_name.dims += 1
        return type_name

    def _literal(self, t: Token) -> Literal:
        loc = self.loc(t)
        if t.kind == TokenKind.INT:
            return Literal("int", JInt(self._integral(t, _INT_LIMIT)), loc=loc)
        if t.kind == TokenKind.LONG:
            return Literal("long", JLong(self._integral(t, _LONG_LIMIT)), loc=loc)
        if t.kind in (TokenKind.FLOAT, TokenKind.DOUBLE):
            value = JFloat(t.value) if t.kind == TokenKind.FLOAT else JDouble(t.value)
            if math.isinf(value):
                raise self.error("Floating-point number too large", t)
            if value == 0 and _has_nonzero_digit(t.text):
                raise self.error("Floating-point number too small", t)
            return Literal(t.kind.lower(), value, loc=loc)
        if t.kind == TokenKind.CHAR:
            return Literal("char", JChar(t.value), loc=loc)
        return Literal("string", t.value, loc=loc)

    def _integral(self, t: Token, limit: int) -> int:
        # decimal literals must fit the signed range; hex, octal and binary may use the sign bit
        bound = limit - 1 if _is_decimal(t) else 2 * limit - 1
        if t.value > bound:
            raise self.error("Integer number too large", t)
        return t.value


def _is_decimal(t: Token) -> bool:
    text = t.text.lower()
    return not (text.startswith("0x") or text.startswith("0b") or (len(text) > 1 and text[0] == "0" and text[1].isdigit()))


def _has_nonzero_digit(text: str) -> bool:
    mantissa = text.lower().split("e")[0]
    return any(c in "123456789" for c in mantissa)


def _describe(t: Token) -> str:
    if t.kind == TokenKind.EOF:
        return "end of input"
    return repr(t.text or t.value)


def parse(source: str, path: Optional[str] = None) -> Expr:
    """Parse a Java expression into an AST."""
    tokens = tokenize(source, path)
    parser = Parser(tokens, path)
    return parser.parse_predicate()
