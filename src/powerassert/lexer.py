"""Tokenizer for Java expressions: source -> tokens with literal decoding and keyword recognition."""

from dataclasses import dataclass
from typing import Any, Optional

from powerassert.errors import ParseError


class TokenKind:
    # Literals
    INT = "INT"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    CHAR = "CHAR"
    STRING = "STRING"
    IDENT = "IDENT"
    # Keywords (value = word)
    KEYWORD = "KEYWORD"
    # Operators and punctuation (value = symbol)
    OP = "OP"
    EOF = "EOF"


KEYWORDS = {
    "true", "false", "null", "this", "new", "instanceof",
    "boolean", "byte", "short", "char", "int", "long", "float", "double", "void",
}

# Longest first, so ">>>" wins over ">>" and ">"
OPERATORS = sorted(
    [
        ">>>", "<<", ">>", "<=", ">=", "==", "!=", "&&", "||", "++", "--",
        "<", ">", "+", "-", "*", "/", "%", "&", "|", "^", "!", "~", "?", ":", "=",
        "(", ")", "[", "]", ".", ",",
    ],
    key=len,
    reverse=True,
)

_ESCAPES = {"b": "\b", "t": "\t", "n": "\n", "f": "\f", "r": "\r", "s": " ", '"': '"', "'": "'", "\\": "\\"}


@dataclass
class Token:
    kind: str
    value: Any
    line: int
    column: int
    text: str = ""

    def is_op(self, *symbols: str) -> bool:
        return self.kind == TokenKind.OP and self.value in symbols

    def is_keyword(self, *words: str) -> bool:
        return self.kind == TokenKind.KEYWORD and self.value in words

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, L{self.line}:{self.column})"


def tokenize(source: str, path: Optional[str] = None) -> list[Token]:
    """Produce the token list of a Java expression, ending with an EOF token."""
    tokens: list[Token] = []
    i = 0
    line_no = 1
    line_start = 0

    def error(message: str, at: int) -> ParseError:
        return ParseError(message, line_no, at - line_start + 1, path)

    def read_escape(at: int) -> tuple[str, int]:
        """Decode the escape starting at the backslash ``source[at]``; return (char, next index)."""
        if at + 1 >= len(source):
            raise error("Unterminated escape sequence", at)
        c = source[at + 1]
        if c in _ESCAPES:
            return _ESCAPES[c], at + 2
        if c == "u":
            j = at + 1
            while j < len(source) and source[j] == "u":
                j += 1
            digits = source[j:j + 4]
            if len(digits) != 4 or any(d not in "0123456789abcdefABCDEF" for d in digits):
                raise error("Illegal unicode escape", at)
            return chr(int(digits, 16)), j + 4
        if c in "01234567":
            # up to three octal digits, at most \377
            limit = 3 if c in "0123" else 2
            j = at + 1
            while j < len(source) and j - at - 1 < limit and source[j] in "01234567":
                j += 1
            return chr(int(source[at + 1:j], 8)), j
        raise error(f"Illegal escape character: \\{c}", at)

    def read_quoted(quote: str) -> tuple[str, int]:
        j = i + 1
        chars: list[str] = []
        while True:
            if j >= len(source) or source[j] == "\n":
                raise error("Unclosed " + ("string" if quote == '"' else "character") + " literal", i)
            c = source[j]
            if c == quote:
                return "".join(chars), j + 1
            if c == "\\":
                decoded, j = read_escape(j)
                chars.append(decoded)
            else:
                chars.append(c)
                j += 1

    while i < len(source):
        c = source[i]
        col = i - line_start + 1

        if c == "\n":
            i += 1
            line_no += 1
            line_start = i
            continue
        if c in " \t\r\f":
            i += 1
            continue

        # Comments
        if source.startswith("//", i):
            while i < len(source) and source[i] != "\n":
                i += 1
            continue
        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end < 0:
                raise error("Unclosed comment", i)
            for ch in source[i:end]:
                if ch == "\n":
                    line_no += 1
            newline = source.rfind("\n", i, end)
            if newline >= 0:
                line_start = newline + 1
            i = end + 2
            continue

        # Number
        if c.isdigit() or (c == "." and i + 1 < len(source) and source[i + 1].isdigit()):
            kind, value, end = _read_number(source, i)
            if end < len(source) and (source[end].isalnum() or source[end] == "_"):
                raise error(f"Invalid number: {source[i:end + 1]}", i)
            if value is None:
                raise error(f"Invalid number: {source[i:end]}", i)
            tokens.append(Token(kind, value, line_no, col, source[i:end]))
            i = end
            continue

        # Character literal
        if c == "'":
            value, end = read_quoted("'")
            if len(value) != 1:
                raise error("Character literal must hold exactly one character", i)
            tokens.append(Token(TokenKind.CHAR, value, line_no, col, source[i:end]))
            i = end
            continue

        # String literal
        if c == '"':
            value, end = read_quoted('"')
            tokens.append(Token(TokenKind.STRING, value, line_no, col, source[i:end]))
            i = end
            continue

        # Identifier or keyword
        if c.isalpha() or c in "_$":
            start = i
            while i < len(source) and (source[i].isalnum() or source[i] in "_$"):
                i += 1
            word = source[start:i]
            kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENT
            tokens.append(Token(kind, word, line_no, col, word))
            continue

        for symbol in OPERATORS:
            if source.startswith(symbol, i):
                tokens.append(Token(TokenKind.OP, symbol, line_no, col, symbol))
                i += len(symbol)
                break
        else:
            raise error(f"Unexpected character: {c!r}", i)

    tokens.append(Token(TokenKind.EOF, None, line_no, len(source) - line_start + 1))
    return tokens


def _read_number(source: str, start: int) -> tuple[str, Optional[Any], int]:
    """Scan a numeric literal; return (kind, value or None when malformed, end index)."""
    i = start
    lower = source[start:start + 2].lower()
    if lower in ("0x", "0b"):
        base = 16 if lower == "0x" else 2
        digits = "0123456789abcdefABCDEF_" if base == 16 else "01_"
        i += 2
        while i < len(source) and source[i] in digits:
            i += 1
        body = source[start + 2:i]
        kind = TokenKind.INT
        if i < len(source) and source[i] in "lL":
            kind = TokenKind.LONG
            i += 1
        if not body or body.startswith("_") or body.endswith("_"):
            return kind, None, i
        return kind, int(body.replace("_", ""), base), i

    while i < len(source) and (source[i].isdigit() or source[i] == "_"):
        i += 1
    is_floating = False
    if i < len(source) and source[i] == "." and not (i + 1 < len(source) and source[i + 1].isalpha() and source[i + 1] not in "eEfFdD"):
        is_floating = True
        i += 1
        while i < len(source) and (source[i].isdigit() or source[i] == "_"):
            i += 1
    if i < len(source) and source[i] in "eE":
        j = i + 1
        if j < len(source) and source[j] in "+-":
            j += 1
        if j < len(source) and source[j].isdigit():
            is_floating = True
            i = j
            while i < len(source) and (source[i].isdigit() or source[i] == "_"):
                i += 1
        else:
            return TokenKind.DOUBLE, None, j
    body = source[start:i]
    if "__" in body or body.startswith("_") or body.endswith("_") or "_." in body or "._" in body:
        return TokenKind.INT, None, i
    text = body.replace("_", "")

    suffix = source[i] if i < len(source) else ""
    if suffix in ("f", "F"):
        return TokenKind.FLOAT, float(text), i + 1
    if suffix in ("d", "D"):
        return TokenKind.DOUBLE, float(text), i + 1
    if is_floating:
        return TokenKind.DOUBLE, float(text), i
    kind = TokenKind.INT
    if suffix in ("l", "L"):
        kind = TokenKind.LONG
        i += 1
    if len(text) > 1 and text.startswith("0"):
        # octal
        if any(d not in "01234567" for d in text):
            return kind, None, i
        return kind, int(text, 8), i
    return kind, int(text), i
