"""Structured errors for powerassert (parse, type, config, resolution) and the Java throwables
raised while evaluating a predicate."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class PowerAssertError(Exception):
    """Base for all errors reported by the engine itself."""
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    source: Optional[str] = None

    def __str__(self) -> str:
        loc = ""
        if self.source:
            loc = f"{self.source}:"
        if self.line is not None:
            loc += f"{self.line}"
            if self.column is not None:
                loc += f":{self.column}"
            loc += ": "
        elif loc:
            loc += " "
        return f"{loc}{self.message}"


class ParseError(PowerAssertError):
    """Expression source did not tokenize or did not match the grammar."""
    pass


class TypeCheckError(PowerAssertError):
    """Type checker rejected the expression (undefined symbol, bad operand types, etc.)."""
    pass


class ConfigError(PowerAssertError):
    """Settings file could not be read or failed validation."""
    pass


class ResolutionError(PowerAssertError):
    """The IR references a member or type the host cannot resolve. Never captured in the model."""
    pass


# --- Java throwables (captured into ExceptionNode) ---

class JavaException(Exception):
    """A failure of the evaluated program, reported under its Java class name."""
    java_name = "java.lang.RuntimeException"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message or ""


class ArithmeticException(JavaException):
    java_name = "java.lang.ArithmeticException"


class ClassCastException(JavaException):
    java_name = "java.lang.ClassCastException"


class ArrayIndexOutOfBoundsException(JavaException):
    java_name = "java.lang.ArrayIndexOutOfBoundsException"


class NegativeArraySizeException(JavaException):
    java_name = "java.lang.NegativeArraySizeException"


class NullPointerException(JavaException):
    java_name = "java.lang.NullPointerException"


class ClassNotFoundException(JavaException):
    java_name = "java.lang.ClassNotFoundException"


class IndexOutOfBoundsException(JavaException):
    java_name = "java.lang.IndexOutOfBoundsException"


class StringIndexOutOfBoundsException(IndexOutOfBoundsException):
    java_name = "java.lang.StringIndexOutOfBoundsException"


class NumberFormatException(JavaException):
    java_name = "java.lang.NumberFormatException"
