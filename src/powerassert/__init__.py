"""powerassert: evaluate a quoted Java predicate and explain every intermediate value when it fails."""

__version__ = "0.1.0"

from powerassert.assertion_formatter import AssertionFormatter, DefaultAssertionFormatter
from powerassert.asserts import AssertionCondition, assert_true, condition
from powerassert.decompiler import Decompiler
from powerassert.errors import ConfigError, ParseError, PowerAssertError, ResolutionError, TypeCheckError
from powerassert.nodes import ExceptionNode, Node, UnsupportedNode, ValueNode
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model
from powerassert.value_formatter import DefaultValueFormatter, ValueFormatter

__all__ = [
    "AssertionCondition",
    "AssertionFormatter",
    "ConfigError",
    "Decompiler",
    "DefaultAssertionFormatter",
    "DefaultValueFormatter",
    "ExceptionNode",
    "Node",
    "ParseError",
    "PowerAssertError",
    "ResolutionError",
    "TypeCheckError",
    "UnsupportedNode",
    "ValueFormatter",
    "ValueNode",
    "assert_true",
    "build_model",
    "condition",
    "quote",
]
