"""Turn an evaluation model into the multi-line diagnostic shown by a failed assertion."""

from typing import Optional, Protocol, runtime_checkable

from powerassert import value_formatter
from powerassert.decompiler import Decompiler
from powerassert.nodes import ExceptionNode, Node, UnsupportedNode, ValueNode
from powerassert.value_formatter import ValueFormatter


@runtime_checkable
class AssertionFormatter(Protocol):
    def format_assertion(self, model: Node) -> str:
        """Return the diagnostic for ``model``."""
        ...


class DefaultAssertionFormatter:
    """One line per node, children before parents; trivial value nodes are left out."""

    def __init__(self, formatter: ValueFormatter = value_formatter.DEFAULT, decompiler: Optional[Decompiler] = None):
        self.formatter = formatter
        self.decompiler = decompiler or Decompiler(formatter)

    def format_assertion(self, model: Node) -> str:
        lines: list[str] = []
        self._walk(model, lines)
        return "".join(lines)

    def _walk(self, node: Node, lines: list[str]) -> None:
        for child in node.children:
            self._walk(child, lines)
        line = self.format_node(node)
        if line is not None:
            lines.append(line + "\n")

    def format_node(self, node: Node) -> Optional[str]:
        text = self.decompiler.op_text(node.op)
        if isinstance(node, ExceptionNode):
            return f"{text} -> throws {self.formatter.format(node.throwable)}"
        if isinstance(node, UnsupportedNode):
            return f"Unsupported node: {text} ({node.op.kind})"
        if isinstance(node, ValueNode) and not node.is_trivial():
            return f"{text} -> {self.formatter.format(node.value)}"
        return None


DEFAULT = DefaultAssertionFormatter()
