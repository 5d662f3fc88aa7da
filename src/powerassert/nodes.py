"""Model nodes: the annotated evaluation tree built by the interpreter.

One node per evaluated op, recording its value, the exception it raised, or that it could not be
evaluated. ``children`` lists the operand nodes that were actually evaluated, in evaluation order.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from powerassert.ir import Const, Conv, Neg, Op


@dataclass(frozen=True)
class Node:
    op: Op
    children: tuple["Node", ...] = ()

    def derived_failure(self, op: Op, children: Optional[Sequence["Node"]] = None) -> "Node":
        """Failure node for ``op`` whose operand (this node) failed; exceptions keep their throwable."""
        return UnsupportedNode(op, tuple(children) if children is not None else (self,))


@dataclass(frozen=True)
class UnsupportedNode(Node):
    pass


@dataclass(frozen=True)
class ValueNode(Node):
    value: Any = None

    def is_trivial(self) -> bool:
        """Constants and their sign/conversion wrappers add nothing to a diagnostic."""
        if isinstance(self.op, Const) and not self.children:
            return True
        if len(self.children) != 1 or not isinstance(self.children[0], ValueNode):
            return False
        child = self.children[0]
        if isinstance(self.op, Neg):
            return child.is_trivial()
        if isinstance(self.op, Conv):
            return not child.children and isinstance(child.op, Const)
        return False


@dataclass(frozen=True)
class ExceptionNode(Node):
    throwable: Optional[BaseException] = None

    def derived_failure(self, op: Op, children: Optional[Sequence[Node]] = None) -> Node:
        return ExceptionNode(op, tuple(children) if children is not None else (self,), self.throwable)
