"""Model-building interpreter: evaluate IR ops left to right and record every outcome as a Node."""

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from powerassert.errors import (
    ArrayIndexOutOfBoundsException,
    ClassCastException,
    NullPointerException,
    ResolutionError,
)
from powerassert.ir import (
    ArrayLength,
    ArrayLoad,
    BinaryOp,
    Body,
    Cast,
    CompareOp,
    CondAnd,
    CondOr,
    Const,
    Conv,
    FieldLoad,
    InstanceOf,
    Invoke,
    Lambda,
    Neg,
    New,
    Not,
    Op,
    Parameter,
    Quoted,
    Return,
    Ternary,
    ThisOp,
    Value,
    VarLoad,
    Yield,
)
from powerassert.nodes import ExceptionNode, Node, UnsupportedNode, ValueNode
from powerassert.runtime import arith
from powerassert.runtime.resolver import Resolver
from powerassert.runtime.values import (
    Cell,
    JArray,
    JChar,
    JInt,
    box,
    java_str,
    kind_of,
    static_type_of,
)
from powerassert.typerefs import BOXED, INTEGRAL_NAMES, ArrayType, ClassType, PrimitiveType, TypeRef

logger = logging.getLogger(__name__)


class Unsupported(Exception):
    """Raised inside an op handler when the operand values are outside what the op supports."""
    pass


def build_model(quoted: Quoted, resolver: Optional[Resolver] = None) -> Node:
    """Evaluate a quoted predicate and return the model of its top-level expression."""
    return Interpreter(quoted.captured, resolver).build(quoted.op)


def _require(result: Optional[Any]) -> Any:
    if result is None:
        raise Unsupported()
    return result


def _index(value: Any) -> int:
    kind = kind_of(value)
    if kind is None or kind.name not in INTEGRAL_NAMES or kind.name == "long":
        raise Unsupported()
    return value.code if isinstance(value, JChar) else int(value)


def _class_name(value: Any) -> str:
    t = static_type_of(value)
    if isinstance(t, PrimitiveType):
        t = BOXED[t]
    if isinstance(t, ArrayType):
        return f"[{t.simple_name()}"
    return str(t)


def _non_null(value: Any) -> Any:
    if value is None:
        raise NullPointerException()
    return value


class Interpreter:
    """Walks one quoted op tree. ``captured`` binds Var slots and Parameters to runtime values."""

    def __init__(self, captured: Mapping[Any, Any], resolver: Optional[Resolver] = None):
        self.captured = captured
        self.resolver = resolver or Resolver()
        self._handlers: dict[type, Callable[[Any], Node]] = {
            Const: self._const,
            VarLoad: self._var_load,
            ThisOp: self._this,
            FieldLoad: self._field_load,
            Invoke: self._invoke,
            New: self._new,
            ArrayLoad: self._array_load,
            ArrayLength: self._array_length,
            BinaryOp: self._binary,
            CompareOp: self._compare,
            Not: self._not,
            Neg: self._neg,
            Conv: self._conv,
            Cast: self._cast,
            InstanceOf: self._instance_of,
            CondAnd: self._conditional,
            CondOr: self._conditional,
            Ternary: self._ternary,
        }

    def build(self, op: Op) -> Node:
        """Model of a lambda root: its single block must end in a Return, whose operand is evaluated."""
        if isinstance(op, Lambda) and len(op.body.blocks) == 1:
            term = op.body.entry_block.terminating_op
            if isinstance(term, Return):
                return self.model_value(term.value)
        logger.debug("unsupported root %s", op.kind)
        return UnsupportedNode(op)

    def model_value(self, value: Value) -> Node:
        if isinstance(value, Parameter):
            if value in self.captured:
                bound = box(self.captured[value])
                return ValueNode(ThisOp(value, bound), value=bound)
            return UnsupportedNode(ThisOp(value))
        return self.model(value)

    def model(self, op: Op) -> Node:
        handler = self._handlers.get(type(op))
        if handler is None:
            logger.debug("unsupported op %s", op.kind)
            return UnsupportedNode(op)
        return handler(op)

    def model_body(self, body: Body) -> Node:
        """Model of a single-block body terminated by a Yield."""
        term = body.entry_block.terminating_op
        if len(body.blocks) != 1 or not isinstance(term, Yield):
            return UnsupportedNode(term)
        return self.model_value(term.value)

    # --- helpers ---

    def _operands(self, values: Sequence[Value]) -> tuple[list[Node], Optional[Node]]:
        """Evaluate operands left to right, stopping at the first one that is not a value."""
        children: list[Node] = []
        for value in values:
            node = self.model_value(value)
            children.append(node)
            if not isinstance(node, ValueNode):
                return children, node
        return children, None

    def _apply(self, op: Op, children: Sequence[Node], fn: Callable[[], Any]) -> Node:
        """Run the op's own computation, turning raised errors into exception nodes."""
        try:
            result = fn()
        except Unsupported:
            logger.debug("unsupported operands for %s", op.kind)
            return UnsupportedNode(op, tuple(children))
        except ResolutionError:
            raise
        except Exception as e:
            logger.debug("%s raised %s", op.kind, type(e).__name__)
            return ExceptionNode(op, tuple(children), throwable=e)
        return ValueNode(op, tuple(children), value=result)

    def _evaluate(self, op: Op, fn: Callable[..., Any]) -> Node:
        """Evaluate all operands, then ``fn(*operand_values)``."""
        children, failed = self._operands(op.operands)
        if failed is not None:
            return failed.derived_failure(op, children)
        values = [c.value for c in children]
        return self._apply(op, children, lambda: fn(*values))

    # --- handlers ---

    def _const(self, op: Const) -> Node:
        return ValueNode(op, value=box(op.value))

    def _var_load(self, op: VarLoad) -> Node:
        if op.var not in self.captured:
            logger.debug("no captured value for %s", op.var.name)
            return UnsupportedNode(op)
        value = self.captured[op.var]
        if isinstance(value, Cell):
            value = value.value
        return ValueNode(op, value=box(value))

    def _this(self, op: ThisOp) -> Node:
        return ValueNode(op, value=box(op.value))

    def _field_load(self, op: FieldLoad) -> Node:
        if op.receiver is None:
            return self._apply(op, (), lambda: self.resolver.load_static_field(op.field.owner, op.field.name))
        return self._evaluate(op, lambda receiver: self.resolver.load_field(_non_null(receiver), op.field.name))

    def _invoke(self, op: Invoke) -> Node:
        name = op.method.name

        def call(*values: Any) -> Any:
            if op.has_receiver:
                receiver = _non_null(values[0])
                return box(self.resolver.find_method(receiver, name)(*values[1:]))
            return box(self.resolver.find_static_method(op.method.owner, name)(*values))

        return self._evaluate(op, call)

    def _new(self, op: New) -> Node:
        if isinstance(op.type, ArrayType):
            return self._evaluate(op, lambda *dims: self._new_array(op.type, dims))
        return self._evaluate(op, lambda *args: self.resolver.instantiate(op.type, list(args)))

    def _new_array(self, t: ArrayType, dims: Sequence[Any]) -> JArray:
        lengths = [_index(d) for d in dims]
        deep = t.deep_component_type()
        if isinstance(deep, ClassType):
            self.resolver.resolve_class(deep)
        return JArray.new(t.component, lengths)

    def _array_load(self, op: ArrayLoad) -> Node:
        def load(array: Any, index: Any) -> Any:
            i = _index(index)
            if isinstance(_non_null(array), JArray):
                return array[i]
            if isinstance(array, (list, tuple)):
                if i < 0 or i >= len(array):
                    raise ArrayIndexOutOfBoundsException(f"Index {i} out of bounds for length {len(array)}")
                return box(array[i])
            raise Unsupported()

        return self._evaluate(op, load)

    def _array_length(self, op: ArrayLength) -> Node:
        def length(array: Any) -> Any:
            if isinstance(_non_null(array), (JArray, list, tuple)):
                return JInt(len(array))
            raise Unsupported()

        return self._evaluate(op, length)

    def _binary(self, op: BinaryOp) -> Node:
        def apply(left: Any, right: Any) -> Any:
            if op.op == "add" and (_is_string(left) or _is_string(right)):
                return java_str(left) + java_str(right)
            return _require(arith.binary(op.op, left, right))

        return self._evaluate(op, apply)

    def _compare(self, op: CompareOp) -> Node:
        def apply(left: Any, right: Any) -> bool:
            if op.op == "eq":
                return arith.equals(left, right)
            if op.op == "neq":
                return not arith.equals(left, right)
            return _require(arith.compare(op.op, left, right))

        return self._evaluate(op, apply)

    def _not(self, op: Not) -> Node:
        def apply(value: Any) -> bool:
            if not isinstance(value, bool):
                raise Unsupported()
            return not value

        return self._evaluate(op, apply)

    def _neg(self, op: Neg) -> Node:
        return self._evaluate(op, lambda value: _require(arith.negate(value)))

    def _conv(self, op: Conv) -> Node:
        return self._evaluate(op, lambda value: self._convert(op.type, value))

    @staticmethod
    def _convert(target: TypeRef, value: Any) -> Any:
        if not isinstance(target, PrimitiveType):
            raise Unsupported()
        # unboxing a null wrapper
        _non_null(value)
        if kind_of(value) == target:
            return value
        return _require(arith.convert(target, value))

    def _cast(self, op: Cast) -> Node:
        def apply(value: Any) -> Any:
            if isinstance(op.type, PrimitiveType):
                return self._convert(op.type, value)
            if value is None or self.resolver.is_instance(value, op.type):
                return value
            raise ClassCastException(f"class {_class_name(value)} cannot be cast to class {op.type}")

        return self._evaluate(op, apply)

    def _instance_of(self, op: InstanceOf) -> Node:
        return self._evaluate(op, lambda value: self.resolver.is_instance(value, op.type))

    def _conditional(self, op: CondAnd) -> Node:
        # && stops at the first false operand, || at the first true one
        decisive = isinstance(op, CondOr)
        children: list[Node] = []
        for body in op.children:
            node = self.model_body(body)
            children.append(node)
            if not isinstance(node, ValueNode):
                return node.derived_failure(op, children)
            if not isinstance(node.value, bool):
                return UnsupportedNode(op, tuple(children))
            if node.value is decisive:
                break
        else:
            return ValueNode(op, tuple(children), value=not decisive)
        return ValueNode(op, tuple(children), value=decisive)

    def _ternary(self, op: Ternary) -> Node:
        if len(op.children) != 3:
            return UnsupportedNode(op)
        cond = self.model_body(op.children[0])
        if not isinstance(cond, ValueNode):
            return cond.derived_failure(op, [cond])
        if not isinstance(cond.value, bool):
            return UnsupportedNode(op, (cond,))
        branch = self.model_body(op.children[1 if cond.value else 2])
        if not isinstance(branch, ValueNode):
            return branch.derived_failure(op, [cond, branch])
        return ValueNode(op, (cond, branch), value=branch.value)


def _is_string(value: Any) -> bool:
    return isinstance(value, str) and not isinstance(value, JChar)
