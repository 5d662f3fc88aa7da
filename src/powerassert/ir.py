"""IR (Intermediate Representation): the reified expression tree the evaluator walks.

An op's operands are Values: either another Op (standing for its own result) or a block Parameter.
Ops compare by identity, so they can key the captured-values map and the evaluator's bookkeeping.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional, Union

from powerassert.typerefs import BOOLEAN, INT, OBJECT, VOID, ArrayType, TypeRef

BINARY_KINDS = ("add", "sub", "mul", "div", "mod", "and", "or", "xor", "lshl", "ashr", "lshr")
COMPARE_KINDS = ("eq", "neq", "lt", "le", "gt", "ge")


@dataclass(eq=False)
class Parameter:
    """Block parameter; the lambda's receiver binding is rendered as ``this``."""
    name: str = "this"
    type: TypeRef = OBJECT

    def to_dict(self) -> dict:
        return {"param": self.name, "type": str(self.type)}

    def to_text(self) -> str:
        return f"%{self.name}"


@dataclass(eq=False)
class Var:
    """Local variable slot captured by the predicate."""
    name: str
    slot: int
    type: TypeRef = OBJECT


@dataclass(frozen=True)
class FieldRef:
    owner: TypeRef
    name: str
    type: TypeRef = OBJECT

    def __str__(self) -> str:
        return f"{self.owner}::{self.name}"


@dataclass(frozen=True)
class MethodRef:
    owner: TypeRef
    name: str
    param_types: tuple[TypeRef, ...] = ()
    return_type: TypeRef = OBJECT

    def __str__(self) -> str:
        params = ", ".join(str(t) for t in self.param_types)
        return f"{self.owner}::{self.name}({params}){self.return_type}"


class Op:
    """Base for all ops. ``name`` is the op kind as used by the decompiler's symbol table."""
    name: ClassVar[str] = "op"

    @property
    def kind(self) -> str:
        return self.name

    @property
    def operands(self) -> list["Value"]:
        return []

    @property
    def bodies(self) -> list["Body"]:
        return []

    @property
    def result_type(self) -> Optional[TypeRef]:
        return None

    def payload(self) -> list[str]:
        """Kind-specific attributes shown by to_text/to_dict."""
        return []

    def to_text(self) -> str:
        parts = self.payload() + [_value_text(v) for v in self.operands]
        parts += ["{" + b.entry_block.terminating_op.to_text() + "}" for b in self.bodies]
        return f"{self.name}(" + ", ".join(parts) + ")"

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"op": self.name}
        if self.result_type is not None:
            d["type"] = str(self.result_type)
        if self.payload():
            d["attrs"] = self.payload()
        if self.operands:
            d["operands"] = [v.to_dict() for v in self.operands]
        if self.bodies:
            d["bodies"] = [b.entry_block.terminating_op.to_dict() for b in self.bodies]
        return d

    def __repr__(self) -> str:
        return self.to_text()


Value = Union[Op, Parameter]


def _value_text(value: Value) -> str:
    return value.to_text()


@dataclass(eq=False, repr=False)
class Block:
    """Linear region; the last op is the terminator that yields the region's value."""
    ops: list[Op] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)

    @property
    def terminating_op(self) -> Op:
        return self.ops[-1]


@dataclass(eq=False, repr=False)
class Body:
    blocks: list[Block] = field(default_factory=list)

    @property
    def entry_block(self) -> Block:
        return self.blocks[0]


# --- Ops ---

@dataclass(eq=False, repr=False)
class Const(Op):
    name: ClassVar[str] = "constant"
    value: Any
    type: TypeRef = OBJECT

    @property
    def result_type(self) -> TypeRef:
        return self.type

    def payload(self) -> list[str]:
        return [repr(self.value)]


@dataclass(eq=False, repr=False)
class VarLoad(Op):
    name: ClassVar[str] = "var.load"
    var: Var

    @property
    def result_type(self) -> TypeRef:
        return self.var.type

    def payload(self) -> list[str]:
        return [self.var.name]


@dataclass(eq=False, repr=False)
class VarStore(Op):
    name: ClassVar[str] = "var.store"
    var: Var
    value: Value

    @property
    def operands(self) -> list[Value]:
        return [self.value]

    @property
    def result_type(self) -> TypeRef:
        return VOID

    def payload(self) -> list[str]:
        return [self.var.name]


@dataclass(eq=False, repr=False)
class FieldLoad(Op):
    name: ClassVar[str] = "field.load"
    field: FieldRef
    receiver: Optional[Value] = None

    @property
    def operands(self) -> list[Value]:
        return [] if self.receiver is None else [self.receiver]

    @property
    def result_type(self) -> TypeRef:
        return self.field.type

    def payload(self) -> list[str]:
        return [str(self.field)]


@dataclass(eq=False, repr=False)
class Invoke(Op):
    """Method call; when ``has_receiver`` the receiver is operand 0."""
    name: ClassVar[str] = "invoke"
    method: MethodRef
    args: list[Value] = field(default_factory=list)
    has_receiver: bool = False

    @property
    def operands(self) -> list[Value]:
        return list(self.args)

    @property
    def result_type(self) -> TypeRef:
        return self.method.return_type

    def payload(self) -> list[str]:
        return [str(self.method)]


@dataclass(eq=False, repr=False)
class New(Op):
    """Object construction, or array allocation when ``type`` is an ArrayType (operands are dimensions)."""
    name: ClassVar[str] = "new"
    type: TypeRef
    args: list[Value] = field(default_factory=list)
    param_types: tuple[TypeRef, ...] = ()

    @property
    def operands(self) -> list[Value]:
        return list(self.args)

    @property
    def result_type(self) -> TypeRef:
        return self.type

    @property
    def is_array(self) -> bool:
        return isinstance(self.type, ArrayType)

    def payload(self) -> list[str]:
        return [str(self.type)]


@dataclass(eq=False, repr=False)
class ArrayLoad(Op):
    name: ClassVar[str] = "array.load"
    array: Value
    index: Value
    type: TypeRef = OBJECT

    @property
    def operands(self) -> list[Value]:
        return [self.array, self.index]

    @property
    def result_type(self) -> TypeRef:
        return self.type


@dataclass(eq=False, repr=False)
class ArrayLength(Op):
    name: ClassVar[str] = "array.length"
    array: Value

    @property
    def operands(self) -> list[Value]:
        return [self.array]

    @property
    def result_type(self) -> TypeRef:
        return INT


@dataclass(eq=False, repr=False)
class BinaryOp(Op):
    """Arithmetic, bitwise and shift ops; ``op`` is one of BINARY_KINDS."""
    op: str
    lhs: Value
    rhs: Value
    type: TypeRef = OBJECT

    @property
    def kind(self) -> str:
        return self.op

    @property
    def operands(self) -> list[Value]:
        return [self.lhs, self.rhs]

    @property
    def result_type(self) -> TypeRef:
        return self.type

    def to_text(self) -> str:
        return f"{self.op}({self.lhs.to_text()}, {self.rhs.to_text()})"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "op": self.op}


@dataclass(eq=False, repr=False)
class CompareOp(Op):
    """Equality and relational tests; ``op`` is one of COMPARE_KINDS."""
    op: str
    lhs: Value
    rhs: Value

    @property
    def kind(self) -> str:
        return self.op

    @property
    def operands(self) -> list[Value]:
        return [self.lhs, self.rhs]

    @property
    def result_type(self) -> TypeRef:
        return BOOLEAN

    def to_text(self) -> str:
        return f"{self.op}({self.lhs.to_text()}, {self.rhs.to_text()})"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "op": self.op}


@dataclass(eq=False, repr=False)
class Not(Op):
    name: ClassVar[str] = "not"
    operand: Value

    @property
    def operands(self) -> list[Value]:
        return [self.operand]

    @property
    def result_type(self) -> TypeRef:
        return BOOLEAN


@dataclass(eq=False, repr=False)
class Neg(Op):
    name: ClassVar[str] = "neg"
    operand: Value
    type: TypeRef = OBJECT

    @property
    def operands(self) -> list[Value]:
        return [self.operand]

    @property
    def result_type(self) -> TypeRef:
        return self.type


@dataclass(eq=False, repr=False)
class Conv(Op):
    """Primitive conversion to ``type``."""
    name: ClassVar[str] = "conv"
    type: TypeRef
    operand: Value

    @property
    def operands(self) -> list[Value]:
        return [self.operand]

    @property
    def result_type(self) -> TypeRef:
        return self.type


@dataclass(eq=False, repr=False)
class Cast(Op):
    """Reference cast to ``type``."""
    name: ClassVar[str] = "cast"
    type: TypeRef
    operand: Value

    @property
    def operands(self) -> list[Value]:
        return [self.operand]

    @property
    def result_type(self) -> TypeRef:
        return self.type

    def payload(self) -> list[str]:
        return [str(self.type)]


@dataclass(eq=False, repr=False)
class InstanceOf(Op):
    name: ClassVar[str] = "instanceof"
    type: TypeRef
    operand: Value

    @property
    def operands(self) -> list[Value]:
        return [self.operand]

    @property
    def result_type(self) -> TypeRef:
        return BOOLEAN

    def payload(self) -> list[str]:
        return [str(self.type)]


@dataclass(eq=False, repr=False)
class CondAnd(Op):
    """Short-circuit ``&&`` over one body per operand, each terminated by a Yield."""
    name: ClassVar[str] = "java.cand"
    children: list[Body] = field(default_factory=list)

    @property
    def bodies(self) -> list[Body]:
        return self.children

    @property
    def result_type(self) -> TypeRef:
        return BOOLEAN


@dataclass(eq=False, repr=False)
class CondOr(CondAnd):
    name: ClassVar[str] = "java.cor"


@dataclass(eq=False, repr=False)
class Ternary(Op):
    """``c ? t : e`` with three bodies: condition, then-branch, else-branch."""
    name: ClassVar[str] = "java.cexpression"
    children: list[Body] = field(default_factory=list)
    type: TypeRef = OBJECT

    @property
    def bodies(self) -> list[Body]:
        return self.children

    @property
    def result_type(self) -> TypeRef:
        return self.type


@dataclass(eq=False, repr=False)
class Return(Op):
    name: ClassVar[str] = "return"
    value: Value

    @property
    def operands(self) -> list[Value]:
        return [self.value]


@dataclass(eq=False, repr=False)
class Yield(Op):
    name: ClassVar[str] = "yield"
    value: Value

    @property
    def operands(self) -> list[Value]:
        return [self.value]


@dataclass(eq=False, repr=False)
class Lambda(Op):
    """Root of a quoted predicate: a body whose single block ends in Return."""
    name: ClassVar[str] = "lambda"
    body: Body = field(default_factory=Body)

    @property
    def bodies(self) -> list[Body]:
        return [self.body]

    @property
    def result_type(self) -> TypeRef:
        return BOOLEAN


@dataclass(eq=False, repr=False)
class ThisOp(Op):
    """Synthetic op standing for a captured ``this`` parameter and its bound value."""
    name: ClassVar[str] = "this"
    parameter: Parameter
    value: Any = None

    @property
    def result_type(self) -> TypeRef:
        return self.parameter.type


@dataclass
class Quoted:
    """An op tree plus the runtime values bound to its captured slots (Var or Parameter keys)."""
    op: Op
    captured: Mapping[Any, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "op": self.op.to_dict(),
            "captured": {_captured_key(k): repr(v) for k, v in self.captured.items()},
        }


def _captured_key(key: Any) -> str:
    if isinstance(key, Var):
        return key.name
    if isinstance(key, Parameter):
        return key.name
    return repr(key)
