"""Resolve type references, fields and methods against host classes and the Java bridge."""

import importlib
import inspect
import logging
from functools import partial
from typing import Any, Callable, Mapping, Optional

from powerassert.errors import ClassNotFoundException, ResolutionError
from powerassert.runtime import bridge
from powerassert.runtime.values import (
    JArray,
    JChar,
    JFloating,
    JIntegral,
    box,
    kind_of,
    qualified_name,
    static_type_of,
)
from powerassert.typerefs import (
    BOOLEAN,
    DOUBLE,
    INT,
    OBJECT,
    STRING,
    ArrayType,
    ClassType,
    PrimitiveType,
    TypeRef,
)

logger = logging.getLogger(__name__)

_MISSING = object()

# Receivers whose Java methods come from the bridge before any Python attribute of the same name
_BRIDGED_FIRST = (str, list, tuple, dict, set, frozenset, bool, JIntegral, JFloating, JArray)


def type_from_annotation(annotation: Any) -> TypeRef:
    """Static type for a Python annotation on a host field or method (unknown -> Object)."""
    if annotation is bool:
        return BOOLEAN
    if annotation is int:
        return INT
    if annotation is float:
        return DOUBLE
    if annotation is str:
        return STRING
    if isinstance(annotation, type):
        kind = getattr(annotation, "kind", None)
        if isinstance(kind, PrimitiveType):
            return kind
        if annotation is not object:
            return ClassType(qualified_name(annotation), host=annotation)
    return OBJECT


def _annotations(obj: Any) -> Mapping[str, Any]:
    try:
        return inspect.get_annotations(obj, eval_str=True)
    except (NameError, TypeError, SyntaxError):
        return {}


class Resolver:
    """Maps Java-named types to host classes.

    ``imports`` maps simple names to classes or dotted paths; it extends the built-in
    java.lang / java.util table for front-end lookups.
    """

    def __init__(self, imports: Optional[Mapping[str, Any]] = None):
        self.imports = dict(imports or {})

    # --- types ---

    def lookup_type(self, name: str) -> Optional[ClassType]:
        """Type for a simple or qualified name written in an expression, or None."""
        target = self.imports.get(name)
        if isinstance(target, type):
            return ClassType(getattr(target, "java_name", None) or qualified_name(target), host=target)
        if isinstance(target, str):
            return ClassType(target)
        if name in bridge.DEFAULT_IMPORTS:
            return ClassType(bridge.DEFAULT_IMPORTS[name])
        if name in bridge.JAVA_TYPES:
            return ClassType(name)
        return None

    def load_class(self, name: str) -> type:
        """Import ``module.Qualified.Name``, trying the longest importable module prefix first."""
        parts = name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            try:
                obj: Any = importlib.import_module(".".join(parts[:split]))
            except ImportError:
                continue
            try:
                for attr in parts[split:]:
                    obj = getattr(obj, attr)
            except AttributeError:
                break
            if isinstance(obj, type):
                return obj
            break
        logger.debug("class %s is not importable", name)
        raise ClassNotFoundException(name)

    def resolve_class(self, t: TypeRef) -> type:
        """Host class behind a reference type; registry types with several host classes give the first."""
        if isinstance(t, ClassType):
            if t.host is not None:
                return t.host
            if t.name in bridge.JAVA_TYPES:
                hosts = bridge.JAVA_TYPES[t.name]
                if hosts:
                    return hosts[0]
                raise ClassNotFoundException(t.name)
            return self.load_class(t.name)
        if isinstance(t, ArrayType):
            return JArray
        raise ClassNotFoundException(str(t))

    def host_types(self, t: TypeRef) -> tuple[type, ...]:
        if isinstance(t, ClassType) and t.host is None and t.name in bridge.JAVA_TYPES:
            return bridge.JAVA_TYPES[t.name]
        if isinstance(t, PrimitiveType):
            return (bool,) if t == BOOLEAN else ()
        return (self.resolve_class(t),)

    def simple_name(self, t: ClassType) -> str:
        if t.host is not None:
            return t.host.__name__
        if t.name in bridge.JAVA_TYPES:
            return t.name.rsplit(".", 1)[-1]
        return self.load_class(t.name).__name__

    def is_instance(self, value: Any, t: TypeRef) -> bool:
        """Java ``instanceof``; raises ClassNotFoundException for an unresolvable class."""
        if value is None:
            return False
        if isinstance(t, PrimitiveType):
            return kind_of(value) == t
        if isinstance(t, ArrayType):
            return isinstance(value, JArray) and self.is_assignable(value.component_type, t.component)
        if isinstance(value, JChar) and t.name in ("java.lang.String", "java.lang.CharSequence"):
            return False
        if isinstance(value, JArray):
            return t == OBJECT
        return isinstance(value, self.host_types(t))

    def is_assignable(self, source: TypeRef, target: TypeRef) -> bool:
        if source == target:
            return True
        if isinstance(source, PrimitiveType) or isinstance(target, PrimitiveType):
            return False
        if target == OBJECT:
            return True
        if isinstance(source, ArrayType) or isinstance(target, ArrayType):
            return (
                isinstance(source, ArrayType)
                and isinstance(target, ArrayType)
                and self.is_assignable(source.component, target.component)
            )
        targets = self.host_types(target)
        return all(issubclass(s, targets) for s in self.host_types(source))

    # --- fields ---

    def load_static_field(self, owner: TypeRef, name: str) -> Any:
        entry = bridge.STATIC_FIELDS.get((str(owner), name))
        if entry is not None:
            return entry[0]
        cls = self._member_owner(owner, name)
        return box(getattr(cls, name))

    def load_field(self, receiver: Any, name: str) -> Any:
        if not self.has_attribute(receiver, name):
            raise ResolutionError(f"no field {name!r} on {qualified_name(type(receiver))}")
        return box(getattr(receiver, name))

    def field_type(self, owner: TypeRef, name: str, instance: Any = _MISSING) -> TypeRef:
        """Static type of a field, from the bridge, the instance's own value or class annotations."""
        entry = bridge.STATIC_FIELDS.get((str(owner), name))
        if entry is not None:
            return entry[1]
        if instance is not _MISSING and instance is not None:
            value = inspect.getattr_static(instance, name, _MISSING)
            if value is not _MISSING and not _is_descriptor(value):
                return static_type_of(box(value))
        try:
            cls = self.resolve_class(owner)
        except ClassNotFoundException:
            return OBJECT
        annotation = _annotations(cls).get(name, _MISSING)
        if annotation is _MISSING:
            prop = inspect.getattr_static(cls, name, None)
            if isinstance(prop, property) and prop.fget is not None:
                annotation = _annotations(prop.fget).get("return", _MISSING)
        return OBJECT if annotation is _MISSING else type_from_annotation(annotation)

    # --- methods ---

    def find_static_method(self, owner: TypeRef, name: str) -> Callable[..., Any]:
        member = bridge.STATIC_METHODS.get((str(owner), name))
        if member is not None:
            return partial(bridge.call, member)
        cls = self._member_owner(owner, name)
        return getattr(cls, name)

    def find_method(self, receiver: Any, name: str) -> Callable[..., Any]:
        """Bound callable for ``receiver.name(...)``; ResolutionError when there is none."""
        member = bridge.find_instance_method(receiver, name)
        if member is not None and isinstance(receiver, _BRIDGED_FIRST):
            return partial(bridge.call, member, receiver)
        if self.has_attribute(receiver, name):
            return getattr(receiver, name)
        if member is not None:
            return partial(bridge.call, member, receiver)
        raise ResolutionError(f"no method {name!r} on {qualified_name(type(receiver))}")

    def _bridge_member(self, owner: TypeRef, name: str, static: bool) -> Optional[bridge.Member]:
        if static:
            return bridge.STATIC_METHODS.get((str(owner), name))
        try:
            hosts = self.host_types(owner) or (object,)
        except ClassNotFoundException:
            hosts = (object,)
        return bridge.instance_member(hosts, name)

    def method_return_type(self, owner: TypeRef, name: str, static: bool) -> Optional[TypeRef]:
        """Declared return type of a method; None means "promoted argument type"."""
        member = self._bridge_member(owner, name, static)
        try:
            cls = self.resolve_class(owner)
        except ClassNotFoundException:
            cls = None
        if member is not None and (static or cls is None or issubclass(cls, _BRIDGED_FIRST)):
            return member.return_type
        fn = inspect.getattr_static(cls, name, None) if cls is not None else None
        if isinstance(fn, (staticmethod, classmethod)):
            fn = fn.__func__
        if callable(fn):
            annotation = _annotations(fn).get("return", _MISSING)
            if annotation is not _MISSING:
                return type_from_annotation(annotation)
        return member.return_type if member is not None else OBJECT

    def method_param_types(self, owner: TypeRef, name: str, static: bool) -> Optional[tuple[TypeRef, ...]]:
        member = self._bridge_member(owner, name, static)
        return member.param_types if member is not None else None

    # --- construction ---

    def instantiate(self, t: TypeRef, args: list[Any]) -> Any:
        if isinstance(t, ClassType) and t.host is None and t.name in bridge.CONSTRUCTORS:
            return box(bridge.CONSTRUCTORS[t.name](*args))
        cls = self.resolve_class(t)
        return box(cls(*args))

    def _member_owner(self, owner: TypeRef, name: str) -> type:
        try:
            cls = self.resolve_class(owner)
        except ClassNotFoundException as e:
            raise ResolutionError(f"cannot resolve {owner} for member {name!r}") from e
        if inspect.getattr_static(cls, name, _MISSING) is _MISSING:
            raise ResolutionError(f"no member {name!r} on {owner}")
        return cls

    @staticmethod
    def has_attribute(obj: Any, name: str) -> bool:
        if inspect.getattr_static(obj, name, _MISSING) is not _MISSING:
            return True
        # dynamic attributes
        return inspect.getattr_static(type(obj), "__getattr__", None) is not None and hasattr(obj, name)


def _is_descriptor(value: Any) -> bool:
    return hasattr(type(value), "__get__")
