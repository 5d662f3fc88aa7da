"""Quote a Java expression: parse, type-check and lower it to an IR op tree with captured values."""

import logging
from typing import Any, Mapping, Optional

from powerassert.config import get_settings
from powerassert.ir import Quoted
from powerassert.lowering import lower
from powerassert.parser import parse
from powerassert.runtime.resolver import Resolver
from powerassert.type_checker import Scope, check

logger = logging.getLogger(__name__)


def make_scope(
    captured: Optional[Mapping[str, Any]] = None,
    this: Any = None,
    imports: Optional[Mapping[str, Any]] = None,
) -> Scope:
    """Scope for a predicate; ``imports`` are merged over the configured ones."""
    merged: dict[str, Any] = dict(get_settings().imports)
    merged.update(imports or {})
    return Scope(
        locals=dict(captured or {}),
        this=this,
        has_this=this is not None,
        resolver=Resolver(merged),
    )


def quote(
    source: str,
    captured: Optional[Mapping[str, Any]] = None,
    this: Any = None,
    imports: Optional[Mapping[str, Any]] = None,
    path: Optional[str] = None,
) -> Quoted:
    """Quote ``source`` against captured locals and an optional receiver bound as ``this``.

    Raises ParseError or TypeCheckError when the expression is malformed.
    """
    scope = make_scope(captured, this, imports)
    expr = parse(source, path=path)
    types = check(expr, scope, path)
    quoted = lower(expr, scope, types)
    logger.debug("quoted %r", source)
    return quoted
