"""Power assertions: evaluate a quoted predicate and, on failure, raise with a diagnostic of every
intermediate value."""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from powerassert.assertion_formatter import AssertionFormatter, DefaultAssertionFormatter
from powerassert.config import get_settings
from powerassert.ir import Quoted
from powerassert.nodes import UnsupportedNode, ValueNode
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model
from powerassert.value_formatter import DefaultValueFormatter

logger = logging.getLogger(__name__)


class AssertionCondition:
    """A quoted boolean predicate. Calling it evaluates the predicate directly through ``fallback``."""

    def __init__(self, quoted: Quoted, fallback: Optional[Callable[[], bool]] = None):
        self._quoted = quoted
        self.fallback = fallback

    def quoted(self) -> Quoted:
        return self._quoted

    def __call__(self) -> bool:
        if self.fallback is None:
            raise TypeError("condition has no direct evaluation")
        return self.fallback()


def condition(
    source: str,
    captured: Optional[Mapping[str, Any]] = None,
    this: Any = None,
    imports: Optional[Mapping[str, Any]] = None,
    fallback: Optional[Callable[[], bool]] = None,
) -> AssertionCondition:
    return AssertionCondition(quote(source, captured, this, imports), fallback)


def _default_formatter() -> AssertionFormatter:
    hint = get_settings().length_hint
    return DefaultAssertionFormatter(DefaultValueFormatter(hint))


def assert_true(
    predicate: Union[AssertionCondition, Quoted, str],
    message: Optional[str] = None,
    formatter: Optional[AssertionFormatter] = None,
) -> None:
    """Return when the predicate holds; otherwise raise AssertionError carrying the diagnostic.

    A model whose root is unsupported (boolean ``&``, assignment) can only be decided by the
    condition's ``fallback``. Plain strings, ``Quoted`` trees and conditions built without one
    have no direct evaluation, so such a predicate fails with the unsupported-node diagnostic
    even when it would hold.
    """
    fallback: Optional[Callable[[], bool]] = None
    if isinstance(predicate, AssertionCondition):
        quoted = predicate.quoted()
        fallback = predicate.fallback
    elif isinstance(predicate, Quoted):
        quoted = predicate
    else:
        quoted = quote(predicate)

    model = build_model(quoted)
    if isinstance(model, ValueNode) and model.value is True:
        return
    if isinstance(model, UnsupportedNode) and fallback is not None:
        logger.debug("unsupported predicate, evaluating directly")
        if fallback():
            return
        raise AssertionError(message or "failed")

    diagnostic = (formatter or _default_formatter()).format_assertion(model)
    raise AssertionError(f"{message or 'failed'}\n{diagnostic}")
