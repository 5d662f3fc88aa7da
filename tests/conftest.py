"""Shared pytest fixtures."""

import pytest

from powerassert import assertion_formatter
from powerassert.config import ENV_VAR, get_settings
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model


class Point:
    """Host object used as a receiver and as a captured local."""

    def __init__(self, x: int, y: int):
        self.x = x
        self.y = y

    def norm1(self) -> int:
        return abs(self.x) + abs(self.y)

    def boom(self) -> int:
        raise ValueError("boom")

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)

    def __str__(self) -> str:
        return f"Point({self.x}, {self.y})"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """No settings file or env override leaks into a test."""
    monkeypatch.delenv(ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def explain():
    """Diagnostic text for an expression, whatever its outcome."""
    def run(source, captured=None, this=None, imports=None):
        model = build_model(quote(source, captured, this, imports))
        return assertion_formatter.DEFAULT.format_assertion(model)
    return run


@pytest.fixture
def point():
    return Point(3, -4)
