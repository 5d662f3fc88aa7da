"""Tests for settings loading."""

from decimal import Decimal

import pytest

from powerassert.config import DEFAULT_FILE, ENV_VAR, Settings, get_settings, load_settings
from powerassert.errors import ClassNotFoundException, ConfigError
from powerassert.nodes import ExceptionNode
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model


def test_defaults_without_file():
    settings = load_settings()
    assert settings == Settings()
    assert settings.length_hint == 100
    assert settings.imports == {}
    assert settings.log_level == "WARNING"


def test_explicit_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("length_hint: 40\nlog_level: debug\nimports:\n  Dec: decimal.Decimal\n")
    settings = load_settings(path)
    assert settings.length_hint == 40
    assert settings.log_level == "DEBUG"
    assert settings.imports == {"Dec": "decimal.Decimal"}


def test_local_file_is_picked_up(tmp_path):
    (tmp_path / DEFAULT_FILE).write_text("length_hint: 20\n")
    assert load_settings().length_hint == 20


def test_env_var_wins_over_local_file(tmp_path, monkeypatch):
    (tmp_path / DEFAULT_FILE).write_text("length_hint: 20\n")
    other = tmp_path / "other.yaml"
    other.write_text("length_hint: 30\n")
    monkeypatch.setenv(ENV_VAR, str(other))
    assert load_settings().length_hint == 30


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(path) == Settings()


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        load_settings(tmp_path / "nope.yaml")
    assert "config file not found" in str(exc_info.value)


def test_invalid_yaml_reports_location(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("length_hint: [1, 2\n")
    with pytest.raises(ConfigError) as exc_info:
        load_settings(path)
    assert exc_info.value.line is not None
    assert str(exc_info.value).startswith(str(path))


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError) as exc_info:
        load_settings(path)
    assert "config must be a mapping" in str(exc_info.value)


@pytest.mark.parametrize("content, field", [
    ("length_hint: 3\n", "length_hint"),
    ("length_hint: lots\n", "length_hint"),
    ("log_level: LOUD\n", "log_level"),
    ("imports: 5\n", "imports"),
])
def test_schema_errors(tmp_path, content, field):
    path = tmp_path / "schema.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError) as exc_info:
        load_settings(path)
    assert exc_info.value.message.startswith(f"{field}: ")


def test_get_settings_is_cached(tmp_path):
    first = get_settings()
    (tmp_path / DEFAULT_FILE).write_text("length_hint: 20\n")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().length_hint == 20


def test_configured_imports_resolve_types(tmp_path):
    source = "d instanceof Dec"
    model = build_model(quote(source, {"d": Decimal("1.5")}))
    assert isinstance(model, ExceptionNode)
    assert isinstance(model.throwable, ClassNotFoundException)

    (tmp_path / DEFAULT_FILE).write_text("imports:\n  Dec: decimal.Decimal\n")
    get_settings.cache_clear()
    assert build_model(quote(source, {"d": Decimal("1.5")})).value is True


def test_explicit_imports_override_configured(tmp_path):
    (tmp_path / DEFAULT_FILE).write_text("imports:\n  Dec: fractions.Fraction\n")
    model = build_model(quote("d instanceof Dec", {"d": Decimal("1.5")}, imports={"Dec": Decimal}))
    assert model.value is True
