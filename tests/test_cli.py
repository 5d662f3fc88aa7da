"""CLI tests using typer.testing.CliRunner."""

import json

from typer.testing import CliRunner

from powerassert import __version__
from powerassert.cli import app, parse_vars
from powerassert.runtime.values import JArray
from powerassert.typerefs import INT, STRING

runner = CliRunner()


def test_check_success():
    result = runner.invoke(app, ["check", "2 + 2 * 2 == 6"])
    assert result.exit_code == 0
    assert result.stdout == "OK\n"


def test_check_failure_prints_diagnostic():
    result = runner.invoke(app, ["check", "x[1] == x.length", "--var", "x=[1, 2, 3]"])
    assert result.exit_code == 1
    assert result.stderr == (
        "failed\n"
        "x -> [1, 2, 3]\n"
        "x[1] -> 2\n"
        "x -> [1, 2, 3]\n"
        "x.length -> 3\n"
        "x[1] == x.length -> false\n"
    )


def test_explain_success():
    result = runner.invoke(app, ["explain", "3 * 2 / 0 >= 5"])
    assert result.exit_code == 0
    assert result.stdout == (
        "3 * 2 -> 6\n"
        "(3 * 2) / 0 -> throws java.lang.ArithmeticException: / by zero\n"
        "(3 * 2) / 0 >= 5 -> throws java.lang.ArithmeticException: / by zero\n"
    )


def test_explain_with_string_var():
    result = runner.invoke(app, ["explain", "s.length() == 5", "--var", "s=Hello"])
    assert result.exit_code == 0
    assert 's -> "Hello"' in result.stdout


def test_decompile():
    result = runner.invoke(app, ["decompile", "(1 + 2) * 3 == 9"])
    assert result.exit_code == 0
    assert result.stdout == "(1 + 2) * 3 == 9\n"


def test_lower_emits_json():
    result = runner.invoke(app, ["lower", "x > 1", "--var", "x=2"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["op"]["op"] == "lambda"
    assert data["captured"] == {"x": "Cell(JInt(2))"}


def test_parse_error_exits_1():
    result = runner.invoke(app, ["check", "1 +"])
    assert result.exit_code == 1
    assert result.stderr.startswith("<expr>:1:")


def test_type_error_exits_1():
    result = runner.invoke(app, ["explain", "y > 0"])
    assert result.exit_code == 1
    assert "Cannot find symbol: y" in result.stderr


def test_relational_predicate():
    result = runner.invoke(app, ["check", "1 > 2"])
    assert result.exit_code == 1
    assert result.stderr == "failed\n1 > 2 -> false\n"
    result = runner.invoke(app, ["explain", "2 < 3 || 4 > 5"])
    assert result.exit_code == 0
    assert result.stdout == "2 < 3 -> true\n2 < 3 || 4 > 5 -> true\n"


def test_unresolved_member_exits_1():
    for command in ("check", "explain"):
        result = runner.invoke(app, [command, "s.missing() == 1", "--var", "s=Hello"])
        assert result.exit_code == 1
        assert "no method 'missing' on " in result.stderr


def test_bad_var_is_usage_error():
    result = runner.invoke(app, ["check", "x > 0", "--var", "novalue"])
    assert result.exit_code == 2
    assert "name=value" in result.output


def test_config_file(tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("length_hint: 10\n")
    result = runner.invoke(app, ["explain", "s.isEmpty()", "--var", "s=a rather long string", "--config", str(config)])
    assert result.exit_code == 0
    assert 's -> "a rather l..."' in result.stdout


def test_missing_config_exits_1(tmp_path):
    result = runner.invoke(app, ["check", "true", "--config", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 1
    assert "config file not found" in result.stderr


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_parse_vars():
    captured = parse_vars(["n=3", "s=hi", "xs=[1, 2]", "names=[a, b]", "flag=true"])
    assert captured["n"] == 3
    assert captured["s"] == "hi"
    assert isinstance(captured["xs"], JArray) and captured["xs"].component_type == INT
    assert captured["names"].component_type == STRING
    assert captured["flag"] is True
