"""CLI entry point: check, explain, decompile and lower Java predicate expressions."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from powerassert import __version__
from powerassert.assertion_formatter import DefaultAssertionFormatter
from powerassert.asserts import assert_true
from powerassert.config import Settings, load_settings
from powerassert.decompiler import Decompiler
from powerassert.errors import PowerAssertError
from powerassert.ir import Quoted
from powerassert.quoting import quote
from powerassert.runtime.interpreter import build_model
from powerassert.runtime.values import infer_array
from powerassert.value_formatter import DefaultValueFormatter

app = typer.Typer(
    name="powerassert",
    help="Power assertions for Java expressions: evaluate a predicate and explain every intermediate value.",
)

VarOption = typer.Option(None, "--var", help="Captured local as name=value (YAML value); repeatable")
ConfigOption = typer.Option(None, "--config", help="Settings YAML file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging")


def _capture(value: Any) -> Any:
    """Host value for a --var: YAML lists become Java arrays with an inferred component type."""
    if isinstance(value, list):
        return infer_array([_capture(v) for v in value])
    return value


def parse_vars(specs: Optional[list[str]]) -> dict[str, Any]:
    captured: dict[str, Any] = {}
    for spec in specs or []:
        name, sep, raw = spec.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected name=value, got {spec!r}", param_hint="--var")
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise typer.BadParameter(f"invalid value for {name}: {e}", param_hint="--var")
        captured[name.strip()] = _capture(value)
    return captured


def _setup(config: Optional[Path], verbose: bool) -> Settings:
    try:
        settings = load_settings(config)
    except PowerAssertError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    logging.basicConfig(level=logging.DEBUG if verbose else getattr(logging, settings.log_level))
    return settings


def _quote(expr: str, var: Optional[list[str]], settings: Settings) -> Quoted:
    try:
        return quote(expr, parse_vars(var), imports=settings.imports, path="<expr>")
    except PowerAssertError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


def _formatter(settings: Settings) -> DefaultAssertionFormatter:
    return DefaultAssertionFormatter(DefaultValueFormatter(settings.length_hint))


@app.command("check")
def check_cmd(
    expr: str = typer.Argument(..., help="Java boolean expression"),
    var: Optional[list[str]] = VarOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Evaluate the predicate; print OK, or the failure diagnostic and exit 1."""
    settings = _setup(config, verbose)
    quoted = _quote(expr, var, settings)
    try:
        assert_true(quoted, formatter=_formatter(settings))
    except AssertionError as e:
        typer.echo(str(e), err=True, nl=False)
        raise typer.Exit(1)
    except PowerAssertError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    typer.echo("OK")


@app.command("explain")
def explain_cmd(
    expr: str = typer.Argument(..., help="Java expression"),
    var: Optional[list[str]] = VarOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Print the diagnostic of every intermediate value, whatever the outcome."""
    settings = _setup(config, verbose)
    quoted = _quote(expr, var, settings)
    try:
        model = build_model(quoted)
    except PowerAssertError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    typer.echo(_formatter(settings).format_assertion(model), nl=False)


@app.command("decompile")
def decompile_cmd(
    expr: str = typer.Argument(..., help="Java expression"),
    var: Optional[list[str]] = VarOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Print the expression as rebuilt from its IR."""
    settings = _setup(config, verbose)
    quoted = _quote(expr, var, settings)
    decompiler = Decompiler(DefaultValueFormatter(settings.length_hint))
    typer.echo(decompiler.value_text(quoted.op.body.entry_block.terminating_op.value))


@app.command("lower")
def lower_cmd(
    expr: str = typer.Argument(..., help="Java expression"),
    var: Optional[list[str]] = VarOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Emit IR JSON to stdout."""
    settings = _setup(config, verbose)
    quoted = _quote(expr, var, settings)
    typer.echo(json.dumps(quoted.to_dict(), indent=2))


def _version(value: bool):
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version, is_eager=True, help="Show version"),
):
    """powerassert: power assertions for Java expressions evaluated against Python values."""
    pass


if __name__ == "__main__":
    app()
