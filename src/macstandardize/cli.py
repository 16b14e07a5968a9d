from __future__ import annotations

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from macstandardize import __version__
from macstandardize.commands import SubprocessRunner
from macstandardize.config import StandardizeConfig, dump_config, load_config_from_file
from macstandardize.logging_config import setup_logging
from macstandardize.report import render_json, render_table
from macstandardize.runbook import Runbook

OPT_CONFIG = typer.Option(
    None,
    "--config",
    exists=True,
    readable=True,
    dir_okay=False,
    help="YAML file overriding the built-in standardization policy",
)
OPT_LOG_FILE = typer.Option(None, "--log-file", help="Append log lines to this file")
OPT_REPORT = typer.Option(None, "--report", help="Write a JSON run report to this file")
OPT_SUMMARY = typer.Option(False, "--summary", help="Print a phase summary table at the end")
OPT_OUTPUT = typer.Option(None, "--output", help="Write YAML to file")
ARG_CONFIG_FILE = typer.Argument(..., exists=True, readable=True, dir_okay=False)

app = typer.Typer(
    help="Standardize macOS user preferences and Dock layout",
    add_completion=False,
)
console = Console()


def build_runbook(config: StandardizeConfig) -> Runbook:
    return Runbook(config, SubprocessRunner(config.search_paths))


def _load_config(path: Path | None) -> StandardizeConfig:
    if path is None:
        return StandardizeConfig()
    try:
        return load_config_from_file(path)
    except (ValueError, ValidationError, yaml.YAMLError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.callback(invoke_without_command=True)
def standardize(
    ctx: typer.Context,
    config_file: Path | None = OPT_CONFIG,
    log_file: str | None = OPT_LOG_FILE,
    report: Path | None = OPT_REPORT,
    summary: bool = OPT_SUMMARY,
) -> None:
    """Apply Finder, screenshot, Gatekeeper and Dock settings for the console user."""
    if ctx.invoked_subcommand is not None:
        return

    config = _load_config(config_file)
    if log_file:
        config.log_file = log_file
    setup_logging(config.log_tag, config.log_file)

    result = build_runbook(config).run()

    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(render_json(result), encoding="utf-8")
    if summary:
        typer.echo(render_table(result))
    if result.exit_code:
        raise typer.Exit(code=result.exit_code)


@app.command()
def version() -> None:
    console.print(__version__)


@app.command("show-config")
def show_config(
    config_file: Path | None = OPT_CONFIG,
    output: Path | None = OPT_OUTPUT,
) -> None:
    """Print the effective policy as YAML."""
    text = dump_config(_load_config(config_file))
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"Wrote {output}")
    else:
        typer.echo(text)


@app.command("validate-config")
def validate_config(path: Path = ARG_CONFIG_FILE) -> None:
    """Validate a policy override file."""
    _load_config(path)
    console.print("OK")


def main() -> None:
    """Entrypoint for `python -m macstandardize.cli`."""

    app(prog_name="macstandardize")


if __name__ == "__main__":
    main()
