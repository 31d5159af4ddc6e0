#!/usr/bin/env python3
"""
polytherm - threshold-rule coloring of map polygons
Main CLI entry point
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from polytherm.commands import colorize_cmd, config_cmd, rule_cmd

app = typer.Typer(
    name="polytherm",
    help="Color map polygons by threshold rules over hourly temperature",
    no_args_is_help=True,
    add_completion=True,
)

app.command(name="colorize", help="Classify GeoJSON polygons for a time window")(colorize_cmd.colorize)
app.command(name="check", help="Report rules and shapes that will not classify")(colorize_cmd.check)
app.command(name="eval", help="Evaluate a condition against a value")(rule_cmd.eval_condition)
app.command(name="resolve", help="Resolve a value to a color")(rule_cmd.resolve_color)

app.add_typer(config_cmd.app, name="config", help="Manage configuration settings")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    polytherm - threshold-rule coloring of map polygons

    Primary workflow:
      colorize   - Classify polygons from GeoJSON over an hour window

    Utilities:
      check      - Validate polygons and their rules
      eval       - Test one condition
      resolve    - Test a rule list
      config     - Manage configuration settings
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
