"""Condition and rule commands for polytherm CLI."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console

from polytherm.core.conditions import evaluate, is_valid_condition
from polytherm.core.config import load_config
from polytherm.core.rules import parse_rules, resolve

console = Console()


def eval_condition(
    value: float = typer.Argument(..., help="Value to test"),
    condition: str = typer.Argument(..., help='Condition, e.g. ">= 10 and < 25"'),
) -> None:
    """Evaluate one condition against a value."""
    if not is_valid_condition(condition):
        console.print(f"[yellow]⚠ Condition {condition!r} can never match[/]")
    console.print("true" if evaluate(value, condition) else "false")


def resolve_color(
    value: float = typer.Argument(..., help="Value to classify"),
    rule: Optional[List[str]] = typer.Option(
        None,
        "--rule",
        "-r",
        help='Rule as "CONDITION=#RRGGBB"; repeat in priority order. Defaults to the configured rules.',
    ),
) -> None:
    """Resolve a value to a color using first-match rules."""
    try:
        rules = parse_rules(rule) if rule else load_config().default_rules
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid rule:[/] {e}")
        raise typer.Exit(1)
    console.print(resolve(value, rules))
