"""Config command for polytherm CLI."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from polytherm.core.config import load_config

app = typer.Typer()
console = Console()


@app.command("show")
def show():
    """Show current configuration."""
    cfg = load_config()
    summary = cfg.get_config_summary()

    console.print("\n[bold]Current Configuration:[/]")
    console.print(f"  Config file: [cyan]{summary['config_file'] or '(built-in defaults)'}[/]")
    console.print(f"  Time window: [cyan]{summary['default_time_window']}[/]")
    console.print(f"  Map center: [cyan]{summary['default_center']}[/] zoom [cyan]{summary['default_zoom']}[/]")
    console.print(f"  Series hours: [cyan]{summary['series_hours']}[/]")
    console.print(f"  Synthetic seed: [cyan]{summary['synthetic_seed']}[/]")

    table = Table(title="Default rules", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Condition")
    table.add_column("Color")
    for i, rule in enumerate(cfg.default_rules, 1):
        table.add_row(str(i), rule.condition, f"[{rule.color}]■[/] {rule.color}")
    console.print(table)


@app.command("export")
def export(
    output_path: Path = typer.Argument(Path("polytherm_config.yaml"), help="Where to write the template"),
):
    """Export configuration template."""
    cfg = load_config()
    cfg.export_template(output_path)
    console.print(f"[bold green]✔[/] Configuration template exported to [underline]{output_path}[/]")


@app.command("validate")
def validate(config_file: Path = typer.Argument(..., help="Config file to validate")):
    """Validate a configuration file."""
    if not config_file.exists():
        console.print(f"[bold red]❌ Not found:[/] {config_file}")
        raise typer.Exit(1)
    try:
        cfg = load_config(config_file)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {e}")
        raise typer.Exit(1)
    console.print(f"[bold green]✔[/] Configuration file is valid: [underline]{config_file}[/]")
    console.print(f"  Default rules: {len(cfg.default_rules)}")
