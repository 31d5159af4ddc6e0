"""Colorize and check commands for polytherm CLI."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from polytherm.core.cache import LocationCache, SeriesFetcher
from polytherm.core.colorizer import ColorizeResult, ColorizeStatus, PolygonColorizer
from polytherm.core.config import PolythermConfig, load_config
from polytherm.core.diagnostics import check_polygons, has_warnings, state_inventory
from polytherm.core.state import AppState
from polytherm.core.synthetic import StaticSeriesSource, SyntheticSeriesSource
from polytherm.core.trace import TraceWriter
from polytherm.io.geojson import read_polygons_geojson, write_polygons_geojson
from polytherm.io.series import load_series_file
from polytherm.model import MapCenter, Polygon, PolygonCandidate, TimeWindow
from polytherm.ui.state import JsonStateRepository

console = Console()

_STATUS_STYLE = {
    ColorizeStatus.OK: "green",
    ColorizeStatus.SKIPPED: "yellow",
    ColorizeStatus.FAILED: "red",
}


def _build_fetcher(
    cfg: PolythermConfig, series_file: Optional[Path], seed: Optional[int]
) -> SeriesFetcher:
    if series_file is not None:
        return StaticSeriesSource(load_series_file(series_file))
    return SyntheticSeriesSource(
        hours=cfg.series_hours,
        seed=seed if seed is not None else cfg.synthetic_seed,
    )


async def run_colorize(
    candidates: List[PolygonCandidate],
    cfg: PolythermConfig,
    fetch: SeriesFetcher,
    window: Optional[TimeWindow],
    *,
    trace: Optional[TraceWriter] = None,
    snapshot: Optional[Dict[str, Any]] = None,
) -> tuple[AppState, List[ColorizeResult]]:
    """
    Build state from an optional saved snapshot plus ``candidates``, then recolor all.

    ``window`` overrides the snapshot's time range; with neither, the configured
    default applies. Candidates without their own rules get the configured ones.
    """
    colorizer = PolygonColorizer(fetch, LocationCache(), trace=trace)
    state = AppState.restore(
        snapshot or {},
        colorizer,
        time_window=TimeWindow(*cfg.default_time_window),
        map_center=MapCenter(*cfg.default_center),
        zoom=cfg.default_zoom,
        default_center=cfg.default_center,
        default_zoom=cfg.default_zoom,
    )
    if window is not None:
        state.time_window = window

    for candidate in candidates:
        if candidate.color_rules is None:
            candidate = replace(candidate, color_rules=list(cfg.default_rules))
        await state.add_candidate(candidate, recolor=False)
    results = await state.recolor_all()
    return state, results


def display_results(state: AppState, results: List[ColorizeResult]) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Polygon")
    table.add_column("Value", justify="right")
    table.add_column("Color")
    table.add_column("Status")

    by_id = {r.polygon_id: r for r in results}
    for p in state.polygons:
        r = by_id.get(p.id)
        status = r.status if r is not None else ColorizeStatus.SKIPPED
        note = status.value
        if r is not None and r.reason is not None:
            note = f"{note} ({r.reason.value})"
        value = f"{p.current_value:.1f}" if p.current_value is not None else "-"
        table.add_row(
            p.name,
            value,
            f"[{p.color}]■[/] {p.color}",
            f"[{_STATUS_STYLE[status]}]{note}[/]",
        )
    console.print(table)


def colorize(
    input_file: Path = typer.Argument(..., help="GeoJSON file with Polygon features", exists=True),
    start: Optional[int] = typer.Option(None, "--start", "-s", help="First hour index (inclusive)"),
    end: Optional[int] = typer.Option(None, "--end", "-e", help="Last hour index (inclusive); defaults to --start"),
    series_file: Optional[Path] = typer.Option(
        None, "--series", help="Open-Meteo style JSON series used for every polygon", exists=True
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for generated series"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write colored GeoJSON here"),
    trace_path: Optional[Path] = typer.Option(None, "--trace", help="Write a JSONL trace of the batch"),
    state_file: Optional[Path] = typer.Option(
        None,
        "--state",
        help="State JSON: polygons in it are kept and recolored, and the result is saved back",
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (YAML)"),
) -> None:
    """Classify polygons from a GeoJSON file for a time window."""
    try:
        cfg = load_config(config_file)
        candidates = read_polygons_geojson(input_file)
        fetch = _build_fetcher(cfg, series_file, seed)
    except ValueError as e:
        console.print(f"[bold red]❌ Error:[/] {e}")
        raise typer.Exit(1)

    repo = JsonStateRepository(state_file) if state_file is not None else None
    snapshot = repo.load() if repo is not None else None

    if not candidates and not (snapshot and snapshot.get("polygons")):
        console.print("[yellow]No Polygon features found.[/]")
        raise typer.Exit(0)

    window: Optional[TimeWindow] = None
    if start is not None or end is not None:
        s = start if start is not None else end
        window = TimeWindow(s, end if end is not None else s)

    try:
        if trace_path is not None:
            with TraceWriter(trace_path) as trace:
                state, results = asyncio.run(
                    run_colorize(candidates, cfg, fetch, window, trace=trace, snapshot=snapshot)
                )
        else:
            state, results = asyncio.run(
                run_colorize(candidates, cfg, fetch, window, snapshot=snapshot)
            )
    except (ValueError, KeyError) as e:
        console.print(f"[bold red]❌ Error:[/] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold]Time window:[/] {state.time_window.start} → {state.time_window.end}")
    display_results(state, results)

    inv = state_inventory(state)
    console.print(
        f"[dim]{inv['polygon_count']} polygon(s), {inv['cached_locations']} location fetch(es)[/]"
    )

    if output is not None:
        write_polygons_geojson(state.polygons, output)
        console.print(f"[bold green]✔[/] Wrote [underline]{output}[/]")
    if repo is not None:
        repo.save(state.snapshot())
        console.print(f"[bold green]✔[/] Saved state to [underline]{repo.path}[/]")


def check(
    input_file: Path = typer.Argument(..., help="GeoJSON file with Polygon features", exists=True),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (YAML)"),
) -> None:
    """Report polygons and rules that will not classify as intended."""
    try:
        cfg = load_config(config_file)
        candidates = read_polygons_geojson(input_file)
    except ValueError as e:
        console.print(f"[bold red]❌ Error:[/] {e}")
        raise typer.Exit(1)

    polygons = [
        Polygon(
            id=f"feature_{i}",
            name=c.name or f"Polygon {i + 1}",
            coordinates=c.coordinates,
            data_source=c.data_source,
            color_rules=list(c.color_rules if c.color_rules is not None else cfg.default_rules),
        )
        for i, c in enumerate(candidates)
    ]
    names = {p.id: p.name for p in polygons}
    report = check_polygons(polygons)
    if not has_warnings(report):
        console.print(f"[bold green]✔[/] {len(polygons)} polygon(s), no problems found")
        return

    for pid, count in report["too_few_points"]:
        console.print(f"[yellow]⚠[/] {names[pid]}: only {count} point(s), needs at least 3")
    for pid, lat, lng in report["out_of_range"]:
        console.print(f"[yellow]⚠[/] {names[pid]}: coordinate ({lat}, {lng}) out of range")
    for pid in report["no_rules"]:
        console.print(f"[yellow]⚠[/] {names[pid]}: no color rules, always gray")
    for pid, idx, cond in report["invalid_conditions"]:
        console.print(f"[yellow]⚠[/] {names[pid]}: rule {idx + 1} condition {cond!r} can never match")
    for pid, idx, color in report["invalid_colors"]:
        console.print(f"[yellow]⚠[/] {names[pid]}: rule {idx + 1} color {color!r} is not #RRGGBB")
    raise typer.Exit(1)
