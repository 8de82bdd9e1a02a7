from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_bins,
    render_daily,
    render_reading,
    render_readings,
    render_score,
    render_top,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for recording and inspecting waste-bin readings.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_DAYS_HELP = "Trailing window in days (server default 7, at most 30)."


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Binlytics API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("record")
def record_command(
    ctx: typer.Context,
    bin_id: str = typer.Argument(..., help="Bin identifier, e.g. BIN-001."),
    weight_kg: float = typer.Argument(..., help="Measured weight in kilograms."),
    moisture_raw: float = typer.Argument(..., help="Raw moisture sensor value."),
    waste_tag: str = typer.Argument(..., help="Waste category tag."),
) -> None:
    """Record a new reading."""
    state = _get_state(ctx)
    payload = state.client.record_reading(bin_id, weight_kg, moisture_raw, waste_tag)
    typer.secho(f"Reading recorded. id={payload.get('id')}", fg=typer.colors.GREEN)
    render_reading(payload)


@app.command("recent")
def recent_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show at most this many readings."),
) -> None:
    """List the most recent readings, newest first."""
    state = _get_state(ctx)
    readings = state.client.recent()
    if limit is not None:
        readings = readings[:limit]
    render_readings(readings)


@app.command("daily")
def daily_command(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(None, "--days", "-d", help=_DAYS_HELP),
) -> None:
    """Show daily totals, newest day first."""
    state = _get_state(ctx)
    render_daily(state.client.daily(days))


@app.command("bins")
def bins_command(
    ctx: typer.Context,
    days: Optional[int] = typer.Option(None, "--days", "-d", help=_DAYS_HELP),
) -> None:
    """Show per-bin statistics, busiest bins first."""
    state = _get_state(ctx)
    render_bins(state.client.bin_stats(days))


@app.command("score")
def score_command(
    ctx: typer.Context,
    bin_id: str = typer.Argument(..., help="Bin identifier to score."),
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Restrict scoring to a trailing window; whole history when omitted."
    ),
) -> None:
    """Show the segregation score for one bin."""
    state = _get_state(ctx)
    render_score(state.client.bin_score(bin_id, days))


@app.command("top")
def top_command(ctx: typer.Context) -> None:
    """Show the best and worst bins by all-time score."""
    state = _get_state(ctx)
    render_top(state.client.top())
