from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_rows(rows: Sequence[Dict[str, Any]], columns: Sequence[str], empty: str) -> None:
    if not rows:
        typer.echo(empty)
        return
    widths = [
        max(len(column), *(len(str(row.get(column, ""))) for row in rows))
        for column in columns
    ]
    typer.echo("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    for row in rows:
        typer.echo(
            "  ".join(str(row.get(column, "")).ljust(width) for column, width in zip(columns, widths))
        )


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("binId", payload.get("binId")),
            ("weightKg", payload.get("weightKg")),
            ("moistureRaw", payload.get("moistureRaw")),
            ("wasteTag", payload.get("wasteTag")),
            ("timestamp", payload.get("timestamp")),
        ]
    )


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Recent Readings")
    echo_rows(
        readings,
        ["timestamp", "binId", "weightKg", "moistureRaw", "wasteTag"],
        empty="No readings recorded.",
    )


def render_daily(summaries: List[Dict[str, Any]]) -> None:
    echo_heading("Daily Totals")
    echo_rows(
        summaries,
        ["date", "totalKg", "avgMoisture", "count"],
        empty="No readings in this window.",
    )


def render_bins(summaries: List[Dict[str, Any]]) -> None:
    echo_heading("Bin Statistics")
    echo_rows(
        summaries,
        ["binId", "entries", "totalKg", "avgWeight", "avgMoisture"],
        empty="No readings in this window.",
    )


def render_score(payload: Dict[str, Any]) -> None:
    echo_heading(f"Segregation Score: {payload.get('binId')}")
    echo_key_values(
        [
            ("score", payload.get("score")),
            ("entries", payload.get("entries")),
            ("totalKg", payload.get("totalKg")),
            ("avgWeight", payload.get("avgWeight")),
            ("avgMoisture", payload.get("avgMoisture")),
        ]
    )


def render_top(payload: Dict[str, Any]) -> None:
    columns = ["binId", "score", "entries", "avgWeight", "avgMoisture"]
    echo_heading("Top Performers")
    echo_rows(payload.get("performers") or [], columns, empty="No bins recorded.")
    typer.echo()
    echo_heading("Top Offenders")
    echo_rows(payload.get("offenders") or [], columns, empty="No bins recorded.")
