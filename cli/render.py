from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer

PLACEHOLDER = "—"

STATUS_COLORS = {
    "danger": typer.colors.RED,
    "warning": typer.colors.YELLOW,
    "normal": typer.colors.GREEN,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_statistic(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.1f}{unit}"


def render_reading(reading: Dict[str, Any], unit: str = "") -> None:
    status = str(reading.get("status"))
    typer.echo(f"{reading.get('kind')}: {reading.get('display_value')}{unit} ", nl=False)
    typer.secho(status.upper(), fg=STATUS_COLORS.get(status), bold=True)


def render_summary(summary: Optional[Dict[str, Any]], unit: str = "") -> None:
    summary = summary or {}
    echo_key_values(
        [
            ("mean", format_statistic(summary.get("mean_value"), unit)),
            ("max", format_statistic(summary.get("max_value"), unit)),
            ("min", format_statistic(summary.get("min_value"), unit)),
            ("std_dev", format_statistic(summary.get("std_dev"), unit)),
        ]
    )


def render_snapshot(payload: Dict[str, Any]) -> None:
    echo_heading(f"Readings at {payload.get('recorded_at')}")
    for reading in payload.get("readings") or []:
        render_reading(reading)


def render_result(payload: Dict[str, Any]) -> None:
    echo_heading("Import Result")
    echo_key_values(
        [
            ("import_id", payload.get("import_id")),
            ("status", payload.get("status")),
            ("uploaded_at", payload.get("uploaded_at")),
            ("processed_at", payload.get("processed_at")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    summaries = payload.get("summaries") or {}
    typer.echo()
    echo_heading("Summaries")
    if summaries:
        for kind, summary in summaries.items():
            typer.echo(f"{kind} (count={summary.get('count')})")
            render_summary(summary)
            counts = summary.get("status_counts") or {}
            if counts:
                typer.echo(
                    "status_counts: "
                    + ", ".join(f"{status}={count}" for status, count in counts.items())
                )
    else:
        typer.echo("No summaries available.")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No errors recorded.")


def render_reservoir(payload: Dict[str, Any], offline: bool = False) -> None:
    echo_heading("Reservoir (offline copy)" if offline else "Reservoir")
    location = payload.get("location") or {}
    capacity = payload.get("capacity_liters")
    echo_key_values(
        [
            ("name", payload.get("name")),
            ("usage_type", payload.get("usage_type")),
            ("shape", payload.get("shape")),
            ("capacity", f"{capacity:.0f} L" if capacity is not None else PLACEHOLDER),
            ("critical_depth", f"{payload.get('critical_depth')} m"),
            ("location", f"{location.get('latitude')}, {location.get('longitude')}"),
        ]
    )


def render_alerts(alerts: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Alerts")
    shown = False
    for alert in alerts:
        shown = True
        severity = str(alert.get("severity"))
        typer.secho(
            f"[{alert.get('status')}] {alert.get('raised_at')} {alert.get('message')}",
            fg=STATUS_COLORS.get(severity),
        )
        typer.echo(f"  id: {alert.get('id')}")
        if alert.get("comment"):
            typer.echo(f"  comment: {alert.get('comment')}")
    if not shown:
        typer.echo("No alerts.")
