from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx
import typer

from cli.cache import OfflineCache
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_alerts,
    render_reading,
    render_reservoir,
    render_result,
    render_snapshot,
    render_summary,
)
from models.records import SensorKind, SensorReading
from services.evaluator import evaluate, evaluate_snapshot
from services.feed import MockSensorFeed
from services.statistics import EmptyInputError, summarize


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient
    cache: OfflineCache


app = typer.Typer(
    help="Utilities for interacting with the reservoir monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _reading_payload(reading: SensorReading) -> dict:
    return {
        "kind": reading.kind.value,
        "display_value": reading.display_value,
        "status": reading.status.value,
    }


def _parse_kind(value: str) -> SensorKind:
    try:
        return SensorKind.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    user: Optional[str] = typer.Option(
        None,
        "--user",
        "-u",
        help="Signed-in user id (defaults to RESERVOIR_USER_ID env).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between status checks when waiting for completion.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to wait when polling for results.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
        user_id=user,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client, cache=OfflineCache(config.cache_path))
    ctx.call_on_close(client.close)


@app.command("evaluate")
def evaluate_command(
    kind: str = typer.Argument(..., help="water_level, ph, temperature or turbidity."),
    value: float = typer.Argument(..., help="Raw sensor value."),
) -> None:
    """Classify a raw reading locally."""
    sensor_kind = _parse_kind(kind)
    render_reading(_reading_payload(evaluate(sensor_kind, value)), sensor_kind.unit)


@app.command("summarize")
def summarize_command(
    values: Optional[List[float]] = typer.Argument(None, help="Samples to summarize."),
) -> None:
    """Print mean, max, min and population standard deviation of VALUES."""
    try:
        summary = summarize(values or [])
    except EmptyInputError:
        render_summary(None)
        return
    render_summary(
        {
            "mean_value": summary.mean_value,
            "max_value": summary.max_value,
            "min_value": summary.min_value,
            "std_dev": summary.std_dev,
        }
    )


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to history CSV."),
    wait: bool = typer.Option(
        False,
        "--wait/--no-wait",
        help="Wait for processing to finish and display the result.",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Override poll interval while waiting.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Override timeout while waiting.",
    ),
) -> None:
    """Upload a history CSV for asynchronous import."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    import_id = state.client.upload_file(file)
    typer.secho(f"Upload accepted. import_id={import_id}", fg=typer.colors.GREEN)

    if not wait:
        return

    interval = poll_interval if poll_interval is not None else state.config.poll_interval
    poll_timeout = timeout if timeout is not None else state.config.poll_timeout
    typer.echo(f"Waiting for processing (interval={interval}s, timeout={poll_timeout}s)...")
    result = state.client.poll_result(import_id, interval=interval, timeout=poll_timeout)
    typer.echo()
    render_result(result)


@app.command("result")
def result_command(
    ctx: typer.Context,
    import_id: str = typer.Argument(..., help="Identifier returned from the upload command."),
) -> None:
    """Fetch import status and per-parameter summaries."""
    state = _get_state(ctx)
    render_result(state.client.get_result(import_id))


@app.command("simulate")
def simulate_command(
    ctx: typer.Context,
    count: int = typer.Option(3, "--count", "-n", min=1, help="Number of snapshots to emit."),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Seconds between snapshots (defaults to CLI_FEED_INTERVAL or 5)."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible values."),
    local: bool = typer.Option(
        False, "--local", help="Evaluate locally instead of posting to the service."
    ),
) -> None:
    """Run the mock sensor feed."""
    state = _get_state(ctx)
    feed = MockSensorFeed(
        interval=interval if interval is not None else state.config.feed_interval,
        rng=random.Random(seed),
    )
    for snapshot in feed.stream(count):
        if local:
            typer.secho("Local readings", bold=True)
            for reading in evaluate_snapshot(snapshot):
                render_reading(_reading_payload(reading), reading.kind.unit)
        else:
            render_snapshot(state.client.push_readings(snapshot))


@app.command("reservoir")
def reservoir_command(ctx: typer.Context) -> None:
    """Show the current reservoir, falling back to the offline copy."""
    state = _get_state(ctx)
    try:
        payload = state.client.get_reservoir()
    except httpx.TransportError:
        cached = state.cache.load(state.config.user_id or "")
        if cached is None:
            typer.secho("Service unreachable and no offline copy available.", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        render_reservoir(cached, offline=True)
        return

    if payload is None:
        typer.echo("No reservoir registered.")
        return
    state.cache.store(state.config.user_id or "", payload)
    render_reservoir(payload)


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", help="unresolved or resolved."),
) -> None:
    """List alerts, newest first."""
    state = _get_state(ctx)
    render_alerts(state.client.list_alerts(status))


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    alert_id: str = typer.Argument(..., help="Alert identifier."),
    comment: str = typer.Option("", "--comment", "-c", help="Resolution note."),
) -> None:
    """Mark an alert as resolved."""
    state = _get_state(ctx)
    alert = state.client.resolve_alert(alert_id, comment)
    typer.secho(f"Alert {alert.get('id')} marked as resolved.", fg=typer.colors.GREEN)


@app.command("logout")
def logout_command(ctx: typer.Context) -> None:
    """Forget the offline copy kept for the current user."""
    state = _get_state(ctx)
    if not state.config.user_id:
        raise typer.BadParameter("A user id is required (--user or RESERVOIR_USER_ID).")
    if state.cache.clear(state.config.user_id):
        typer.echo("Offline data cleared.")
    else:
        typer.echo("No offline data stored.")
