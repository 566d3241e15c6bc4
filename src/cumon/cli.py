"""Typer CLI for cumon: watch, status and history commands."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from result import Err

from cumon.config import POLL_INTERVALS, Config
from cumon.errors import CredentialExpiredError, NoCredentialError, UsageError
from cumon.formatting import sparkline, time_ago, time_until, usage_bar
from cumon.models.alerts import Alert
from cumon.models.usage import METRIC_LABELS, UsageSnapshot

if TYPE_CHECKING:
    from cumon.services.scheduler import PollOutcome

app = typer.Typer(
    name="cumon",
    help="Claude usage monitor: plan utilization, 24h trend and threshold alerts.",
    invoke_without_command=True,
)

ClaudeDirOption = Annotated[
    Path | None,
    typer.Option("--claude-dir", help="Path to Claude data directory"),
]
IntervalOption = Annotated[
    int,
    typer.Option("--interval", "-i", help="Seconds between polls (30, 60 or 120)"),
]
NoAlertsOption = Annotated[
    bool, typer.Option("--no-alerts", help="Do not raise 80%/90% alerts")
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_config(
    claude_dir: Path | None, interval: int = 60, alerts_enabled: bool = True
) -> Config:
    if interval not in POLL_INTERVALS:
        raise typer.BadParameter(
            f"must be one of {', '.join(map(str, POLL_INTERVALS))}", param_hint="--interval"
        )
    return Config(
        claude_dir=claude_dir or Path.home() / ".claude",
        poll_interval=interval,
        alerts_enabled=alerts_enabled,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    claude_dir: ClaudeDirOption = None,
    interval: IntervalOption = 60,
    no_alerts: NoAlertsOption = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Watch usage until interrupted (default command)."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return
    _run_watch(_build_config(claude_dir, interval, not no_alerts))


@app.command()
def watch(
    claude_dir: ClaudeDirOption = None,
    interval: IntervalOption = 60,
    no_alerts: NoAlertsOption = False,
) -> None:
    """Poll usage on an interval, printing each result and any alerts."""
    _run_watch(_build_config(claude_dir, interval, not no_alerts))


@app.command()
def status(claude_dir: ClaudeDirOption = None) -> None:
    """Fetch usage once and print it."""
    config = _build_config(claude_dir)
    code = asyncio.run(_do_status(config))
    if code:
        raise typer.Exit(code)


@app.command()
def history(
    claude_dir: ClaudeDirOption = None,
    clear: Annotated[bool, typer.Option("--clear", help="Delete recorded history")] = False,
) -> None:
    """Show the recorded 24h usage trend."""
    from cumon.services.history import HistoryStore

    store = HistoryStore.from_config(_build_config(claude_dir))
    if clear:
        cleared = store.clear()
        if isinstance(cleared, Err):
            typer.echo(cleared.err_value, err=True)
            raise typer.Exit(1)
        typer.echo("History cleared.")
        return

    entries = store.load()
    if not entries:
        typer.echo(f"No usage history recorded yet ({store.path}).")
        return

    first, last = entries[0], entries[-1]
    typer.echo(
        f"{len(entries)} samples, oldest {time_ago(first.timestamp)} ago, "
        f"latest {time_ago(last.timestamp)} ago"
    )
    sessions = [e.session_utilization for e in entries]
    weekly = [e.weekly_utilization for e in entries]
    typer.echo(f"  {'Session':<8} {sparkline(sessions)}  {last.session_utilization:.0f}%")
    typer.echo(f"  {'Weekly':<8} {sparkline(weekly)}  {last.weekly_utilization:.0f}%")


def _run_watch(config: Config) -> None:
    try:
        asyncio.run(_do_watch(config))
    except KeyboardInterrupt:
        typer.echo("Stopped.")


async def _do_watch(config: Config) -> None:
    """Run the polling loop until cancelled."""
    from cumon.services.container import ServiceContainer
    from cumon.services.notifier import CallbackAlertSink

    container = ServiceContainer.create(config, alert_sink=CallbackAlertSink(_echo_alert))
    container.scheduler.add_listener(_echo_outcome)
    typer.echo(f"Polling every {config.poll_interval}s. Press Ctrl-C to stop.")
    try:
        await container.scheduler.run()
    finally:
        await container.close()


async def _do_status(config: Config) -> int:
    """Fetch once; return the process exit code."""
    from cumon.services.credentials import CredentialResolver
    from cumon.services.usage_client import UsageClient

    resolver = CredentialResolver.from_config(config)
    async with UsageClient.from_config(config, resolver) as client:
        result = await client.fetch()
        credential = client.last_credential

    if isinstance(result, Err):
        typer.echo(_describe_error(result.err_value), err=True)
        return 1

    if credential is not None:
        tier = f" ({credential.tier_label})" if credential.tier_label else ""
        typer.echo(f"{credential.subscription_label}{tier}")
    for line in _snapshot_lines(result.ok_value):
        typer.echo(line)
    return 0


def _snapshot_lines(snapshot: UsageSnapshot, now: datetime | None = None) -> list[str]:
    lines = []
    for name, metric in snapshot.metrics():
        resets = metric.resets_at_datetime
        reset_text = f"  resets in {time_until(resets, now)}" if resets else ""
        lines.append(
            f"  {METRIC_LABELS[name]:<8} {usage_bar(metric.utilization)} "
            f"{metric.utilization:5.1f}%{reset_text}"
        )
    if not lines:
        lines.append("  No usage windows reported.")
    return lines


def _describe_error(error: UsageError) -> str:
    if isinstance(error, CredentialExpiredError):
        return f"{error.message}. Run `claude` and log in again to refresh the token."
    if isinstance(error, NoCredentialError):
        return f"{error.message}. Log in with Claude Code first."
    return f"Failed to fetch usage: {error.message}"


def _echo_outcome(outcome: PollOutcome) -> None:
    stamp = outcome.finished_at.astimezone().strftime("%H:%M:%S")
    result = outcome.result
    if isinstance(result, Err):
        typer.echo(f"{stamp}  {_describe_error(result.err_value)}", err=True)
        return
    parts = [
        f"{METRIC_LABELS[name]} {metric.utilization:.0f}%"
        for name, metric in result.ok_value.metrics()
    ]
    typer.echo(f"{stamp}  {' | '.join(parts) or 'no usage windows reported'}")


def _echo_alert(alert: Alert) -> None:
    typer.secho(f"⚠ {alert.title}: {alert.body}", fg=typer.colors.YELLOW, bold=True)
