"""CLI entry point for timeleft.

Uses Click to expose the ``timeleft`` command group.  ``watch`` hosts a
:class:`CountdownEngine` on an asyncio loop and prints what it emits.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Callable, Sequence, TypeVar

import click

import timeleft
from timeleft.core.alerts import alert_message
from timeleft.core.calculator import compute_remaining
from timeleft.core.clock import ClockSync
from timeleft.core.config import load_settings
from timeleft.core.engine import CountdownEngine, EngineState
from timeleft.core.errors import CountdownError
from timeleft.core.session import Session

T = TypeVar("T")

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``CountdownError`` to a CLI error.

    On ``CountdownError`` the message is printed to stderr and the
    process exits with code 1.
    """
    try:
        return action()
    except CountdownError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _format_remaining(seconds: int) -> str:
    """Format *seconds* as ``M:SS``."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def _notify(message: str, severity: str, channel: str) -> None:
    click.echo(f"[{severity}:{channel}] {message}", err=True)


def _closing_message(session: Session) -> str:
    return "Breakout room will close" if session.is_breakout else "Meeting will close"


async def _watch(
    session: Session,
    clock: ClockSync,
    thresholds: Sequence[int],
    display_alerts: bool,
) -> None:
    """Run one countdown until it expires."""
    done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    engine = CountdownEngine()

    def on_tick(remaining: int) -> None:
        if remaining > 0:
            click.echo(_format_remaining(remaining))

    def on_alert(minutes: int) -> None:
        _notify(alert_message(minutes, session.is_breakout), "info", "rooms")

    def on_expire() -> None:
        click.echo(_closing_message(session))
        if not done.done():
            done.set_result(None)

    def on_error(exc: Exception) -> None:
        if not done.done():
            done.set_exception(exc)

    engine.initialize(
        session,
        clock,
        thresholds,
        on_tick,
        on_alert,
        on_expire,
        on_error=on_error,
        display_alerts=display_alerts,
    )
    if engine.state is EngineState.IDLE:
        click.echo("No countdown active")
        return
    try:
        await done
    finally:
        engine.teardown()


@click.group()
@click.version_option(version=timeleft.__version__, prog_name="timeleft")
@click.option("--verbose", "-v", is_flag=True, help="Log engine activity to stderr.")
def cli(verbose: bool) -> None:
    """timeleft: countdown and alerts for timed meetings and breakout rooms."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FORMAT)


@cli.command()
@click.argument("duration_seconds", type=int)
@click.option(
    "--started-at", type=int, required=True, help="Reference start time in epoch milliseconds."
)
@click.option("--offset", type=int, default=0, help="Clock offset in milliseconds.")
def remaining(duration_seconds: int, started_at: int, offset: int) -> None:
    """Show the time left of a session lasting DURATION_SECONDS."""
    seconds = compute_remaining(started_at, duration_seconds, time.time() * 1000, offset)
    if seconds <= 0:
        click.echo("Time has ended")
        sys.exit(1)
    click.echo(f"{_format_remaining(seconds)} remaining")


@cli.command()
@click.argument("duration_seconds", type=int)
@click.option(
    "--started-at",
    type=int,
    default=None,
    help="Reference start time in epoch milliseconds (default: now).",
)
@click.option("--offset", type=int, default=0, help="Clock offset in milliseconds.")
@click.option(
    "--threshold",
    "thresholds",
    type=int,
    multiple=True,
    help="Alert when this many minutes remain (repeatable).",
)
@click.option("--breakout", is_flag=True, help="Count down a breakout room.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding settings.json.",
)
def watch(
    duration_seconds: int,
    started_at: int | None,
    offset: int,
    thresholds: tuple[int, ...],
    breakout: bool,
    config_dir: Path | None,
) -> None:
    """Count a session lasting DURATION_SECONDS down until it ends."""
    settings = _run(lambda: load_settings(config_dir))
    if started_at is None:
        started_at = int(time.time() * 1000)
    session = Session(started_at, duration_seconds, is_breakout=breakout)
    _run(
        lambda: asyncio.run(
            _watch(
                session,
                ClockSync(offset),
                thresholds or settings.remaining_time_alert_thresholds,
                settings.display_alerts,
            )
        )
    )
