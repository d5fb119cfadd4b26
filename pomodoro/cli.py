"""Pomodoro CLI -- focus, take a break, repeat."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, time, timedelta
from typing import Optional

import typer
from pydantic import ValidationError
from rich.logging import RichHandler
from rich.progress import Progress, TaskID

from pomodoro import config as cfg
from pomodoro import db, display, timer
from pomodoro.clock import SystemClock
from pomodoro.engine import TimerEngine, format_time
from pomodoro.models import AppConfig, EngineSnapshot, PhaseKind, TimerConfiguration
from pomodoro.notifications import LocalNotifier
from pomodoro.presence import FilePresencePublisher, read_activity, render_activity
from pomodoro.shortcuts import ShortcutHook

app = typer.Typer(
    name="pomodoro",
    help="A Pomodoro timer: work in focused intervals, rest in between.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )


def _conn() -> sqlite3.Connection:
    """Get a database connection (convenience wrapper)."""
    return db.get_connection()


class _Runner:
    """Wires an engine to the terminal and runs intervals on this thread."""

    def __init__(self, config: AppConfig, timer_config: TimerConfiguration) -> None:
        self.clock = SystemClock()
        self.conn = _conn() if config.history_enabled else None
        self.notifier = LocalNotifier(clock=self.clock) if config.notifications_enabled else None
        self.ticker = timer.LoopTicker(on_tick=self._deliver_reminders)
        self.engine = TimerEngine(
            timer_config,
            clock=self.clock,
            ticker=self.ticker,
            recorder=db.SessionRepository(self.conn) if self.conn is not None else None,
            notifier=self.notifier,
            presence=FilePresencePublisher(
                cfg.get_presence_path(config), enabled=config.presence_enabled, clock=self.clock
            ),
            automation=ShortcutHook() if config.shortcuts_enabled else None,
            signal=timer.BellSignal(),
        )
        self.engine.add_listener(self._refresh)
        self._progress: Optional[tuple[Progress, TaskID]] = None

    def _deliver_reminders(self) -> None:
        if self.notifier is not None:
            self.notifier.deliver_due()

    def _refresh(self, snapshot: EngineSnapshot) -> None:
        if self._progress is not None:
            progress, task = self._progress
            display.update_timer_progress(progress, task, snapshot)

    def run_interval(self) -> bool:
        """Count down the interval the engine is in. False if interrupted."""
        snapshot = self.engine.snapshot()
        display.print_header(snapshot, self.clock.now())
        with display.create_timer_progress() as progress:
            task = progress.add_task(
                snapshot.status_text, total=100, clock=snapshot.formatted_time
            )
            self._progress = (progress, task)
            try:
                completed = timer.run_countdown(self.engine, self.ticker)
            finally:
                self._progress = None
        return completed

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()


def _timer_config(
    config: AppConfig, work: Optional[float], break_: Optional[float]
) -> TimerConfiguration:
    try:
        return TimerConfiguration(
            work_duration_seconds=work * 60 if work is not None else config.work_duration_seconds,
            break_duration_seconds=(
                break_ * 60 if break_ is not None else config.break_duration_seconds
            ),
        )
    except ValidationError:
        display.print_warning("Durations must be greater than zero and at most 24 hours.")
        raise typer.Exit(1)


def _cycle(runner: _Runner) -> None:
    """Keep running intervals until the user stops or interrupts."""
    engine = runner.engine
    while runner.run_interval():
        if engine.phase.kind is PhaseKind.WORK_COMPLETE:
            display.print_success("Focus session complete.")
            if typer.confirm("Take a break?", default=True):
                engine.start_break()
            elif typer.confirm("Start another focus session?", default=False):
                engine.start_new_session()
            else:
                break
        else:
            display.print_success("Break over.")
            if typer.confirm("Start another focus session?", default=False):
                engine.start_work()
            else:
                break


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


@app.command()
def start(
    work: Optional[float] = typer.Option(None, "--work", "-w", help="Work minutes"),
    break_: Optional[float] = typer.Option(None, "--break", "-b", help="Break minutes"),
) -> None:
    """Start a focus session, then choose a break or another round."""
    config = cfg.load_config()
    runner = _Runner(config, _timer_config(config, work, break_))
    try:
        runner.engine.start_work()
        _cycle(runner)
    finally:
        runner.close()


@app.command(name="take-break")
def take_break(
    minutes: Optional[float] = typer.Option(None, "--minutes", "-m", help="Break minutes"),
) -> None:
    """Take a break. You have earned it."""
    config = cfg.load_config()
    runner = _Runner(config, _timer_config(config, None, minutes))
    try:
        runner.engine.start_break()
        _cycle(runner)
    finally:
        runner.close()


# ---------------------------------------------------------------------------
# History & presence
# ---------------------------------------------------------------------------


@app.command()
def history(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of sessions to show"),
) -> None:
    """List recent sessions."""
    conn = _conn()
    display.print_history(db.fetch_all_sessions(conn, limit=limit))
    conn.close()


@app.command()
def stats(
    days: int = typer.Option(7, "--days", "-d", min=1, help="How many days to include"),
) -> None:
    """See how your focus time adds up."""
    conn = _conn()
    today = date.today()
    start_of_range = datetime.combine(today - timedelta(days=days - 1), time.min)
    summary = db.get_statistics(conn, start_of_range, SystemClock().now())
    display.print_statistics(summary, title=f"Last {days} day{'s' if days != 1 else ''}")

    count = db.get_session_count(conn, today)
    focus = db.get_total_focus_time(conn, today)
    display.print_info(f"Today: {count} focus session{'s' if count != 1 else ''}, {format_time(focus)}")
    conn.close()


@app.command()
def presence() -> None:
    """Print the running countdown in one line (for status bars)."""
    state = read_activity(cfg.get_presence_path())
    typer.echo(render_activity(state, SystemClock().now()))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command(name="config")
def config_cmd(
    show: bool = typer.Option(False, "--show", help="Show current config"),
    work: Optional[float] = typer.Option(None, "--work", help="Default work minutes"),
    break_: Optional[float] = typer.Option(None, "--break", help="Default break minutes"),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Set a custom database file path"),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local DB"),
    history_on: Optional[bool] = typer.Option(
        None, "--history/--no-history", help="Record finished sessions"
    ),
    notifications_on: Optional[bool] = typer.Option(
        None, "--notifications/--no-notifications", help="Remind when intervals end"
    ),
    presence_on: Optional[bool] = typer.Option(
        None, "--presence/--no-presence", help="Publish the countdown for status bars"
    ),
    shortcuts_on: Optional[bool] = typer.Option(
        None, "--shortcuts/--no-shortcuts", help="Run the Start/End shortcuts"
    ),
) -> None:
    """Configure durations, storage and integrations."""
    changed = False
    if work is not None or break_ is not None:
        try:
            result = cfg.set_durations(work_minutes=work, break_minutes=break_)
        except ValidationError:
            display.print_warning("Durations must be greater than zero and at most 24 hours.")
            raise typer.Exit(1)
        display.print_success(
            f"Work {format_time(result.work_duration_seconds)}, "
            f"break {format_time(result.break_duration_seconds)}."
        )
        changed = True
    if db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Database path set to: {result.db_path}")
        changed = True
    elif reset:
        cfg.reset_db_path()
        display.print_success("Reset to default local database.")
        changed = True

    toggles = {
        "history_enabled": history_on,
        "notifications_enabled": notifications_on,
        "presence_enabled": presence_on,
        "shortcuts_enabled": shortcuts_on,
    }
    toggles = {k: v for k, v in toggles.items() if v is not None}
    if toggles:
        current = cfg.load_config().model_copy(update=toggles)
        cfg.save_config(current)
        for key, value in toggles.items():
            name = key.removesuffix("_enabled")
            display.print_success(f"{name.capitalize()} {'on' if value else 'off'}.")
        changed = True

    if show:
        _show_config()
    elif not changed:
        display.print_info("Use --show, --work, --break, --db-path, --reset or a feature toggle.")


def _show_config() -> None:
    current = cfg.load_config()
    display.print_info(f"Work: {format_time(current.work_duration_seconds)}")
    display.print_info(f"Break: {format_time(current.break_duration_seconds)}")
    if current.db_path:
        display.print_info(f"Database: {current.db_path}")
    else:
        display.print_info(f"Database: {cfg.get_db_path(current)} (default)")
    display.print_info(f"Presence file: {cfg.get_presence_path(current)}")
    for key in ("history_enabled", "notifications_enabled", "presence_enabled", "shortcuts_enabled"):
        name = key.removesuffix("_enabled").capitalize()
        display.print_info(f"{name}: {'on' if getattr(current, key) else 'off'}")


if __name__ == "__main__":
    app()
