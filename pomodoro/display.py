"""Rich terminal formatting helpers."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table
from rich.text import Text

from pomodoro.engine import format_time
from pomodoro.models import (
    EngineSnapshot,
    PhaseKind,
    SessionRecord,
    SessionStatistics,
    SessionType,
)

console = Console()

_SUBTITLE: dict[PhaseKind, str] = {
    PhaseKind.IDLE: "Ready to focus?",
    PhaseKind.WORKING: "Stay focused! You got this.",
    PhaseKind.ON_BREAK: "Enjoy your break.",
    PhaseKind.WORK_COMPLETE: "Great work! Take a break?",
}

_PHASE_STYLE: dict[PhaseKind, str] = {
    PhaseKind.IDLE: "dim",
    PhaseKind.WORKING: "bold red",
    PhaseKind.ON_BREAK: "bold green",
    PhaseKind.WORK_COMPLETE: "bold cyan",
}


def greeting(hour: int) -> str:
    """Time-of-day greeting for the header."""
    if 5 <= hour < 12:
        return "Good morning"
    if 12 <= hour < 17:
        return "Good afternoon"
    if 17 <= hour < 21:
        return "Good evening"
    return "Good night"


def subtitle(kind: PhaseKind) -> str:
    return _SUBTITLE[kind]


def print_header(snapshot: EngineSnapshot, now: Optional[datetime] = None) -> None:
    """Print the greeting, the phase subtitle and the clock face."""
    now = (now or datetime.now()).astimezone()
    kind = snapshot.phase.kind
    text = Text(justify="center")
    text.append(f"{greeting(now.hour)}\n", style="bold")
    text.append(f"{subtitle(kind)}\n\n", style="dim")
    text.append(f"{snapshot.formatted_time}\n", style=_PHASE_STYLE[kind])
    text.append(snapshot.status_text.upper(), style="dim")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def create_timer_progress() -> Progress:
    """Create a Rich progress bar for the countdown."""
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("{task.fields[clock]}"),
        console=console,
    )


def update_timer_progress(progress: Progress, task: TaskID, snapshot: EngineSnapshot) -> None:
    """Move the bar to match the engine snapshot."""
    progress.update(
        task,
        completed=snapshot.progress_fraction * 100,
        description=snapshot.status_text,
        clock=snapshot.formatted_time,
    )


def print_history(records: list[SessionRecord]) -> None:
    """Print recorded sessions in a table."""
    if not records:
        console.print(Panel("No sessions yet.", title="History", border_style="dim"))
        return

    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("started")
    table.add_column("kind")
    table.add_column("length", justify="right")
    table.add_column("done", justify="center")

    for record in records:
        style = "red" if record.kind is SessionType.WORK else "green"
        table.add_row(
            record.start_time.astimezone().strftime("%Y-%m-%d %H:%M"),
            record.kind.value,
            format_time(record.duration_seconds),
            "yes" if record.completed else "no",
            style=style,
        )

    console.print(Panel(table, title="History", border_style="blue"))


def print_statistics(stats: SessionStatistics, title: str = "Statistics") -> None:
    """Print aggregated session numbers."""
    lines: list[str] = [
        f"Sessions: {stats.completed_sessions} completed of {stats.total_sessions}",
        f"Focus time: {stats.formatted_focus_time}",
        f"Break time: {int(stats.total_break_seconds // 60)}m",
        f"Average focus session: {format_time(stats.average_session_seconds)}",
    ]
    console.print(Panel("\n".join(lines), title=title, border_style="green"))


def print_nudge(message: str) -> None:
    """Print a message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]{message}[/yellow]")
