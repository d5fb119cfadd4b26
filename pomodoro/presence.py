"""Ambient countdown display ("live activity") backed by a small JSON file.

While an interval runs, the publisher keeps ``activity.json`` up to date so
that status bars, lock-screen widgets and the ``pomodoro presence`` command
can show the countdown without talking to the running process. The file is
removed when the interval stops.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pomodoro.clock import Clock, SystemClock
from pomodoro.engine import format_time
from pomodoro.models import ActivityState, PhaseKind

log = logging.getLogger(__name__)


class FilePresencePublisher:
    def __init__(
        self, path: Path, enabled: bool = True, clock: Optional[Clock] = None
    ) -> None:
        self.path = Path(path)
        self.enabled = enabled
        self._clock = clock or SystemClock()

    def publish(self, kind: PhaseKind, end_time: datetime) -> None:
        if not self.enabled:
            log.debug("Presence display disabled; not publishing")
            return
        state = ActivityState(
            is_break=kind is PhaseKind.ON_BREAK,
            start_time=self._clock.now(),
            end_time=end_time,
        )
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(state.model_dump_json())
            os.replace(tmp, self.path)
        except OSError as exc:
            log.warning("Failed to publish presence to %s: %s", self.path, exc)
            return
        log.debug("Presence published: %s until %s", state.label, end_time.isoformat())

    def stop(self) -> None:
        if not self.enabled:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("Failed to clear presence file %s: %s", self.path, exc)


def read_activity(path: Path) -> Optional[ActivityState]:
    """Read the published activity, or None if nothing is running."""
    try:
        return ActivityState.model_validate_json(Path(path).read_text())
    except (OSError, ValidationError):
        return None


def render_activity(state: Optional[ActivityState], now: datetime) -> str:
    """One-line countdown for status bars. Empty when idle."""
    if state is None:
        return ""
    icon = "☕" if state.is_break else "🍅"
    return f"{icon} {format_time(state.remaining_seconds(now))}"
