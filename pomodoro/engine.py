"""Pomodoro state machine and the values derived from it.

The engine owns the current phase and the remaining time. It is driven by
two things only: user commands (``start_work``, ``start_break``,
``start_new_session``, ``reset``) and ``tick``, which the host's countdown
driver calls once a second while an interval is running.

Side effects go to injected collaborators (see ``pomodoro.services``). Each
call is fire-and-forget: a collaborator that raises is logged and otherwise
ignored, and the engine's own transition always stands.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pomodoro.clock import Clock, SystemClock
from pomodoro.models import (
    EngineSnapshot,
    NotificationKind,
    PhaseKind,
    SessionRecord,
    SessionType,
    TimerConfiguration,
    TimerPhase,
)
from pomodoro.services import (
    AutomationHook,
    CompletionSignal,
    Notifier,
    PresencePublisher,
    SessionRecorder,
    Ticker,
)

log = logging.getLogger(__name__)

Listener = Callable[[EngineSnapshot], None]

_STATUS_TEXT: dict[PhaseKind, str] = {
    PhaseKind.IDLE: "Ready",
    PhaseKind.WORKING: "Focus Time",
    PhaseKind.WORK_COMPLETE: "Work Complete",
    PhaseKind.ON_BREAK: "Break Time",
}


def progress_fraction(
    phase: TimerPhase, remaining_seconds: float, configuration: TimerConfiguration
) -> float:
    """Fraction of the running interval already elapsed, in [0, 1]."""
    if not phase.is_running:
        return 0.0
    total = configuration.duration_for(phase.kind)
    return max(0.0, min(1.0, 1 - remaining_seconds / total))


def format_time(seconds: float) -> str:
    """Render seconds as MM:SS, dropping any fractional second."""
    whole = max(0, int(seconds))
    minutes, secs = divmod(whole, 60)
    return f"{minutes:02d}:{secs:02d}"


def status_text(phase: TimerPhase) -> str:
    return _STATUS_TEXT[phase.kind]


class TimerEngine:
    """Single work/break countdown. Not thread-safe; drive it from one thread."""

    def __init__(
        self,
        configuration: Optional[TimerConfiguration] = None,
        *,
        clock: Optional[Clock] = None,
        ticker: Optional[Ticker] = None,
        recorder: Optional[SessionRecorder] = None,
        notifier: Optional[Notifier] = None,
        presence: Optional[PresencePublisher] = None,
        automation: Optional[AutomationHook] = None,
        signal: Optional[CompletionSignal] = None,
    ) -> None:
        self.configuration = configuration or TimerConfiguration()
        self._clock = clock or SystemClock()
        self._ticker = ticker
        self._recorder = recorder
        self._notifier = notifier
        self._presence = presence
        self._automation = automation
        self._signal = signal

        self._phase = TimerPhase.idle()
        self._remaining = self.configuration.work_duration_seconds
        self._session_start: Optional[datetime] = None
        self._armed = False
        self._listeners: list[Listener] = []

    # -- read-only state --

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining_seconds(self) -> float:
        return self._remaining

    @property
    def session_start_time(self) -> Optional[datetime]:
        return self._session_start

    @property
    def is_armed(self) -> bool:
        """True while a countdown driver is live for the current interval."""
        return self._armed

    @property
    def progress_fraction(self) -> float:
        return progress_fraction(self._phase, self._remaining, self.configuration)

    @property
    def formatted_time(self) -> str:
        return format_time(self._remaining)

    @property
    def status_text(self) -> str:
        return status_text(self._phase)

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            phase=self._phase,
            remaining_seconds=self._remaining,
            progress_fraction=self.progress_fraction,
            formatted_time=self.formatted_time,
            status_text=self.status_text,
        )

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener`` with a fresh snapshot after every change."""
        self._listeners.append(listener)

    # -- commands --

    def start_work(self) -> None:
        end_time = self._begin_interval(PhaseKind.WORKING)
        self._announce_interval(NotificationKind.WORK_COMPLETE, PhaseKind.WORKING, end_time)
        if self._automation is not None:
            self._dispatch("start shortcut", self._automation.on_start)
        self._notify_listeners()

    def start_break(self) -> None:
        end_time = self._begin_interval(PhaseKind.ON_BREAK)
        self._announce_interval(NotificationKind.BREAK_COMPLETE, PhaseKind.ON_BREAK, end_time)
        self._notify_listeners()

    def start_new_session(self) -> None:
        """Begin a fresh work interval without taking a break first."""
        self.start_work()

    def reset(self) -> None:
        """Abandon whatever is running. Nothing is recorded."""
        self._stop_countdown()
        if self._session_start is not None:
            log.debug("Discarding interrupted %s interval", self._phase.kind.value)
        self._phase = TimerPhase.idle()
        self._remaining = self.configuration.work_duration_seconds
        self._session_start = None

        if self._notifier is not None:
            self._dispatch("cancel reminders", self._notifier.cancel_all)
        self._stop_presence()
        self._notify_listeners()

    def tick(self, now: Optional[datetime] = None) -> None:
        """Re-evaluate the countdown. Completes the interval once it runs out."""
        end_time = self._phase.end_time
        if not self._armed or end_time is None:
            return
        now = now or self._clock.now()
        remaining = (end_time - now).total_seconds()
        if remaining > 0:
            self._remaining = remaining
            self._notify_listeners()
            return

        self._remaining = 0.0
        self._stop_countdown()
        self._complete(now)
        self._notify_listeners()

    # -- internals --

    def _begin_interval(self, kind: PhaseKind) -> datetime:
        self._stop_countdown()
        duration = self.configuration.duration_for(kind)
        now = self._clock.now()
        end_time = now + timedelta(seconds=duration)

        self._session_start = now
        self._phase = TimerPhase(kind=kind, end_time=end_time)
        self._remaining = duration
        self._armed = True
        if self._ticker is not None:
            self._ticker.start(self.tick)
        log.debug("Started %s interval ending %s", kind.value, end_time.isoformat())
        return end_time

    def _stop_countdown(self) -> None:
        self._armed = False
        if self._ticker is not None:
            self._ticker.cancel()

    def _announce_interval(
        self, reminder: NotificationKind, kind: PhaseKind, end_time: datetime
    ) -> None:
        if self._notifier is not None:
            self._dispatch("schedule reminder", self._notifier.schedule_at, reminder, end_time)
        if self._presence is not None:
            self._dispatch("publish presence", self._presence.publish, kind, end_time)

    def _stop_presence(self) -> None:
        if self._presence is not None:
            self._dispatch("stop presence", self._presence.stop)

    def _complete(self, now: datetime) -> None:
        if self._signal is not None:
            self._dispatch("completion signal", self._signal.signal)
        if self._phase.is_working:
            self._save_session(SessionType.WORK, now)
            self._phase = TimerPhase.work_complete()
            if self._automation is not None:
                self._dispatch("end shortcut", self._automation.on_end)
            self._stop_presence()
            log.info("Work interval complete")
        elif self._phase.is_on_break:
            self._save_session(SessionType.BREAK, now)
            self._phase = TimerPhase.idle()
            self._remaining = self.configuration.work_duration_seconds
            self._stop_presence()
            log.info("Break complete")

    def _save_session(self, kind: SessionType, now: datetime) -> None:
        start = self._session_start
        self._session_start = None
        if start is None or self._recorder is None:
            return
        record = SessionRecord(start_time=start, end_time=now, kind=kind, completed=True)
        self._dispatch("save session", self._recorder.save, record)

    def _notify_listeners(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            self._dispatch("listener", listener, snap)

    @staticmethod
    def _dispatch(what: str, func: Callable[..., object], *args: object) -> None:
        """Call a collaborator, logging instead of raising on failure."""
        try:
            func(*args)
        except Exception:
            log.warning("%s failed", what, exc_info=True)
