"""Collaborator contracts used by the timer engine.

The engine only ever calls these methods and never looks at their return
values. Implementations live in ``db``, ``notifications``, ``presence``,
``shortcuts`` and ``timer``; tests substitute recording fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol

from pomodoro.models import NotificationKind, PhaseKind, SessionRecord


class SessionRecorder(Protocol):
    def save(self, record: SessionRecord) -> None: ...


class Notifier(Protocol):
    def schedule_at(self, kind: NotificationKind, when: datetime) -> None: ...

    def cancel_all(self) -> None: ...


class PresencePublisher(Protocol):
    def publish(self, kind: PhaseKind, end_time: datetime) -> None: ...

    def stop(self) -> None: ...


class AutomationHook(Protocol):
    def on_start(self) -> None: ...

    def on_end(self) -> None: ...


class CompletionSignal(Protocol):
    """Haptic or audible cue fired when an interval runs out."""

    def signal(self) -> None: ...


class Ticker(Protocol):
    """Periodic countdown driver. At most one callback is live at a time."""

    def start(self, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...
