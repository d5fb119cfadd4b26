"""Local reminders for the end of work and break intervals."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from pomodoro.clock import Clock, SystemClock
from pomodoro.display import print_nudge
from pomodoro.models import NotificationKind

log = logging.getLogger(__name__)

# Reminders never fire sooner than this after being scheduled.
_MIN_DELAY = timedelta(seconds=1)


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str


NOTIFICATION_CONTENT: dict[NotificationKind, NotificationContent] = {
    NotificationKind.WORK_COMPLETE: NotificationContent(
        "Work Session Complete!", "Great job! Time for a break."
    ),
    NotificationKind.BREAK_COMPLETE: NotificationContent(
        "Break Over!", "Ready to focus again?"
    ),
}


def send_desktop_notification(content: NotificationContent) -> None:
    """Show a notification with notify-send, or print it when unavailable."""
    if shutil.which("notify-send"):
        subprocess.run(["notify-send", content.title, content.body], check=False)
        return
    print_nudge(f"{content.title}\n{content.body}")


class LocalNotifier:
    """Keeps pending reminders in memory and delivers the ones that are due.

    The host calls ``deliver_due`` periodically (the CLI does so on every
    countdown tick). Only one reminder per kind is pending at a time.
    """

    def __init__(
        self,
        deliver: Optional[Callable[[NotificationContent], None]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._deliver = deliver or send_desktop_notification
        self._clock = clock or SystemClock()
        self._pending: dict[NotificationKind, datetime] = {}

    @property
    def pending(self) -> dict[NotificationKind, datetime]:
        return dict(self._pending)

    def schedule_at(self, kind: NotificationKind, when: datetime) -> None:
        earliest = self._clock.now() + _MIN_DELAY
        self._pending[kind] = max(when, earliest)
        log.debug("Scheduled %s for %s", kind.value, self._pending[kind].isoformat())

    def cancel_all(self) -> None:
        if self._pending:
            log.debug("Cancelled %d pending reminder(s)", len(self._pending))
        self._pending.clear()

    def deliver_due(self, now: Optional[datetime] = None) -> list[NotificationKind]:
        """Deliver every reminder whose time has come. Returns the kinds delivered."""
        now = now or self._clock.now()
        due = [kind for kind, when in self._pending.items() if when <= now]
        for kind in due:
            del self._pending[kind]
            try:
                self._deliver(NOTIFICATION_CONTENT[kind])
            except Exception:
                log.warning("Could not deliver %s reminder", kind.value, exc_info=True)
        return due
