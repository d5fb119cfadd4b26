"""Tests for local reminders."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

from pomodoro.clock import ManualClock
from pomodoro.models import NotificationKind
from pomodoro.notifications import (
    NOTIFICATION_CONTENT,
    LocalNotifier,
    NotificationContent,
    send_desktop_notification,
)


def _notifier():
    clock = ManualClock()
    delivered: list[NotificationContent] = []
    return clock, delivered, LocalNotifier(deliver=delivered.append, clock=clock)


class TestSchedule:
    def test_pending_until_due(self) -> None:
        clock, delivered, notifier = _notifier()
        when = clock.now() + timedelta(minutes=25)
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, when)
        assert notifier.pending == {NotificationKind.WORK_COMPLETE: when}

        clock.advance(60)
        assert notifier.deliver_due() == []
        clock.advance(24 * 60)
        assert notifier.deliver_due() == [NotificationKind.WORK_COMPLETE]
        assert delivered == [NOTIFICATION_CONTENT[NotificationKind.WORK_COMPLETE]]
        assert notifier.pending == {}

    def test_delivered_once(self) -> None:
        clock, delivered, notifier = _notifier()
        notifier.schedule_at(NotificationKind.BREAK_COMPLETE, clock.now() + timedelta(seconds=5))
        clock.advance(10)
        notifier.deliver_due()
        notifier.deliver_due()
        assert len(delivered) == 1

    def test_same_kind_replaces(self) -> None:
        clock, _, notifier = _notifier()
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, clock.now() + timedelta(minutes=25))
        later = clock.now() + timedelta(minutes=50)
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, later)
        assert notifier.pending == {NotificationKind.WORK_COMPLETE: later}

    def test_never_sooner_than_one_second(self) -> None:
        clock, _, notifier = _notifier()
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, clock.now() - timedelta(minutes=1))
        assert notifier.pending[NotificationKind.WORK_COMPLETE] == clock.now() + timedelta(seconds=1)

    def test_cancel_all(self) -> None:
        clock, delivered, notifier = _notifier()
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, clock.now() + timedelta(seconds=5))
        notifier.schedule_at(NotificationKind.BREAK_COMPLETE, clock.now() + timedelta(seconds=5))
        notifier.cancel_all()
        clock.advance(10)
        assert notifier.deliver_due() == []
        assert delivered == []

    def test_delivery_failure_logged(self, caplog) -> None:
        clock = ManualClock()

        def broken(content: NotificationContent) -> None:
            raise OSError("no display")

        notifier = LocalNotifier(deliver=broken, clock=clock)
        notifier.schedule_at(NotificationKind.WORK_COMPLETE, clock.now())
        clock.advance(2)
        with caplog.at_level("WARNING", logger="pomodoro.notifications"):
            assert notifier.deliver_due() == [NotificationKind.WORK_COMPLETE]
        assert "Could not deliver" in caplog.text
        assert notifier.pending == {}


class TestContent:
    def test_texts(self) -> None:
        work = NOTIFICATION_CONTENT[NotificationKind.WORK_COMPLETE]
        assert work.title == "Work Session Complete!"
        assert work.body == "Great job! Time for a break."
        brk = NOTIFICATION_CONTENT[NotificationKind.BREAK_COMPLETE]
        assert brk.title == "Break Over!"
        assert brk.body == "Ready to focus again?"


class TestDesktopDelivery:
    @patch("pomodoro.notifications.subprocess.run")
    @patch("pomodoro.notifications.shutil.which", return_value="/usr/bin/notify-send")
    def test_notify_send(self, mock_which, mock_run) -> None:
        send_desktop_notification(NotificationContent("Title", "Body"))
        mock_run.assert_called_once_with(["notify-send", "Title", "Body"], check=False)

    @patch("pomodoro.notifications.print_nudge")
    @patch("pomodoro.notifications.shutil.which", return_value=None)
    def test_console_fallback(self, mock_which, mock_nudge) -> None:
        send_desktop_notification(NotificationContent("Title", "Body"))
        mock_nudge.assert_called_once_with("Title\nBody")
