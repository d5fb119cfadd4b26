"""Pomodoro mobile app -- Kivy-based touch interface.

Reuses the core pomodoro modules (engine, db, notifications, presence) with
a single phone-sized screen: greeting, clock face, progress bar and the
buttons that make sense for the current phase.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

# Ensure the parent package is importable when running standalone on desktop
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from kivy.app import App
from kivy.clock import Clock
from kivy.lang import Builder
from kivy.metrics import sp
from kivy.properties import NumericProperty, StringProperty
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import Screen, ScreenManager

from pomodoro import config as cfg
from pomodoro import db
from pomodoro.display import greeting, subtitle
from pomodoro.engine import TimerEngine
from pomodoro.models import EngineSnapshot, PhaseKind
from pomodoro.notifications import LocalNotifier, NotificationContent
from pomodoro.presence import FilePresencePublisher
from pomodoro.shortcuts import ShortcutHook

log = logging.getLogger(__name__)

_WORK = (0.898, 0.400, 0.361, 1)      # #e5665c
_BREAK = (0.400, 0.694, 0.525, 1)     # #66b186
_TRACK = (0.25, 0.25, 0.25, 1)

KV = """
#:import get_color_from_hex kivy.utils.get_color_from_hex

<TimerScreen>:
    BoxLayout:
        orientation: 'vertical'
        padding: [dp(24), dp(60), dp(24), dp(60)]
        spacing: dp(12)
        canvas.before:
            Color:
                rgba: get_color_from_hex('#2b2b2b')
            Rectangle:
                pos: self.pos
                size: self.size
        Label:
            text: root.greeting_text
            font_size: sp(28)
            bold: True
            size_hint_y: None
            height: dp(40)
        Label:
            text: root.subtitle_text
            font_size: sp(15)
            color: 1, 1, 1, 0.5
            size_hint_y: None
            height: dp(24)
        Widget:
        Label:
            text: root.time_text
            font_size: sp(72)
            size_hint_y: None
            height: dp(96)
        Label:
            text: root.status_text
            font_size: sp(14)
            color: 1, 1, 1, 0.6
            size_hint_y: None
            height: dp(24)
        ProgressBar:
            max: 100
            value: root.progress
            size_hint_y: None
            height: dp(12)
        Widget:
        BoxLayout:
            id: actions
            size_hint_y: None
            height: dp(54)
            spacing: dp(16)
"""


class KivyTicker:
    """Countdown driver on the Kivy event loop."""

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval
        self._event = None

    def start(self, callback) -> None:
        self.cancel()
        self._event = Clock.schedule_interval(lambda dt: callback(), self.interval)

    def cancel(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None


def _show_reminder(content: NotificationContent) -> None:
    popup = Popup(
        title=content.title,
        content=Label(text=content.body, font_size=sp(16)),
        size_hint=(0.8, 0.3),
    )
    popup.open()


class TimerScreen(Screen):
    greeting_text = StringProperty("")
    subtitle_text = StringProperty("")
    time_text = StringProperty("25:00")
    status_text = StringProperty("")
    progress = NumericProperty(0)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        config = cfg.load_config()
        self.conn = db.get_connection() if config.history_enabled else None
        self.notifier = LocalNotifier(deliver=_show_reminder) if config.notifications_enabled else None
        self.engine = TimerEngine(
            cfg.timer_configuration(config),
            ticker=KivyTicker(),
            recorder=db.SessionRepository(self.conn) if self.conn is not None else None,
            notifier=self.notifier,
            presence=FilePresencePublisher(
                cfg.get_presence_path(config), enabled=config.presence_enabled
            ),
            automation=ShortcutHook() if config.shortcuts_enabled else None,
        )
        self.engine.add_listener(self._on_change)
        self._shown_kind = None
        Clock.schedule_once(lambda dt: self._on_change(self.engine.snapshot()), 0)

    def _on_change(self, snapshot: EngineSnapshot) -> None:
        kind = snapshot.phase.kind
        self.greeting_text = greeting(datetime.now().hour)
        self.subtitle_text = subtitle(kind)
        self.time_text = snapshot.formatted_time
        self.status_text = snapshot.status_text.upper()
        self.progress = snapshot.progress_fraction * 100
        if self.notifier is not None:
            self.notifier.deliver_due()
        if kind is not self._shown_kind:
            self._shown_kind = kind
            self._build_actions(kind)

    def _build_actions(self, kind: PhaseKind) -> None:
        actions = self.ids.actions
        actions.clear_widgets()
        if kind is PhaseKind.IDLE:
            actions.add_widget(self._button("Start", _WORK, self.engine.start_work))
        elif kind in (PhaseKind.WORKING, PhaseKind.ON_BREAK):
            actions.add_widget(self._button("Stop", _TRACK, self.engine.reset))
        else:
            actions.add_widget(self._button("Break", _BREAK, self.engine.start_break))
            actions.add_widget(self._button("Again", _WORK, self.engine.start_new_session))

    @staticmethod
    def _button(text, color, action) -> Button:
        btn = Button(text=text, font_size=sp(17), bold=True, background_color=color)
        btn.bind(on_release=lambda _: action())
        return btn


class PomodoroApp(App):
    """Kivy application entry point."""

    title = "Pomodoro"

    def build(self):
        Builder.load_string(KV)
        sm = ScreenManager()
        sm.add_widget(TimerScreen(name="timer"))
        return sm

    def on_stop(self):
        screen = self.root.get_screen("timer")
        if screen.engine.phase.is_running:
            log.info("App closing; discarding the running interval")
        screen.engine.reset()
        if screen.conn:
            screen.conn.close()


if __name__ == "__main__":
    PomodoroApp().run()
