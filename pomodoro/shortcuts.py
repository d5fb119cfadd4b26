"""Run user automations (Shortcuts) when focus sessions start and end."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import quote

log = logging.getLogger(__name__)

START_SHORTCUT = "Pomodoro Start"
END_SHORTCUT = "Pomodoro End"
CALLBACK_URL = "pomodoro://"


def build_shortcut_url(name: str, callback: str = CALLBACK_URL) -> str:
    """x-callback URL that asks the Shortcuts app to run ``name``."""
    return (
        "shortcuts://x-callback-url/run-shortcut"
        f"?name={quote(name, safe=':/')}&x-success={quote(callback, safe=':/')}"
    )


class ShortcutHook:
    """Opens the start/end shortcut URLs. Failures are logged only."""

    def __init__(
        self,
        start_name: str = START_SHORTCUT,
        end_name: str = END_SHORTCUT,
        opener: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self.start_name = start_name
        self.end_name = end_name
        self._opener = opener or webbrowser.open

    def on_start(self) -> None:
        self._run(self.start_name)

    def on_end(self) -> None:
        self._run(self.end_name)

    def _run(self, name: str) -> None:
        url = build_shortcut_url(name)
        try:
            opened = self._opener(url)
        except Exception:
            log.warning("Shortcut %r failed", name, exc_info=True)
            return
        if not opened:
            log.warning("No handler opened shortcut %r", name)
