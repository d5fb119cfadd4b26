"""Countdown drivers that feed the engine its once-a-second ticks."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pomodoro.display import console
from pomodoro.engine import TimerEngine

log = logging.getLogger(__name__)

TICK_INTERVAL = 1.0


class LoopTicker:
    """Blocking 1 Hz driver for terminal hosts.

    ``start`` only arms the ticker; the host calls ``run`` which sleeps and
    fires the callback until ``cancel`` is called (usually by the engine
    itself when the interval completes).
    """

    def __init__(
        self,
        interval: float = TICK_INTERVAL,
        sleep: Optional[Callable[[float], None]] = None,
        on_tick: Optional[Callable[[], None]] = None,
    ) -> None:
        self.interval = interval
        self._sleep = sleep
        self._on_tick = on_tick
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def run(self) -> None:
        sleep = self._sleep or time.sleep
        while self._callback is not None:
            sleep(self.interval)
            callback = self._callback
            if callback is None:
                break
            callback()
            if self._on_tick is not None:
                self._on_tick()


class BellSignal:
    """Terminal bell as the completion cue."""

    def signal(self) -> None:
        console.print("\a", end="")


def run_countdown(engine: TimerEngine, ticker: LoopTicker) -> bool:
    """Drive ``engine`` until the running interval ends.

    Returns True if it completed, False if interrupted (Ctrl-C resets the
    engine, so nothing is recorded).
    """
    try:
        ticker.run()
    except KeyboardInterrupt:
        engine.reset()
        console.print("\n[yellow]Timer stopped early.[/yellow]")
        return False
    return not engine.phase.is_running
