"""Pydantic models — single source of truth for all data types."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class PhaseKind(str, enum.Enum):
    """Timer phases."""

    IDLE = "idle"
    WORKING = "working"
    WORK_COMPLETE = "work_complete"
    ON_BREAK = "on_break"


_RUNNING_KINDS = frozenset({PhaseKind.WORKING, PhaseKind.ON_BREAK})

# Interval lengths must survive timedelta arithmetic with a non-zero result.
MIN_DURATION_SECONDS = 0.001
MAX_DURATION_SECONDS = 24 * 3600


def _duration_field(default: float):
    return Field(
        default=default, ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS, allow_inf_nan=False
    )


class TimerPhase(BaseModel):
    """The current phase. Running phases carry the instant they end."""

    model_config = ConfigDict(frozen=True)

    kind: PhaseKind = PhaseKind.IDLE
    end_time: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_end_time(self) -> TimerPhase:
        if self.kind in _RUNNING_KINDS and self.end_time is None:
            raise ValueError(f"{self.kind.value} phase requires an end_time")
        if self.kind not in _RUNNING_KINDS and self.end_time is not None:
            raise ValueError(f"{self.kind.value} phase has no end_time")
        return self

    @classmethod
    def idle(cls) -> TimerPhase:
        return cls(kind=PhaseKind.IDLE)

    @classmethod
    def working(cls, end_time: datetime) -> TimerPhase:
        return cls(kind=PhaseKind.WORKING, end_time=end_time)

    @classmethod
    def work_complete(cls) -> TimerPhase:
        return cls(kind=PhaseKind.WORK_COMPLETE)

    @classmethod
    def on_break(cls, end_time: datetime) -> TimerPhase:
        return cls(kind=PhaseKind.ON_BREAK, end_time=end_time)

    @property
    def is_running(self) -> bool:
        return self.kind in _RUNNING_KINDS

    @property
    def is_working(self) -> bool:
        return self.kind is PhaseKind.WORKING

    @property
    def is_on_break(self) -> bool:
        return self.kind is PhaseKind.ON_BREAK


class TimerConfiguration(BaseModel):
    """Interval lengths for one engine. Fixed for the engine's lifetime."""

    model_config = ConfigDict(frozen=True)

    work_duration_seconds: float = _duration_field(25 * 60)
    break_duration_seconds: float = _duration_field(5 * 60)

    def duration_for(self, kind: PhaseKind) -> float:
        """Return the interval length of a running phase."""
        if kind is PhaseKind.WORKING:
            return self.work_duration_seconds
        if kind is PhaseKind.ON_BREAK:
            return self.break_duration_seconds
        raise ValueError(f"{kind.value} phase has no duration")


class EngineSnapshot(BaseModel):
    """Read-only view of the engine handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    phase: TimerPhase
    remaining_seconds: float = Field(ge=0)
    progress_fraction: float = Field(ge=0, le=1)
    formatted_time: str
    status_text: str


class NotificationKind(str, enum.Enum):
    """Reminder identifiers. Scheduling a kind again replaces the pending one."""

    WORK_COMPLETE = "pomodoro.work.complete"
    BREAK_COMPLETE = "pomodoro.break.complete"


class SessionType(str, enum.Enum):
    """Kinds of recorded intervals."""

    WORK = "work"
    BREAK = "break"


class SessionRecord(BaseModel):
    """A finished work or break interval."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    start_time: datetime
    end_time: datetime
    kind: SessionType
    completed: bool = True

    @model_validator(mode="after")
    def _check_order(self) -> SessionRecord:
        if self.end_time < self.start_time:
            raise ValueError("end_time is before start_time")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


class SessionStatistics(BaseModel):
    """Aggregates over a range of recorded sessions."""

    total_sessions: int = Field(default=0, ge=0)
    completed_sessions: int = Field(default=0, ge=0)
    total_focus_seconds: float = Field(default=0, ge=0)
    total_break_seconds: float = Field(default=0, ge=0)
    average_session_seconds: float = Field(default=0, ge=0)

    @property
    def formatted_focus_time(self) -> str:
        total = int(self.total_focus_seconds)
        hours = total // 3600
        minutes = (total % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"


class ActivityState(BaseModel):
    """What the ambient display shows. Shared by publisher and readers."""

    is_break: bool = False
    start_time: datetime
    end_time: datetime

    @property
    def label(self) -> str:
        return "Break Time" if self.is_break else "Focus Time"

    def remaining_seconds(self, now: datetime) -> float:
        return max(0.0, (self.end_time - now).total_seconds())


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/pomodoro/config.json)."""

    work_duration_seconds: float = _duration_field(25 * 60)
    break_duration_seconds: float = _duration_field(5 * 60)
    db_path: Optional[str] = None  # None = use default (~/.local/share/pomodoro/)
    presence_path: Optional[str] = None
    history_enabled: bool = True
    notifications_enabled: bool = True
    presence_enabled: bool = True
    shortcuts_enabled: bool = False
