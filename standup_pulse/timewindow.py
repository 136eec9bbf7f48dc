"""Standup window arithmetic.

Team windows and deadlines are stored as UTC times of day ("HH:MM:SS").
Display values are computed against the viewer's offset at call time and
never stored. A time of day only becomes comparable once it is pinned to a
calendar date in a specific zone, which is what every helper here does.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .errors import InvalidWindow


@dataclass(frozen=True, order=True, slots=True)
class TimeOfDay:
    hour: int
    minute: int
    second: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.hour < 24 and 0 <= self.minute < 60 and 0 <= self.second < 60):
            raise ValueError(f"invalid time of day: {self.hour}:{self.minute}:{self.second}")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse ``HH:MM`` or ``HH:MM:SS``."""

        parts = value.strip().split(":")
        if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
            raise ValueError(f"invalid time of day: {value!r}")
        return cls(*(int(part) for part in parts))

    @classmethod
    def from_time(cls, value: time) -> "TimeOfDay":
        return cls(value.hour, value.minute, value.second)

    def as_time(self) -> time:
        return time(self.hour, self.minute, self.second)

    def isoformat(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True, slots=True)
class StandupWindow:
    open: Optional[TimeOfDay] = None
    close: Optional[TimeOfDay] = None

    @property
    def configured(self) -> bool:
        return self.open is not None or self.close is not None


class WindowState(str, enum.Enum):
    BEFORE_OPEN = "before_open"
    OPEN = "open"
    AFTER_CLOSE = "after_close"


@dataclass(frozen=True, slots=True)
class WindowStatus:
    state: WindowState
    remaining: Optional[timedelta] = None


def _viewer_clock(now: Optional[datetime]) -> datetime:
    # A naive or missing clock means "whatever zone this process runs in".
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None:
        return now.astimezone()
    return now


def _on_utc_day(value: TimeOfDay, now_utc: datetime) -> datetime:
    day = now_utc.astimezone(timezone.utc).date()
    return datetime.combine(day, value.as_time(), tzinfo=timezone.utc)


def to_local_display(utc_time: TimeOfDay, viewer_now: Optional[datetime] = None) -> str:
    """Render a stored UTC time as the viewer's wall clock, e.g. ``6:30 PM IST``."""

    viewer_now = _viewer_clock(viewer_now)
    local = _on_utc_day(utc_time, viewer_now).astimezone(viewer_now.tzinfo)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    label = f"{hour}:{local.minute:02d} {meridiem}"
    zone = local.tzname()
    return f"{label} {zone}" if zone else label


def to_local_input_value(utc_time: TimeOfDay, viewer_now: Optional[datetime] = None) -> str:
    """Return ``HH:MM`` in the viewer's zone, suitable for prefilling a time input."""

    viewer_now = _viewer_clock(viewer_now)
    local = _on_utc_day(utc_time, viewer_now).astimezone(viewer_now.tzinfo)
    return f"{local.hour:02d}:{local.minute:02d}"


def to_utc(local_time: TimeOfDay | str, local_now: Optional[datetime] = None) -> TimeOfDay:
    """Convert a wall-clock time, read as today in the caller's zone, to UTC.

    Only the time of day is returned. A local time near midnight can land on
    the previous or next UTC day; that date is dropped here and callers that
    care about it have to handle the rollover themselves.
    """

    if isinstance(local_time, str):
        local_time = TimeOfDay.parse(local_time)
    local_now = _viewer_clock(local_now)
    local = datetime.combine(local_now.date(), local_time.as_time(), tzinfo=local_now.tzinfo)
    return TimeOfDay.from_time(local.astimezone(timezone.utc).time())


def validate_window(open_time: Optional[TimeOfDay], close_time: Optional[TimeOfDay]) -> StandupWindow:
    """Reject windows that are empty or that wrap past UTC midnight."""

    if open_time is not None and close_time is not None and open_time >= close_time:
        raise InvalidWindow(
            f"Standup window must open before it closes (UTC {open_time} - {close_time})"
        )
    return StandupWindow(open=open_time, close=close_time)


def classify(window: Optional[StandupWindow], now_utc: datetime) -> WindowStatus:
    if window is None or not window.configured:
        return WindowStatus(WindowState.OPEN)

    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    else:
        now_utc = now_utc.astimezone(timezone.utc)
    if window.open is not None and now_utc < _on_utc_day(window.open, now_utc):
        return WindowStatus(WindowState.BEFORE_OPEN)
    if window.close is None:
        return WindowStatus(WindowState.OPEN)

    close_at = _on_utc_day(window.close, now_utc)
    if now_utc >= close_at:
        return WindowStatus(WindowState.AFTER_CLOSE)
    return WindowStatus(WindowState.OPEN, remaining=close_at - now_utc)


def is_late(deadline: Optional[TimeOfDay], now_local: datetime) -> bool:
    """Legacy single-deadline check; a team without a deadline is never late."""

    if deadline is None:
        return False
    return TimeOfDay.from_time(now_local.time()) >= deadline


def today_utc(now: Optional[datetime] = None) -> date:
    """The check-in day. Always the UTC date, never the local one."""

    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date()


def week_start_utc(now: Optional[datetime] = None) -> date:
    today = today_utc(now)
    return today - timedelta(days=today.weekday())


__all__ = [
    "TimeOfDay",
    "StandupWindow",
    "WindowState",
    "WindowStatus",
    "to_local_display",
    "to_local_input_value",
    "to_utc",
    "validate_window",
    "classify",
    "is_late",
    "today_utc",
    "week_start_utc",
]
