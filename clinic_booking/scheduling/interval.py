"""
Interval Model

Half-open time intervals [start, end) on a single calendar date, in
clinic-local wall-clock time with minute granularity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union


def to_time(value: Union[time, timedelta, str]) -> time:
    """
    Convert a clock value to datetime.time, truncated to the minute.

    Accepts time objects, timedelta since midnight (some drivers return TIME
    columns that way), and "HH:MM" / "HH:MM:SS" strings.
    """
    if isinstance(value, time):
        t = value
    elif isinstance(value, timedelta):
        t = (datetime.min + value).time()
    elif isinstance(value, str):
        t = time.fromisoformat(value.strip())
    else:
        raise ValueError(f"Cannot convert {type(value)} to time")
    return t.replace(second=0, microsecond=0, tzinfo=None)


def add_minutes(t: time, minutes: int) -> time:
    """Shift a clock time; raises ValueError if the result leaves the day."""
    shifted = datetime.combine(date.min, t) + timedelta(minutes=minutes)
    if shifted.date() != date.min:
        raise ValueError(f"{t.strftime('%H:%M')} + {minutes} min crosses midnight")
    return shifted.time()


def format_clock(t: time) -> str:
    """12-hour label for display, e.g. 09:30 -> '9:30 AM'."""
    period = "PM" if t.hour >= 12 else "AM"
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d} {period}"


@dataclass(frozen=True)
class Interval:
    date: date
    start: time
    end: time

    def __post_init__(self):
        if self.start.second or self.start.microsecond or self.end.second or self.end.microsecond:
            raise ValueError("Interval bounds must have minute granularity")
        if not self.start < self.end:
            raise ValueError(
                f"Interval start {self.start.strftime('%H:%M')} must be before end {self.end.strftime('%H:%M')}"
            )

    @classmethod
    def starting_at(cls, day: date, start: time, minutes: int) -> "Interval":
        if minutes <= 0:
            raise ValueError("Interval width must be positive")
        start = to_time(start)
        return cls(day, start, add_minutes(start, minutes))

    @property
    def minutes(self) -> int:
        delta = datetime.combine(self.date, self.end) - datetime.combine(self.date, self.start)
        return int(delta.total_seconds() // 60)

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def contains(self, instant: time) -> bool:
        return contains(self, instant)

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return a.date == b.date and a.start < b.end and b.start < a.end


def contains(a: Interval, instant: time) -> bool:
    return a.start <= instant < a.end
