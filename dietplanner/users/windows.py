# -*- coding: utf-8 -*-
"""Users — UTC time windows for metrics queries.

All boundaries are computed in UTC. Timestamps are persisted as fixed-width
strings (``YYYY-MM-DDTHH:MM:SS.ffffffZ``) so lexical order in SQL matches
chronological order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from .errors import InvalidTimeWindow

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidTimeWindow(f"Naive datetime is not allowed: {value.isoformat()}")
    return value.astimezone(timezone.utc)


def format_ts(value: datetime) -> str:
    return _require_utc(value).strftime(_TS_FORMAT)


def parse_ts(value: str) -> datetime:
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval ``[start, end]``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = _require_utc(self.start)
        end = _require_utc(self.end)
        if start > end:
            raise InvalidTimeWindow(
                f"Window start {start.isoformat()} is after end {end.isoformat()}"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def as_params(self) -> Tuple[str, str]:
        return format_ts(self.start), format_ts(self.end)

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()}]"


@dataclass(frozen=True)
class Period:
    label: str
    window: TimeWindow


def month_start(now: datetime) -> datetime:
    now = _require_utc(now)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_window(now: datetime) -> TimeWindow:
    return TimeWindow(month_start(now), now)


def trailing_window(now: datetime, days: int = 7) -> TimeWindow:
    if days <= 0:
        raise InvalidTimeWindow(f"Trailing window must be positive, got {days} days")
    now = _require_utc(now)
    return TimeWindow(now - timedelta(days=days), now)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_periods(now: datetime, horizon: int) -> List[Period]:
    """Calendar months ending with the current one, oldest first.

    The current month's window ends at ``now``; earlier windows end one
    microsecond before the following month starts.
    """
    if horizon < 1:
        raise InvalidTimeWindow(f"Growth horizon must be at least 1 month, got {horizon}")
    now = _require_utc(now)

    periods: List[Period] = []
    for offset in range(horizon - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if offset == 0:
            end = now
        else:
            next_year, next_month = _shift_month(year, month, 1)
            end = datetime(next_year, next_month, 1, tzinfo=timezone.utc) - timedelta(microseconds=1)
        periods.append(Period(label=f"{year:04d}-{month:02d}", window=TimeWindow(start, end)))
    return periods
