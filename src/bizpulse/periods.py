# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for BizPulse.

This module turns the filter panel selection (a timeframe preset, an
explicit date range or a selected month) into concrete reporting windows,
and derives the preceding window used for period-over-period trends.

Every boundary is computed in the caller's *local* calendar. The local
calendar is the time zone attached to the ``now`` argument, which is always
passed explicitly so that results are deterministic:

    - a day runs from 00:00:00.000 to 23:59:59.999 local time,
    - a month runs from the 1st at midnight to the last day at 23:59:59.999,
    - record timestamps carrying a UTC offset are converted into the local
      zone before being compared or bucketed by day.

None of the functions here raise on malformed filter values; they fall back
to a sensible default window instead.
"""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from .models import DateLike, Filters, Timeframe

# "Beginning of time" used for open-ended ranges and the lifetime preset.
EPOCH_FLOOR = date(2000, 1, 1)

ONE_MS = timedelta(milliseconds=1)
END_OF_DAY_TIME = time(23, 59, 59, 999000)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class Window:
    """A closed time interval [start, end]."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class ResolvedPeriod:
    """
    Current reporting window plus the window it is compared against.

    Attributes
    ----------
    current:
        Window selected by the user.
    previous:
        Immediately preceding window used for trend computation.
    label:
        Human-readable description of the current window.
    comparable:
        False when ``previous`` is degenerate (lifetime views). Trends must
        be suppressed in that case.
    """

    current: Window
    previous: Window
    label: str
    comparable: bool = True


def current_time(timezone_name: Optional[str] = None) -> datetime:
    """
    Return the current local time (isolated for easier testing).

    Without a zone name the result is naive system wall-clock time, so that
    each record instant is converted with the UTC offset in force on its own
    date rather than the offset of today.
    """
    if timezone_name:
        return datetime.now(ZoneInfo(timezone_name))
    return datetime.now()


def start_of_day(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, END_OF_DAY_TIME, tzinfo=tz)


def day_window(day: date, tz: Optional[tzinfo]) -> Window:
    return Window(start=start_of_day(day, tz), end=end_of_day(day, tz))


def month_window(year: int, month: int, tz: Optional[tzinfo]) -> Window:
    """Full calendar month, first day 00:00 to last day 23:59:59.999."""
    last_day = monthrange(year, month)[1]
    return Window(
        start=start_of_day(date(year, month, 1), tz),
        end=end_of_day(date(year, month, last_day), tz),
    )


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse 'YYYY-MM' into (year, month), or None if malformed."""
    if not value:
        return None
    match = _MONTH_RE.match(value.strip())
    if match is None:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return year, month


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse the calendar day of an ISO date or datetime string."""
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def record_instant(value: DateLike, tz: Optional[tzinfo]) -> Optional[datetime]:
    """
    Convert a record date into an instant on the local calendar.

    - ``date`` values and 'YYYY-MM-DD' strings map to local midnight,
    - 'YYYY-MM' strings (expense months) map to the 1st of the month,
    - naive timestamps are read as local wall-clock times,
    - offset-aware timestamps are converted into ``tz``.

    Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        if tz is None:
            return value.astimezone().replace(tzinfo=None)
        return value.astimezone(tz)

    if isinstance(value, date):
        return start_of_day(value, tz)

    text = str(value).strip()
    month = parse_month(text)
    if month is not None:
        return start_of_day(date(month[0], month[1], 1), tz)

    if len(text) == 10:
        try:
            return start_of_day(date.fromisoformat(text), tz)
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return record_instant(parsed, tz)


def local_day(value: DateLike, tz: Optional[tzinfo]) -> Optional[date]:
    """Local calendar day a record falls on."""
    instant = record_instant(value, tz)
    if instant is None:
        return None
    return instant.date()


def _explicit_range(filters: Filters, now: datetime) -> ResolvedPeriod:
    tz = now.tzinfo
    start_day = parse_day(filters.date_range.start) or EPOCH_FLOOR
    end_day = parse_day(filters.date_range.end) or now.date()

    current = Window(start=start_of_day(start_day, tz), end=end_of_day(end_day, tz))

    duration = max(current.duration, timedelta(0))
    previous_end = current.start - ONE_MS
    previous = Window(start=previous_end - duration, end=previous_end)

    label = f"Custom range ({start_day.isoformat()} → {end_day.isoformat()})"
    return ResolvedPeriod(current=current, previous=previous, label=label)


def _this_month(now: datetime) -> ResolvedPeriod:
    tz = now.tzinfo
    current = Window(start=start_of_day(now.date().replace(day=1), tz), end=now)
    prev_year, prev_month = previous_month(now.year, now.month)
    return ResolvedPeriod(
        current=current,
        previous=month_window(prev_year, prev_month, tz),
        label="This month",
    )


def _lifetime(now: datetime) -> ResolvedPeriod:
    tz = now.tzinfo
    current = Window(start=start_of_day(EPOCH_FLOOR, tz), end=end_of_day(now.date(), tz))
    degenerate = Window(start=current.start, end=current.start)
    return ResolvedPeriod(
        current=current,
        previous=degenerate,
        label="Lifetime",
        comparable=False,
    )


def resolve_period(filters: Filters, now: datetime) -> ResolvedPeriod:
    """
    Resolve the filter panel selection into current and previous windows.

    Priority (highest to lowest):

        1. filters.date_range (either bound set)
        2. filters.timeframe

    Parameters
    ----------
    filters:
        Selection coming from the filter panel.
    now:
        Current wall-clock instant. Its tzinfo defines the local calendar.

    Returns
    -------
    ResolvedPeriod
        The current window, the preceding window of the same kind, and
        whether the two can be compared.
    """
    if filters.date_range.is_set:
        return _explicit_range(filters, now)

    try:
        timeframe = Timeframe(filters.timeframe)
    except ValueError:
        timeframe = Timeframe.LIFETIME

    tz = now.tzinfo
    today = now.date()

    if timeframe is Timeframe.TODAY:
        return ResolvedPeriod(
            current=day_window(today, tz),
            previous=day_window(today - timedelta(days=1), tz),
            label=f"Today ({today.isoformat()})",
        )

    if timeframe is Timeframe.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return ResolvedPeriod(
            current=day_window(yesterday, tz),
            previous=day_window(yesterday - timedelta(days=1), tz),
            label=f"Yesterday ({yesterday.isoformat()})",
        )

    if timeframe is Timeframe.THIS_MONTH:
        return _this_month(now)

    if timeframe is Timeframe.SELECT_MONTH:
        selected = parse_month(filters.selected_month)
        if selected is None:
            return _this_month(now)
        year, month = selected
        prev_year, prev_month = previous_month(year, month)
        return ResolvedPeriod(
            current=month_window(year, month, tz),
            previous=month_window(prev_year, prev_month, tz),
            label=date(year, month, 1).strftime("%B %Y"),
        )

    # custom_range without explicit bounds behaves like lifetime.
    return _lifetime(now)
