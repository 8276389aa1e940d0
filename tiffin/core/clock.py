"""
Service clock and calendar helpers.

Notes:
- The service runs on a fixed local offset (UTC+5:30 by default) with no
  daylight-saving adjustment. "Today" always means the calendar date at
  that offset, never the server's local date.
- Services receive a `Clock` instead of calling `datetime.now()` so
  deadline rules can be exercised with a fixed instant.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol, Tuple


class Clock(Protocol):
    """Source of the current service-local instant."""

    cutoff_hour: int

    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class ServiceClock:
    """Wall clock pinned to a fixed UTC offset."""

    def __init__(self, utc_offset_minutes: int = 330, cutoff_hour: int = 20):
        self.tz = timezone(timedelta(minutes=utc_offset_minutes))
        self.cutoff_hour = cutoff_hour

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def __repr__(self) -> str:
        return f"ServiceClock(tz={self.tz}, cutoff_hour={self.cutoff_hour})"


def tomorrow(clock: Clock) -> date:
    return clock.today() + timedelta(days=1)


def service_window(clock: Clock) -> Tuple[date, date]:
    """The only dates meals are ever materialized for: today and tomorrow."""
    today = clock.today()
    return today, today + timedelta(days=1)


def is_before_cutoff(clock: Clock) -> bool:
    """True iff the local hour is strictly before the cutoff hour."""
    return clock.now().hour < clock.cutoff_hour


def week_start(d: date) -> date:
    """Monday of the ISO week containing `d`."""
    return d - timedelta(days=d.weekday())


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days in [start, end]."""
    return (end - start).days + 1
