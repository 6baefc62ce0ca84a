"""Time utilities (exchange time)."""

from datetime import datetime, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

EXCHANGE_TZ = ZoneInfo("America/New_York")


class Clock(Protocol):
    """Source of the current instant (injected for testability)"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in exchange time"""

    def __init__(self, tz: tzinfo = EXCHANGE_TZ):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def now_utc_naive() -> datetime:
    """
    Current time in UTC, returned as naive datetime for DB storage.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_exchange(dt: datetime, tz: tzinfo = EXCHANGE_TZ) -> datetime:
    """
    Convert datetime to exchange time.

    Naive values are interpreted as already being exchange-local.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)
