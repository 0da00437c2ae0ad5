# telehealth/core/clock.py
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from telehealth.core import config


def clinic_timezone() -> tzinfo:
    return ZoneInfo(config.CLINIC_TIMEZONE)


class SystemClock:
    """Wall clock in the clinic timezone."""

    def __init__(self, tz: tzinfo = None):
        self.tz = tz or clinic_timezone()

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)


class FixedClock:
    """Clock pinned to a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self.tz = instant.tzinfo
        self._now = instant

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = instant

    def advance(self, delta) -> datetime:
        self._now = self._now + delta
        return self._now


_clock = SystemClock()


def get_clock():
    return _clock
