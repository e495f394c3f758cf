from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo

from apscheduler.triggers.cron import CronTrigger

from panchangbot.modules.preferences.validators import parse_time


@dataclass(frozen=True)
class RecurrenceRule:
    """Fire daily at hour:minute in an explicit IANA timezone."""

    hour: int
    minute: int
    timezone: str

    @classmethod
    def from_time(cls, notification_time: str, timezone: str) -> RecurrenceRule:
        hour, minute = parse_time(notification_time)
        ZoneInfo(timezone)
        return cls(hour=hour, minute=minute, timezone=timezone)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def to_trigger(self) -> CronTrigger:
        return CronTrigger(hour=self.hour, minute=self.minute, timezone=self.tzinfo)

    def describe(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d} {self.timezone}"


def local_date(timezone: str, now: datetime | None = None) -> str:
    """Today's date (``YYYY-MM-DD``) on the calendar of ``timezone``."""
    if now is None:
        now = datetime.now(dt_timezone.utc)
    return now.astimezone(ZoneInfo(timezone)).date().isoformat()
