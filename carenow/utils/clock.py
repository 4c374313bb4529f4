"""
Clock utilities
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


class Clock:
    """Source of the current time, injected so day boundaries can be tested"""

    def __init__(self, business_timezone: str = "UTC"):
        self.tz = ZoneInfo(business_timezone)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def local_date(self, moment: datetime) -> date:
        """
        Calendar date of a moment in the business timezone.

        Naive datetimes are treated as UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()

    def is_same_day(self, first: datetime, second: datetime) -> bool:
        return self.local_date(first) == self.local_date(second)


class FrozenClock(Clock):
    """Clock pinned to a moment; advance it explicitly"""

    def __init__(self, moment: datetime, business_timezone: str = "UTC"):
        super().__init__(business_timezone)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def set(self, moment: datetime) -> None:
        self.moment = moment
