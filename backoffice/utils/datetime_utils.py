"""
Date and time utility classes for the institute back-office
"""

from datetime import datetime, date, timezone
from typing import Optional, Union

from dateutil import parser
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


class DateTimeHelper:
    """Date and time manipulation utilities"""

    RANGE_DELTAS = {
        "week": relativedelta(weeks=1),
        "month": relativedelta(months=1),
        "quarter": relativedelta(months=3),
        "year": relativedelta(years=1),
    }

    @staticmethod
    def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
        """Attach UTC to naive datetimes read back from stores without tz support"""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt

    @staticmethod
    def parse_datetime(value: Union[str, datetime, date, None]) -> Optional[datetime]:
        """Parse an ISO string or date into an aware datetime"""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return DateTimeHelper.ensure_aware(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return DateTimeHelper.ensure_aware(parser.isoparse(value))

    @staticmethod
    def range_start(range_name: str, now: Optional[datetime] = None) -> datetime:
        """Start of a named reporting window ending now"""
        now = now or utcnow()
        delta = DateTimeHelper.RANGE_DELTAS.get(range_name, DateTimeHelper.RANGE_DELTAS["month"])
        return now - delta

    @staticmethod
    def months_back(months: int, now: Optional[datetime] = None) -> datetime:
        """First instant of the month `months - 1` months before now"""
        now = now or utcnow()
        start = now - relativedelta(months=months - 1)
        return start.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    @staticmethod
    def month_key(value: Union[datetime, date]) -> str:
        return f"{value.year:04d}-{value.month:02d}"

    @staticmethod
    def period_key(value: Union[datetime, date], group_by: str) -> str:
        """Bucket key for day/week/month/year grouping"""
        if group_by == "day":
            return value.strftime("%Y-%m-%d")
        if group_by == "week":
            year, week, _ = value.isocalendar()
            return f"{year:04d}-W{week:02d}"
        if group_by == "year":
            return f"{value.year:04d}"
        return DateTimeHelper.month_key(value)


class AgeCalculator:
    """Age calculation utilities"""

    @staticmethod
    def calculate_age(birth_date: date, as_of_date: date = None) -> int:
        """Calculate age in years"""
        if as_of_date is None:
            as_of_date = date.today()

        age = as_of_date.year - birth_date.year

        # Adjust if birthday hasn't occurred yet this year
        if (as_of_date.month, as_of_date.day) < (birth_date.month, birth_date.day):
            age -= 1

        return age

    @staticmethod
    def age_bucket(birth_date: Optional[date], as_of_date: date = None) -> str:
        """Reporting bucket for an age"""
        if birth_date is None:
            return "unknown"
        age = AgeCalculator.calculate_age(birth_date, as_of_date)
        if age < 18:
            return "under18"
        if age <= 25:
            return "18-25"
        if age <= 35:
            return "26-35"
        return "36+"
