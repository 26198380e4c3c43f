"""Date range resolution and day enumeration.

Range tokens are resolved against the server's local calendar date. Event
timestamps are bucketed into UTC calendar days (see ``Event.day``).
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_RANGE = "30d"
RANGE_DAYS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90, "365d": 365}


@dataclass(frozen=True)
class DateRange:
    from_date: str
    to_date: str

    @property
    def start(self) -> date:
        return date.fromisoformat(self.from_date)

    @property
    def end(self) -> date:
        return date.fromisoformat(self.to_date)

    @property
    def days(self) -> int:
        return max((self.end - self.start).days + 1, 0)

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_date, "to": self.to_date}


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def resolve_range(
        token: Optional[str] = DEFAULT_RANGE,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        today: Optional[date] = None
) -> DateRange:
    if from_date and to_date:
        return DateRange(from_date, to_date)

    today = today or date.today()
    span = RANGE_DAYS.get(token or DEFAULT_RANGE, RANGE_DAYS[DEFAULT_RANGE])
    return DateRange(format_date(today - timedelta(days=span - 1)), format_date(today))


def enumerate_days(date_range: DateRange) -> List[str]:
    days = []
    current = date_range.start
    end = date_range.end
    while current <= end:
        days.append(format_date(current))
        current += timedelta(days=1)
    return days


def prior_period(date_range: DateRange) -> DateRange:
    """The window of equal length that ends the day before ``date_range`` starts."""
    shift = timedelta(days=date_range.days)
    return DateRange(format_date(date_range.start - shift), format_date(date_range.end - shift))
