from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from dashboard.models.events import Event
from dashboard.sources.mixpanel import EventSourceError


def timestamp(day: str, hour: int = 12) -> float:
    occurred = datetime.fromisoformat(day).replace(hour=hour, tzinfo=timezone.utc)
    return occurred.timestamp()


def make_event(name: str, user_id: str, day: str = "2025-01-15", hour: int = 12, **properties) -> Event:
    return Event.from_raw({
        "event": name,
        "properties": {"distinct_id": user_id, "time": timestamp(day, hour), **properties},
    })


class FakeEventSource:
    """Serves events whose UTC day falls inside the requested window."""

    def __init__(self, events: Optional[List[Event]] = None, failing: Optional[Set[Tuple[str, str]]] = None,
                 fail_all: bool = False):
        self.events = events or []
        self.failing = failing or set()
        self.fail_all = fail_all
        self.calls: List[Tuple[str, str]] = []

    async def fetch_events(self, from_date: str, to_date: str) -> List[Event]:
        self.calls.append((from_date, to_date))
        if self.fail_all or (from_date, to_date) in self.failing:
            raise EventSourceError("Mixpanel API error: 503 - unavailable")
        return [event for event in self.events if from_date <= event.day <= to_date]
