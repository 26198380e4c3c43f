from collections import Counter, defaultdict
from datetime import timedelta
from typing import Dict, List, Set

from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.core.aggregators import filter_by_names, safe_ratio, unique_users_by_day
from dashboard.core.classifier import ALL_USERS
from dashboard.core.properties import COUNTRY, SESSION_LENGTH, as_label, as_number
from dashboard.models.events import Event
from dashboard.models.metrics import MetricsQuery

SESSION_LENGTH_BUCKETS = (
    ("0-30s", 0, 30),
    ("30s-1m", 30, 60),
    ("1-5m", 60, 300),
    ("5-15m", 300, 900),
    ("15-30m", 900, 1800),
    ("30m+", 1800, float("inf")),
)

# label, inclusive low, inclusive high
SESSIONS_PER_USER_BUCKETS = (
    ("1", 1, 1),
    ("2-3", 2, 3),
    ("4-5", 4, 5),
    ("6-10", 6, 10),
    ("10+", 11, float("inf")),
)

TOP_COUNTRIES = 10


def week_start(event: Event) -> str:
    occurred = event.occurred_at.date()
    # weeks start on Sunday
    return (occurred - timedelta(days=(occurred.weekday() + 1) % 7)).isoformat()


def active_users_by(events: List[Event], key) -> Dict[str, Set[str]]:
    grouped: Dict[str, Set[str]] = defaultdict(set)
    for event in events:
        grouped[key(event)].add(event.user_id)
    return grouped


def geographic(events: List[Event]) -> List[dict]:
    counts = Counter(as_label(COUNTRY.read(event.properties)) for event in events)
    return [
        {"country": country, "users": count, "percentage": safe_ratio(count, len(events), 100)}
        for country, count in counts.most_common(TOP_COUNTRIES)
    ]


async def build(source: EventSource, query: MetricsQuery) -> dict:
    query = query.model_copy(update={"user_type": ALL_USERS})
    window = await load_window(source, query, by_user=False)
    events = window.events

    by_day = unique_users_by_day(events)
    weekly = active_users_by(events, week_start)
    monthly = active_users_by(events, lambda event: event.occurred_at.strftime("%Y-%m"))

    sessions = filter_by_names(events, ("$ae_session",))
    durations = [length for length in (as_number(SESSION_LENGTH.read(e.properties)) for e in sessions) if length > 0]
    per_user = Counter(event.user_id for event in sessions).values()

    return envelope(
        window, query,
        dau=[{"date": day, "users": len(by_day.get(day, ()))} for day in window.days],
        wau=[{"week": week, "users": len(users)} for week, users in sorted(weekly.items())],
        mau=[{"month": month, "users": len(users)} for month, users in sorted(monthly.items())],
        sessionDurations=[
            {"range": label, "count": sum(1 for d in durations if low <= d < high)}
            for label, low, high in SESSION_LENGTH_BUCKETS
        ],
        sessionsPerUser=[
            {"sessions": label, "users": sum(1 for c in per_user if low <= c <= high)}
            for label, low, high in SESSIONS_PER_USER_BUCKETS
        ],
        geographic=geographic(events),
    )
