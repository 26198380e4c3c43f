from typing import Dict, Iterable, Mapping, Set, Tuple

from dashboard.core.aggregators import safe_ratio
from dashboard.models.events import Event
from dashboard.models.metrics import Retention

SECONDS_PER_DAY = 86400

# inclusive ranges of elapsed days after first touch
RETENTION_WINDOWS: Mapping[str, Tuple[int, int]] = {
    "day1": (1, 2),
    "day7": (7, 14),
    "day30": (30, 60),
}


def first_touches(events: Iterable[Event]) -> Dict[str, float]:
    touches: Dict[str, float] = {}
    for event in events:
        seen = touches.get(event.user_id)
        if seen is None or event.timestamp < seen:
            touches[event.user_id] = event.timestamp
    return touches


def retained_users(
        touches: Mapping[str, float],
        activity_events: Iterable[Event],
        windows: Mapping[str, Tuple[int, int]] = RETENTION_WINDOWS
) -> Dict[str, Set[str]]:
    retained: Dict[str, Set[str]] = {key: set() for key in windows}
    for event in activity_events:
        first = touches.get(event.user_id)
        if first is None:
            continue
        elapsed = int((event.timestamp - first) // SECONDS_PER_DAY)
        for key, (low, high) in windows.items():
            if low <= elapsed <= high:
                retained[key].add(event.user_id)
    return retained


def retention(
        first_touch_events: Iterable[Event],
        activity_events: Iterable[Event],
        windows: Mapping[str, Tuple[int, int]] = RETENTION_WINDOWS
) -> Retention:
    touches = first_touches(first_touch_events)
    retained = retained_users(touches, activity_events, windows)
    total = len(touches)
    return Retention(
        day1=safe_ratio(len(retained.get("day1", ())), total, 100),
        day7=safe_ratio(len(retained.get("day7", ())), total, 100),
        day30=safe_ratio(len(retained.get("day30", ())), total, 100),
        totalNewUsers=total,
    )
