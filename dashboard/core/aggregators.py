import math
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Mapping, Sequence, Set

from dashboard.core.properties import read_label
from dashboard.models.events import Event


def unique_users(events: Iterable[Event]) -> Set[str]:
    return {event.user_id for event in events}


def unique_users_by_day(events: Iterable[Event]) -> Dict[str, Set[str]]:
    grouped: Dict[str, Set[str]] = defaultdict(set)
    for event in events:
        grouped[event.day].add(event.user_id)
    return dict(grouped)


def group_by_day(events: Iterable[Event]) -> Dict[str, List[Event]]:
    grouped: Dict[str, List[Event]] = defaultdict(list)
    for event in events:
        grouped[event.day].append(event)
    return dict(grouped)


def filter_by_names(events: Iterable[Event], names: Iterable[str]) -> List[Event]:
    wanted = frozenset(names)
    return [event for event in events if event.name in wanted]


def count_by_name(events: Iterable[Event], *names: str) -> int:
    wanted = frozenset(names)
    return sum(1 for event in events if event.name in wanted)


def users_for(events: Iterable[Event], names: Iterable[str]) -> Set[str]:
    return unique_users(filter_by_names(events, names))


def event_counts(events: Iterable[Event]) -> Dict[str, int]:
    return dict(Counter(event.name for event in events))


def property_distribution(events: Iterable[Event], key: str) -> Dict[str, int]:
    return dict(Counter(read_label(event.properties, key) for event in events))


def distribution_rows(distribution: Mapping[str, int], label: str = "name", value: str = "value") -> List[dict]:
    rows = sorted(distribution.items(), key=lambda item: item[1], reverse=True)
    return [{label: key, value: count} for key, count in rows]


def daily_event_series(
        events: Iterable[Event],
        days: Sequence[str],
        series: Mapping[str, Iterable[str]]
) -> List[dict]:
    """One point per day, each series counting events whose name is in its name set."""
    by_day = group_by_day(events)
    name_sets = {key: frozenset(names) for key, names in series.items()}
    points = []
    for day in days:
        day_events = by_day.get(day, [])
        point = {"date": day}
        for key, names in name_sets.items():
            point[key] = sum(1 for event in day_events if event.name in names)
        points.append(point)
    return points


def daily_user_series(
        events: Iterable[Event],
        days: Sequence[str],
        series: Mapping[str, Iterable[str]]
) -> List[dict]:
    by_day = group_by_day(events)
    name_sets = {key: frozenset(names) for key, names in series.items()}
    points = []
    for day in days:
        day_events = by_day.get(day, [])
        point = {"date": day}
        for key, names in name_sets.items():
            point[key] = len({event.user_id for event in day_events if event.name in names})
        points.append(point)
    return points


def hourly_distribution(events: Iterable[Event]) -> List[dict]:
    counts = Counter(event.hour for event in events)
    return [{"hour": hour, "count": counts.get(hour, 0)} for hour in range(24)]


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * scale


def average(values: Sequence[float]) -> float:
    return safe_ratio(sum(values), len(values))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10
