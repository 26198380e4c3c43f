from collections import Counter
from typing import List
from urllib.parse import urlsplit

from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.assemblers.names import ACTIVITY_SESSION_EVENTS, FIRST_OPEN_EVENTS, SEARCH_EVENTS
from dashboard.core.aggregators import (
    average,
    count_by_name,
    filter_by_names,
    round1,
    round_half_up,
    safe_ratio,
    unique_users,
    unique_users_by_day,
    users_for,
)
from dashboard.core.properties import SESSION_LENGTH, as_number
from dashboard.core.retention import retention
from dashboard.models.metrics import MetricsQuery

PAID_EVENTS = ("Purchase Completed", "Purchase_Completed", "$ae_iap")
TRAFFIC_EVENTS = ("Session_Started", "Marketing_Session_Started", "App_Session_Started", "Page_Viewed")
TIMED_SESSION_EVENTS = ("$ae_session", "App_Session_Started", "Marketing_Session_Started")
MAX_SESSION_SECONDS = 7200
TOP_SOURCES = 10

FEATURE_GROUPS = (
    ("Notes", ("Note_Created", "Notes")),
    ("Documents", ("Document_Uploaded", "Documents")),
    ("Image Generation", ("Image_Generation_Started", "Image Generation")),
    ("Collections", ("Collection_Created", "Collections")),
    ("Memory", ("Memory_Added", "AI Memory")),
    ("Research Reports", ("Research_Report_Initiated", "Research_Report_Completed")),
    ("Writing Tools", ("Note_Writing_Tool_Used",)),
    ("Searches", SEARCH_EVENTS),
)


def is_guest(user_id: str) -> bool:
    return user_id.startswith("guest-")


def referrer_domain(referrer) -> str:
    if not referrer:
        return "direct"
    try:
        host = urlsplit(str(referrer)).hostname
    except ValueError:
        return "direct"
    if not host:
        return "direct"
    return host.replace("www.", "", 1)


def top(counter: Counter) -> List[dict]:
    return [{"source": source, "count": count} for source, count in counter.most_common(TOP_SOURCES)]


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events

    by_day = unique_users_by_day(events)
    avg_dau = average([len(by_day.get(day, ())) for day in window.days])
    all_users = unique_users(events)
    mau = len(all_users)

    guests = {user_id for user_id in all_users if is_guest(user_id)}
    accounts = len(all_users) - len(guests)
    paid = len(users_for(events, PAID_EVENTS))

    traffic = filter_by_names(events, TRAFFIC_EVENTS)
    referrers = Counter(referrer_domain(event.properties.get("referrer")) for event in traffic)
    utm_sources = Counter(
        str(event.properties["utm_source"]) for event in traffic if event.properties.get("utm_source")
    )

    session_lengths = [
        length
        for length in (as_number(SESSION_LENGTH.read(e.properties)) for e in filter_by_names(events, TIMED_SESSION_EVENTS))
        if 0 < length < MAX_SESSION_SECONDS
    ]

    adoption = []
    for feature, names in FEATURE_GROUPS:
        users = len(users_for(events, names))
        adoption.append({"feature": feature, "users": users, "adoptionRate": safe_ratio(users, mau, 100)})
    adoption.sort(key=lambda row: row["adoptionRate"], reverse=True)

    return envelope(
        window, query,
        dauMauRatio=round(safe_ratio(avg_dau, mau), 2),
        avgDAU=round_half_up(avg_dau),
        mau=mau,
        avgSessionDuration=round_half_up(average(session_lengths)),
        searchesPerUser=round1(safe_ratio(count_by_name(events, *SEARCH_EVENTS), mau)),
        retention=retention(
            filter_by_names(events, FIRST_OPEN_EVENTS),
            filter_by_names(events, ACTIVITY_SESSION_EVENTS),
        ).model_dump(),
        userBreakdown={
            "total": mau,
            "paid": paid,
            "free": accounts - paid,
            "paidPercentage": round1(safe_ratio(paid, accounts, 100)),
            "guest": len(guests),
            "authenticated": accounts,
        },
        trafficSources=top(referrers),
        utmSources=top(utm_sources),
        featureAdoption=adoption,
    )
