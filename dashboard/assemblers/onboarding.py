from typing import Dict, List

from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.assemblers.names import FIRST_OPEN_EVENTS, PURCHASE_COMPLETED_EVENTS, SIGNUP_EVENTS
from dashboard.core.aggregators import daily_user_series, filter_by_names, safe_ratio, unique_users, users_for
from dashboard.core.funnel import funnel_rows
from dashboard.core.platforms import MACOS, MOBILE, PLATFORM_GROUPS, WEB, platform_group
from dashboard.core.retention import SECONDS_PER_DAY, first_touches
from dashboard.models.events import Event
from dashboard.models.metrics import MetricsQuery

SIGNUP_PAGE_MARKERS = ("sign", "register", "auth", "try")

# label, inclusive low, inclusive high (None = open ended)
SIGNUP_DELAY_BUCKETS = (
    ("Same day", 0, 0),
    ("Day 1", 1, 1),
    ("Day 2-3", 2, 3),
    ("Day 4-7", 4, 7),
    ("Day 8+", 8, None),
)


def viewed_signup_page(event: Event) -> bool:
    if event.name != "Page_Viewed":
        return False
    page = str(event.properties.get("page") or event.properties.get("$current_url") or "").lower()
    return any(marker in page for marker in SIGNUP_PAGE_MARKERS)


def funnel_steps(group: str, events: List[Event]) -> tuple:
    signed_up = len(users_for(events, SIGNUP_EVENTS))
    subscribed = len(users_for(events, PURCHASE_COMPLETED_EVENTS))

    if group == WEB:
        steps = [
            ("Site Visitors", len(unique_users(events))),
            ("Viewed Sign Up", len(unique_users(e for e in events if viewed_signup_page(e)))),
            ("Account Created", signed_up),
            ("Subscribed", subscribed),
        ]
        return steps, "Web: Marketing site to subscription"

    first_open = len(users_for(events, FIRST_OPEN_EVENTS))
    if group == MACOS:
        steps = [
            ("First Open", first_open),
            ("Signed Up", signed_up),
            ("Subscribed", subscribed),
        ]
        return steps, "macOS: First open to subscription (no onboarding)"

    steps = [
        ("First Open", first_open),
        ("Started Onboarding", len(users_for(events, ("Onboarding",)))),
        ("Signed Up", signed_up),
        ("Subscribed", subscribed),
    ]
    return steps, "Mobile: First open to subscription"


def first_open_to_signup(events: List[Event]) -> List[Dict]:
    opened = first_touches(filter_by_names(events, FIRST_OPEN_EVENTS))
    signed_up = first_touches(filter_by_names(events, SIGNUP_EVENTS))

    delays = []
    for user_id, signup_time in signed_up.items():
        open_time = opened.get(user_id)
        if open_time is None:
            continue
        delay = int((signup_time - open_time) // SECONDS_PER_DAY)
        if delay >= 0:
            delays.append(delay)

    return [
        {"day": label, "count": sum(1 for d in delays if d >= low and (high is None or d <= high))}
        for label, low, high in SIGNUP_DELAY_BUCKETS
    ]


async def build(source: EventSource, query: MetricsQuery) -> dict:
    group = query.platform if query.platform in PLATFORM_GROUPS else MOBILE
    query = query.model_copy(update={"platform": group})

    window = await load_window(source, query, by_platform=False)
    events = [event for event in window.events if platform_group(event) == group]

    steps, label = funnel_steps(group, events)
    total_first_step = steps[0][1]
    total_signups = next(count for name, count in steps if name in ("Signed Up", "Account Created"))

    return envelope(
        window, query,
        funnel=funnel_rows(steps),
        funnelLabel=label,
        signupsOverTime=daily_user_series(events, window.days, {"count": SIGNUP_EVENTS}),
        firstOpenToSignup=[] if group == WEB else first_open_to_signup(events),
        totalFirstStep=total_first_step,
        totalSignups=total_signups,
        conversionRate=safe_ratio(total_signups, total_first_step),
    )
