from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.core.aggregators import daily_user_series, group_by_day, round1, safe_ratio, unique_users, users_for
from dashboard.core.funnel import funnel_rows
from dashboard.models.metrics import MetricsQuery

MARKETING_EVENTS = ("Marketing_Session_Started",)
SIGNUP_EVENTS = ("Signup_Completed",)
SUBSCRIBER_EVENTS = ("Purchase_Completed",)


def is_guest_activity(event) -> bool:
    if event.name == "Guest_Activity":
        return True
    return event.name == "App_Session_Started" and event.properties.get("user_type") == "guest"


def conversion(numerator: int, denominator: int) -> float:
    return round1(safe_ratio(numerator, denominator, 100))


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events

    marketing = len(users_for(events, MARKETING_EVENTS))
    guests = len(unique_users(event for event in events if is_guest_activity(event)))
    signups = len(users_for(events, SIGNUP_EVENTS))
    subscribers = len(users_for(events, SUBSCRIBER_EVENTS))

    funnel = funnel_rows([
        ("Marketing Visit", marketing),
        ("Guest Trial", guests),
        ("Account Created", signups),
        ("Subscriber", subscribers),
    ])

    daily_data = daily_user_series(events, window.days, {
        "marketing": MARKETING_EVENTS,
        "signup": SIGNUP_EVENTS,
        "subscriber": SUBSCRIBER_EVENTS,
    })
    by_day = group_by_day(event for event in events if is_guest_activity(event))
    for point in daily_data:
        point["guest"] = len(unique_users(by_day.get(point["date"], ())))

    return envelope(
        window, query,
        funnel=funnel,
        dailyData=daily_data,
        conversionRates={
            "marketingToGuest": conversion(guests, marketing),
            "guestToSignup": conversion(signups, guests),
            "signupToSubscriber": conversion(subscribers, signups),
            "overallMarketingToSubscriber": conversion(subscribers, marketing),
        },
    )
