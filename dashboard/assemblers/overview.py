from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.assemblers.names import SEARCH_EVENTS, SESSION_EVENTS, SIGNUP_EVENTS
from dashboard.core.aggregators import count_by_name, daily_event_series, safe_ratio, unique_users_by_day, users_for
from dashboard.core.classifier import count_by_tier, unique_users_by_tier
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events

    # breakdown ignores the user type filter so every tier stays visible
    user_breakdown = count_by_tier(window.platform_events)

    total_users = len(unique_users_by_tier(window.platform_events, query.user_type))
    total_sessions = count_by_name(events, *SESSION_EVENTS)
    total_searches = count_by_name(events, *SEARCH_EVENTS)
    conversion_rate = safe_ratio(len(users_for(events, SIGNUP_EVENTS)), total_users)

    previous = await load_prior(source, window, query)
    previous_users = len(unique_users_by_tier(previous, query.user_type))

    users_by_day = unique_users_by_day(events)
    counts = daily_event_series(events, window.days, {"sessions": SESSION_EVENTS, "searches": SEARCH_EVENTS})
    daily_data = [
        {"date": point["date"], "users": len(users_by_day.get(point["date"], ())),
         "sessions": point["sessions"], "searches": point["searches"]}
        for point in counts
    ]

    return envelope(
        window, query,
        totalUsers=total_users,
        totalSessions=total_sessions,
        totalSearches=total_searches,
        conversionRate=conversion_rate,
        usersTrend=trend(total_users, previous_users),
        sessionsTrend=trend(total_sessions, count_by_name(previous, *SESSION_EVENTS)),
        searchesTrend=trend(total_searches, count_by_name(previous, *SEARCH_EVENTS)),
        dailyData=daily_data,
        userBreakdown=user_breakdown.model_dump(),
    )
