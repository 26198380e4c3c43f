from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.core.aggregators import (
    count_by_name,
    daily_event_series,
    distribution_rows,
    filter_by_names,
    hourly_distribution,
    property_distribution,
    safe_ratio,
    unique_users,
)
from dashboard.core.funnel import funnel_rows
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

REQUESTED = "Push_Permission_Requested"
GRANTED = "Push_Permission_Granted"
DENIED = "Push_Permission_Denied"
OPENED = "Push_Notification_Opened"


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events

    requested = count_by_name(events, REQUESTED)
    granted = count_by_name(events, GRANTED)
    denied = count_by_name(events, DENIED)
    opens = filter_by_names(events, (OPENED,))
    requests = filter_by_names(events, (REQUESTED,))

    previous = await load_prior(source, window, query)

    return envelope(
        window, query,
        permissionRequested=requested,
        permissionGranted=granted,
        permissionDenied=denied,
        notificationsOpened=len(opens),
        optInRate=safe_ratio(granted, granted + denied, 100),
        usersWithOpens=len(unique_users(opens)),
        requestedTrend=trend(requested, count_by_name(previous, REQUESTED)),
        grantedTrend=trend(granted, count_by_name(previous, GRANTED)),
        openedTrend=trend(len(opens), count_by_name(previous, OPENED)),
        dailyData=daily_event_series(events, window.days, {
            "requested": (REQUESTED,),
            "granted": (GRANTED,),
            "denied": (DENIED,),
            "opened": (OPENED,),
        }),
        destinations=distribution_rows(property_distribution(opens, "destination"), "destination", "count"),
        sources=distribution_rows(property_distribution(requests, "source"), "source", "count"),
        permissionFunnel=funnel_rows([
            ("Permission Requested", requested),
            ("Permission Granted", granted),
            ("Notification Opened", len(opens)),
        ]),
        hourlyDistribution=hourly_distribution(opens),
    )
