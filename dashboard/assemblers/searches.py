from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.assemblers.names import SEARCH_EVENTS
from dashboard.core.aggregators import (
    daily_event_series,
    distribution_rows,
    filter_by_names,
    hourly_distribution,
    property_distribution,
)
from dashboard.core.classifier import ALL_USERS
from dashboard.models.metrics import MetricsQuery


async def build(source: EventSource, query: MetricsQuery) -> dict:
    query = query.model_copy(update={"user_type": ALL_USERS})
    window = await load_window(source, query, by_user=False)
    searches = filter_by_names(window.events, SEARCH_EVENTS)
    with_context = sum(1 for event in searches if event.properties.get("has_context") is True)

    return envelope(
        window, query,
        searchesOverTime=daily_event_series(searches, window.days, {"searches": SEARCH_EVENTS}),
        searchModes=distribution_rows(property_distribution(searches, "search_mode"), "mode", "count"),
        modelsUsed=distribution_rows(property_distribution(searches, "model_used"), "model", "count"),
        contextUsage=[
            {"hasContext": True, "count": with_context},
            {"hasContext": False, "count": len(searches) - with_context},
        ],
        hourlyDistribution=hourly_distribution(searches),
        totalSearches=len(searches),
    )
