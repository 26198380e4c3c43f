from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.core.aggregators import count_by_name, daily_event_series, filter_by_names, unique_users
from dashboard.core.funnel import funnel_rows
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

COLLECTION_EVENTS = (
    "Collection_Created",
    "Collection_Viewed",
    "Collection_Updated",
    "Collection_Deleted",
    "Collection_URL_Added",
    "Collection_URL_Removed",
    "Collection_Chat_Started",
    "Collection_Exported",
    "Collection_Shared",
)

TOTALS = {
    "totalCreated": "Collection_Created",
    "totalViewed": "Collection_Viewed",
    "totalUpdated": "Collection_Updated",
    "totalDeleted": "Collection_Deleted",
    "totalURLsAdded": "Collection_URL_Added",
    "totalURLsRemoved": "Collection_URL_Removed",
    "totalChatStarted": "Collection_Chat_Started",
    "totalExported": "Collection_Exported",
    "totalShared": "Collection_Shared",
}

TRENDS = {
    "createdTrend": "Collection_Created",
    "viewedTrend": "Collection_Viewed",
    "chatStartedTrend": "Collection_Chat_Started",
    "exportedTrend": "Collection_Exported",
    "sharedTrend": "Collection_Shared",
}


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    collections = filter_by_names(window.events, COLLECTION_EVENTS)
    totals = {key: count_by_name(collections, name) for key, name in TOTALS.items()}

    previous = filter_by_names(await load_prior(source, window, query), COLLECTION_EVENTS)
    trends = {
        key: trend(count_by_name(collections, name), count_by_name(previous, name))
        for key, name in TRENDS.items()
    }

    funnel = funnel_rows([
        ("Created", totals["totalCreated"]),
        ("Viewed", totals["totalViewed"]),
        ("Chat Started", totals["totalChatStarted"]),
        ("Exported/Shared", totals["totalExported"] + totals["totalShared"]),
    ])

    return envelope(
        window, query,
        uniqueCollectionUsers=len(unique_users(collections)),
        collectionsFunnel=funnel,
        dailyData=daily_event_series(collections, window.days, {
            "created": ("Collection_Created",),
            "viewed": ("Collection_Viewed",),
            "chatStarted": ("Collection_Chat_Started",),
            "exported": ("Collection_Exported",),
        }),
        urlManagement=daily_event_series(collections, window.days, {
            "added": ("Collection_URL_Added",),
            "removed": ("Collection_URL_Removed",),
        }),
        **totals,
        **trends,
    )
