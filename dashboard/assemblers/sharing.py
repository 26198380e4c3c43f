from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.core.aggregators import count_by_name, daily_event_series, filter_by_names, safe_ratio
from dashboard.core.funnel import funnel_rows
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

SHARE_CREATION_EVENTS = (
    "Note_Shared",
    "Conversation_Shared",
    "Research_Report_Shared",
    "Collection_Shared",
)

SHARED_VIEW_EVENTS = (
    "Shared_Note_Viewed",
    "Shared_Conversation_Viewed",
    "Shared_Research_Viewed",
)

SAVE_CLICK_EVENTS = ("Save_To_Chunk_Clicked",)

# content type -> (share event, shared view event)
CONTENT_TYPES = (
    ("Notes", "Note_Shared", "Shared_Note_Viewed"),
    ("Conversations", "Conversation_Shared", "Shared_Conversation_Viewed"),
    ("Research", "Research_Report_Shared", "Shared_Research_Viewed"),
)


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events
    created = filter_by_names(events, SHARE_CREATION_EVENTS)
    viewed = filter_by_names(events, SHARED_VIEW_EVENTS)

    notes_shared = count_by_name(created, "Note_Shared")
    conversations_shared = count_by_name(created, "Conversation_Shared")
    research_shared = count_by_name(created, "Research_Report_Shared")
    collections_shared = count_by_name(created, "Collection_Shared")
    save_clicks = count_by_name(events, *SAVE_CLICK_EVENTS)

    total_shares = len(created)
    total_views = len(viewed)

    previous = await load_prior(source, window, query)

    view_to_share = []
    for label, share_event, view_event in CONTENT_TYPES:
        shares = count_by_name(created, share_event)
        views = count_by_name(viewed, view_event)
        view_to_share.append({"type": label, "shares": shares, "views": views, "ratio": safe_ratio(views, shares)})

    content_types = [
        {"name": "Notes", "value": notes_shared},
        {"name": "Conversations", "value": conversations_shared},
        {"name": "Research", "value": research_shared},
        {"name": "Collections", "value": collections_shared},
    ]

    return envelope(
        window, query,
        totalNotesShared=notes_shared,
        totalConversationsShared=conversations_shared,
        totalResearchShared=research_shared,
        totalCollectionsShared=collections_shared,
        totalSharedNoteViews=count_by_name(viewed, "Shared_Note_Viewed"),
        totalSharedConversationViews=count_by_name(viewed, "Shared_Conversation_Viewed"),
        totalSharedResearchViews=count_by_name(viewed, "Shared_Research_Viewed"),
        totalSaveToChunkClicks=save_clicks,
        noteSharedTrend=trend(notes_shared, count_by_name(previous, "Note_Shared")),
        conversationSharedTrend=trend(conversations_shared, count_by_name(previous, "Conversation_Shared")),
        researchSharedTrend=trend(research_shared, count_by_name(previous, "Research_Report_Shared")),
        sharedViewsTrend=trend(total_views, count_by_name(previous, *SHARED_VIEW_EVENTS)),
        saveClickTrend=trend(save_clicks, count_by_name(previous, *SAVE_CLICK_EVENTS)),
        viewToShareRatio=safe_ratio(total_views, total_shares),
        # fraction, not percent
        saveToChunkClickRate=safe_ratio(save_clicks, total_views),
        sharesCreatedOverTime=daily_event_series(created, window.days, {
            "note": ("Note_Shared",),
            "conversation": ("Conversation_Shared",),
            "research": ("Research_Report_Shared",),
            "collection": ("Collection_Shared",),
        }),
        sharedViewsOverTime=daily_event_series(viewed, window.days, {
            "note": ("Shared_Note_Viewed",),
            "conversation": ("Shared_Conversation_Viewed",),
            "research": ("Shared_Research_Viewed",),
        }),
        sharingFunnel=funnel_rows([
            ("Shared", total_shares),
            ("Viewed", total_views),
            ("Save Clicked", save_clicks),
        ]),
        contentTypeDistribution=[item for item in content_types if item["value"] > 0],
        viewToShareByType=view_to_share,
    )
