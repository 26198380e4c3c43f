from collections import defaultdict

from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.core.aggregators import daily_event_series, distribution_rows, event_counts, filter_by_names
from dashboard.core.platforms import SEGMENTS, platform_segment
from dashboard.models.metrics import MetricsQuery

FEATURE_EVENTS = (
    # legacy names still sent by older iOS builds
    "Tab View",
    "Notes",
    "Documents",
    "Images",
    "Maps",
    "AI Memory",
    "Image Generation",
    "AISelection",
    "Memory Management Viewed",
    "Keyboard Shortcut Used",
    "Tab_Selected",
    "Note_Created",
    "Note_Viewed",
    "Note_Saved",
    "Document_Uploaded",
    "Document_Viewed",
    "Image_Generation_Started",
    "Image_Generation_Completed",
    "AI_Model_Selected",
    "Map_Viewed",
    "Memory_Viewed",
    "Memory_Management_Viewed",
    "Collection_Created",
    "Collection_Viewed",
    "Collection_Updated",
    "Collection_Deleted",
    "Collection_URL_Added",
    "Collection_Chat_Started",
    "Collection_Exported",
    "Image_Attached",
    "Document_Attached",
    "Chart_Viewed",
    "Chat_Saved_As_Note",
    "Image_Generation_Failed",
    "Document_Deleted",
    "Note_Created_From_Template",
    "Conversation_Published",
    "Conversation_Shared",
    "Memory_Toggled",
    "Memory_Added",
    "Memory_Deleted",
    "Feature_Limit_Reached",
    "Guest_Activity",
    "Page_Viewed",
    "Session_Started",
)


def features_by_segment(events) -> list:
    segments = defaultdict(list)
    for event in events:
        segments[platform_segment(event)].append(event)

    return [
        {"segment": segment, "features": distribution_rows(event_counts(segments[segment]), "feature", "count")}
        for segment in SEGMENTS
        if segments.get(segment)
    ]


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    features = filter_by_names(window.events, FEATURE_EVENTS)

    return envelope(
        window, query,
        featureUsage=distribution_rows(event_counts(features), "feature", "count"),
        featureOverTime=daily_event_series(features, window.days, {name: (name,) for name in FEATURE_EVENTS}),
        featuresBySegment=features_by_segment(features),
    )
