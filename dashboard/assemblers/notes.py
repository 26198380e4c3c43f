from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.core.aggregators import (
    count_by_name,
    daily_event_series,
    distribution_rows,
    filter_by_names,
    property_distribution,
    safe_ratio,
    unique_users,
)
from dashboard.core.funnel import funnel_rows
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

NOTES_EVENTS = (
    "Note_Created",
    "Note_Viewed",
    "Note_Saved",
    "Note_Deleted",
    "Note_Shared",
    "Note_Published",
    "Note_Uploaded_To_Documents",
    "Note_Writing_Tool_Used",
)

TRENDS = {
    "createdTrend": "Note_Created",
    "viewedTrend": "Note_Viewed",
    "savedTrend": "Note_Saved",
    "publishedTrend": "Note_Published",
    "sharedTrend": "Note_Shared",
    "writingToolTrend": "Note_Writing_Tool_Used",
}


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    notes = filter_by_names(window.events, NOTES_EVENTS)

    created = count_by_name(notes, "Note_Created")
    saved = count_by_name(notes, "Note_Saved")
    deleted = count_by_name(notes, "Note_Deleted")
    published = count_by_name(notes, "Note_Published")
    shared = count_by_name(notes, "Note_Shared")
    uploads = count_by_name(notes, "Note_Uploaded_To_Documents")

    previous = filter_by_names(await load_prior(source, window, query), NOTES_EVENTS)
    trends = {
        key: trend(count_by_name(notes, name), count_by_name(previous, name))
        for key, name in TRENDS.items()
    }

    saves = filter_by_names(notes, ("Note_Saved",))
    tool_uses = filter_by_names(notes, ("Note_Writing_Tool_Used",))

    return envelope(
        window, query,
        totalNotesCreated=created,
        totalNotesViewed=count_by_name(notes, "Note_Viewed"),
        totalNotesSaved=saved,
        totalNotesDeleted=deleted,
        totalPublished=published,
        totalShared=shared,
        totalDocumentUploads=uploads,
        uniqueNoteUsers=len(unique_users(notes)),
        totalWritingToolUses=len(tool_uses),
        notesFunnel=funnel_rows([
            ("Created", created),
            ("Saved", saved),
            ("Published", published),
            ("Shared", shared),
        ]),
        dailyData=daily_event_series(notes, window.days, {
            "created": ("Note_Created",),
            "viewed": ("Note_Viewed",),
            "saved": ("Note_Saved",),
        }),
        saveTriggerDistribution=distribution_rows(property_distribution(saves, "trigger")),
        writingToolDistribution=distribution_rows(property_distribution(tool_uses, "tool_type")),
        featureAdoption=[
            {"name": "Published", "value": published},
            {"name": "Shared", "value": shared},
            {"name": "Uploaded to Docs", "value": uploads},
        ],
        retentionRate=safe_ratio(created - deleted, created, 100),
        documentUploadRate=safe_ratio(uploads, created, 100),
        **trends,
    )
