from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.core.aggregators import (
    average,
    count_by_name,
    daily_event_series,
    distribution_rows,
    filter_by_names,
    group_by_day,
    property_distribution,
    round_half_up,
    safe_ratio,
    unique_users,
)
from dashboard.core.funnel import funnel_rows
from dashboard.core.properties import read_label, read_number
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

RESEARCH_EVENTS = (
    "Research_Report_Initiated",
    "Research_Report_Completed",
    "Research_Report_Viewed",
    "Research_Report_Deleted",
    "Research_Report_Exported",
    "Research_History_Viewed",
    "Research_Settings_Changed",
    "Research_Report_Added_To_Collection",
    "Research_Report_Filtered",
    "Research_Report_Shared",
    "Research_Published",
)

REPORT_TYPES = ("deep", "research_report", "detailed_report", "outline_report", "resource_report")

TRENDS = {
    "initiatedTrend": "Research_Report_Initiated",
    "completedTrend": "Research_Report_Completed",
    "viewedTrend": "Research_Report_Viewed",
    "exportsTrend": "Research_Report_Exported",
    "sharesTrend": "Research_Report_Shared",
}


def report_types_over_time(initiated, days) -> list:
    by_day = group_by_day(initiated)
    points = []
    for day in days:
        labels = [read_label(event.properties, "report_type") for event in by_day.get(day, ())]
        point = {"date": day}
        for report_type in REPORT_TYPES:
            point[report_type] = labels.count(report_type)
        points.append(point)
    return points


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    research = filter_by_names(window.events, RESEARCH_EVENTS)

    initiated_count = count_by_name(research, "Research_Report_Initiated")
    completed_count = count_by_name(research, "Research_Report_Completed")
    viewed_count = count_by_name(research, "Research_Report_Viewed")
    exports = count_by_name(research, "Research_Report_Exported")
    shares = count_by_name(research, "Research_Report_Shared")

    previous = filter_by_names(await load_prior(source, window, query), RESEARCH_EVENTS)
    trends = {
        key: trend(count_by_name(research, name), count_by_name(previous, name))
        for key, name in TRENDS.items()
    }

    initiated = filter_by_names(research, ("Research_Report_Initiated",))
    completed = filter_by_names(research, ("Research_Report_Completed",))
    exported = filter_by_names(research, ("Research_Report_Exported",))

    return envelope(
        window, query,
        totalReportsInitiated=initiated_count,
        totalReportsCompleted=completed_count,
        completionRate=safe_ratio(completed_count, initiated_count, 100),
        totalReportsViewed=viewed_count,
        totalExports=exports,
        totalShares=shares,
        uniqueResearchUsers=len(unique_users(research)),
        reportTypeDistribution=distribution_rows(property_distribution(initiated, "report_type")),
        researchFunnel=funnel_rows([
            ("Initiated", initiated_count),
            ("Completed", completed_count),
            ("Viewed", viewed_count),
            ("Exported/Shared", exports + shares),
        ]),
        dailyData=daily_event_series(research, window.days, {
            "initiated": ("Research_Report_Initiated",),
            "completed": ("Research_Report_Completed",),
            "viewed": ("Research_Report_Viewed",),
        }),
        reportTypeOverTime=report_types_over_time(initiated, window.days),
        tonePreferences=distribution_rows(property_distribution(initiated, "tone")),
        citationFormatPreferences=distribution_rows(
            property_distribution(initiated, "citation_format"), "format", "count"
        ),
        exportFormatDistribution=distribution_rows(property_distribution(exported, "format")),
        averageSourceCount=round_half_up(average([read_number(e.properties, "source_count") for e in completed])),
        averageWordCount=round_half_up(average([read_number(e.properties, "word_count") for e in completed])),
        **trends,
    )
