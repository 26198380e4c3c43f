from dashboard.assemblers.base import EventSource, envelope, load_prior, load_window
from dashboard.assemblers.names import PAYWALL_DISMISSED_EVENTS
from dashboard.core.aggregators import (
    count_by_name,
    daily_event_series,
    distribution_rows,
    filter_by_names,
    property_distribution,
)
from dashboard.core.funnel import funnel_rows
from dashboard.core.trend import trend
from dashboard.models.metrics import MetricsQuery

CTA_EVENTS = ("Try_For_Free_Clicked", "Create_Account_Clicked")

MARKETING_EVENTS = CTA_EVENTS + PAYWALL_DISMISSED_EVENTS + (
    "Feature_Page_Visited",
    "Guest_Signup_Prompt",
    "Feature_Limit_Reached",
    "Marketing_Session_Started",
)


def distribution(events, name, key, label):
    return distribution_rows(property_distribution(filter_by_names(events, (name,)), key), label, "count")


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    marketing = filter_by_names(window.events, MARKETING_EVENTS)

    try_free = count_by_name(marketing, "Try_For_Free_Clicked")
    create_account = count_by_name(marketing, "Create_Account_Clicked")
    cta_clicks = try_free + create_account
    feature_pages = count_by_name(marketing, "Feature_Page_Visited")
    guest_prompts = count_by_name(marketing, "Guest_Signup_Prompt")
    dismissals = count_by_name(marketing, *PAYWALL_DISMISSED_EVENTS)
    sessions = count_by_name(marketing, "Marketing_Session_Started")

    previous = filter_by_names(await load_prior(source, window, query), MARKETING_EVENTS)

    cta_events = filter_by_names(marketing, CTA_EVENTS)

    return envelope(
        window, query,
        totalCTAClicks=cta_clicks,
        tryForFreeClicks=try_free,
        createAccountClicks=create_account,
        featurePagesVisited=feature_pages,
        guestSignupPrompts=guest_prompts,
        paywallDismissals=dismissals,
        featureLimitReached=count_by_name(marketing, "Feature_Limit_Reached"),
        marketingSessions=sessions,
        ctaClicksTrend=trend(cta_clicks, count_by_name(previous, *CTA_EVENTS)),
        featurePagesTrend=trend(feature_pages, count_by_name(previous, "Feature_Page_Visited")),
        guestPromptsTrend=trend(guest_prompts, count_by_name(previous, "Guest_Signup_Prompt")),
        paywallDismissalsTrend=trend(dismissals, count_by_name(previous, *PAYWALL_DISMISSED_EVENTS)),
        ctaSourceDistribution=distribution_rows(property_distribution(cta_events, "source"), "source", "count"),
        featurePageDistribution=distribution(marketing, "Feature_Page_Visited", "page", "page"),
        featureLimitDistribution=distribution(marketing, "Feature_Limit_Reached", "feature", "feature"),
        guestPromptSourceDistribution=distribution(marketing, "Guest_Signup_Prompt", "source", "source"),
        dailyData=daily_event_series(marketing, window.days, {
            "tryFree": ("Try_For_Free_Clicked",),
            "createAccount": ("Create_Account_Clicked",),
            "featurePages": ("Feature_Page_Visited",),
            "guestPrompts": ("Guest_Signup_Prompt",),
        }),
        marketingCTAFunnel=funnel_rows([
            ("Marketing Sessions", sessions),
            ("CTA Clicked", cta_clicks),
            ("Feature Pages Visited", feature_pages),
            ("Guest Signup Prompts", guest_prompts),
        ]),
    )
