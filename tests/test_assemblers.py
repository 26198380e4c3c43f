import pytest

from dashboard.api.metrics import VIEWS
from dashboard.assemblers import acquisition, engagement, notes, onboarding, overview, subscriptions, users
from dashboard.models.metrics import MetricsQuery
from helpers import FakeEventSource, make_event

CURRENT = {"from_date": "2025-01-11", "to_date": "2025-01-20"}
PRIOR = ("2025-01-01", "2025-01-10")


def query(**overrides) -> MetricsQuery:
    return MetricsQuery(**{**CURRENT, **overrides})


@pytest.mark.asyncio
async def test_overview_totals_and_trends():
    source = FakeEventSource([
        make_event("Session_Started", "u1", day="2025-01-12", **{"$os": "iOS"}),
        make_event("Session_Started", "u2", day="2025-01-12", **{"mp_lib": "web"}),
        make_event("Search", "u1", day="2025-01-13", **{"$os": "iOS"}),
        make_event("Signup_Completed", "u2", day="2025-01-13", **{"mp_lib": "web"}),
        make_event("Session_Started", "u1", day="2025-01-05", **{"$os": "iOS"}),
    ])

    result = await overview.build(source, query())

    assert result["totalUsers"] == 2
    assert result["totalSessions"] == 2
    assert result["totalSearches"] == 1
    assert result["sessionsTrend"] == 100
    assert result["searchesTrend"] is None
    assert result["usersTrend"] == 100
    assert result["userBreakdown"] == {"total": 2, "visitors": 1, "authenticated": 1, "subscribers": 0}
    assert len(result["dailyData"]) == 10
    assert result["dailyData"][1] == {"date": "2025-01-12", "users": 2, "sessions": 2, "searches": 0}
    assert result["dateRange"] == {"from": "2025-01-11", "to": "2025-01-20"}
    assert source.calls == [("2025-01-11", "2025-01-20"), PRIOR]


@pytest.mark.asyncio
async def test_overview_platform_filter():
    source = FakeEventSource([
        make_event("Session_Started", "u1", day="2025-01-12", **{"$os": "iPadOS"}),
        make_event("Session_Started", "u2", day="2025-01-12", **{"mp_lib": "web"}),
    ])

    result = await overview.build(source, query(platform="iOS"))

    assert result["totalUsers"] == 1
    assert result["platform"] == "iOS"


@pytest.mark.asyncio
async def test_prior_window_failure_degrades_to_empty():
    source = FakeEventSource(
        [make_event("Note_Created", "u1", day="2025-01-12")],
        failing={PRIOR},
    )

    result = await notes.build(source, query())

    assert result["totalNotesCreated"] == 1
    assert result["createdTrend"] is None
    assert result["savedTrend"] == 0


@pytest.mark.asyncio
async def test_notes_funnel_counts_events():
    source = FakeEventSource([
        make_event("Note_Created", "u1", day="2025-01-12"),
        make_event("Note_Created", "u1", day="2025-01-13"),
        make_event("Note_Created", "u2", day="2025-01-13"),
        make_event("Note_Created", "u2", day="2025-01-14"),
        make_event("Note_Saved", "u1", day="2025-01-14", trigger="manual"),
        make_event("Note_Deleted", "u1", day="2025-01-15"),
    ])

    result = await notes.build(source, query())

    assert [step["count"] for step in result["notesFunnel"]] == [4, 1, 0, 0]
    assert result["notesFunnel"][1]["percentage"] == 25
    assert result["retentionRate"] == 75
    assert result["saveTriggerDistribution"] == [{"name": "manual", "value": 1}]


@pytest.mark.asyncio
async def test_acquisition_funnel_counts_unique_users():
    source = FakeEventSource([
        make_event("Marketing_Session_Started", "g1", day="2025-01-12"),
        make_event("Marketing_Session_Started", "g1", day="2025-01-13"),
        make_event("Marketing_Session_Started", "g2", day="2025-01-12"),
        make_event("App_Session_Started", "g1", day="2025-01-13", user_type="guest"),
        make_event("Signup_Completed", "g1", day="2025-01-14"),
    ])

    result = await acquisition.build(source, query())

    assert [step["count"] for step in result["funnel"]] == [2, 1, 1, 0]
    assert result["conversionRates"]["marketingToGuest"] == 50
    assert result["conversionRates"]["signupToSubscriber"] == 0


@pytest.mark.asyncio
async def test_subscriptions_excludes_completions_of_failed_purchasers():
    source = FakeEventSource([
        make_event("Paywall Viewed", "u1", day="2025-01-12", source="settings"),
        make_event("Paywall Viewed", "u2", day="2025-01-12", source="limit"),
        make_event("Purchase Completed", "u1", day="2025-01-13", plan_type="monthly"),
        make_event("Purchase Failed", "u2", day="2025-01-13", error_message="declined"),
        make_event("Purchase Completed", "u2", day="2025-01-14", plan_type="annual", price=39.99),
    ])

    result = await subscriptions.build(source, query())

    assert result["funnel"][-1] == {"name": "Purchase Completed", "count": 1, "percentage": 50, "dropoff": 0}
    assert result["failedPurchases"] == [{"error": "declined", "count": 1}]
    revenue = {row["plan"]: row for row in result["revenueByPlan"]}
    assert revenue["monthly"]["revenue"] == pytest.approx(9.99)
    assert revenue["monthly"]["estimated"] is True
    assert revenue["annual"]["revenue"] == pytest.approx(39.99)


@pytest.mark.asyncio
async def test_onboarding_defaults_to_mobile_group():
    source = FakeEventSource([
        make_event("$ae_first_open", "m1", day="2025-01-12", **{"$os": "iOS"}),
        make_event("$ae_first_open", "m2", day="2025-01-12", **{"$os": "visionOS"}),
        make_event("Onboarding", "m1", day="2025-01-12", **{"$os": "iOS"}),
        make_event("Signup_Completed", "m1", day="2025-01-14", **{"$os": "iOS"}),
        make_event("$ae_first_open", "w1", day="2025-01-12", **{"mp_lib": "web"}),
    ])

    result = await onboarding.build(source, query(platform="all"))

    assert result["platform"] == "mobile"
    assert [step["count"] for step in result["funnel"]] == [2, 1, 1, 0]
    assert result["totalSignups"] == 1
    assert result["conversionRate"] == 0.5
    buckets = {row["day"]: row["count"] for row in result["firstOpenToSignup"]}
    assert buckets["Day 2-3"] == 1


@pytest.mark.asyncio
async def test_onboarding_web_funnel():
    source = FakeEventSource([
        make_event("Page_Viewed", "w1", day="2025-01-12", page="/signup", mp_lib="web"),
        make_event("Page_Viewed", "w2", day="2025-01-12", page="/pricing", mp_lib="web"),
    ])

    result = await onboarding.build(source, query(platform="web"))

    assert [step["name"] for step in result["funnel"]][:2] == ["Site Visitors", "Viewed Sign Up"]
    assert [step["count"] for step in result["funnel"]][:2] == [2, 1]
    assert result["firstOpenToSignup"] == []


@pytest.mark.asyncio
async def test_users_ignores_user_type():
    source = FakeEventSource([
        make_event("$ae_session", "u1", day="2025-01-12", mp_country_code="DE", **{"$ae_session_length": 45}),
        make_event("$ae_session", "u1", day="2025-01-13", mp_country_code="DE", **{"$ae_session_length": 400}),
        make_event("$ae_session", "u2", day="2025-01-13"),
    ])

    result = await users.build(source, query(user_type="subscribers"))

    assert result["userType"] == "all"
    assert result["geographic"][0]["country"] == "DE"
    durations = {row["range"]: row["count"] for row in result["sessionDurations"]}
    assert durations["30s-1m"] == 1
    assert durations["5-15m"] == 1
    per_user = {row["sessions"]: row["users"] for row in result["sessionsPerUser"]}
    assert per_user["1"] == 1
    assert per_user["2-3"] == 1
    # 2025-01-12 is a Sunday
    assert result["wau"] == [{"week": "2025-01-12", "users": 2}]


@pytest.mark.asyncio
async def test_engagement_breakdown_and_referrers():
    source = FakeEventSource([
        make_event("Session_Started", "guest-1", day="2025-01-12", referrer="https://www.google.com/search"),
        make_event("Session_Started", "acct-1", day="2025-01-12", utm_source="newsletter"),
        make_event("Purchase_Completed", "acct-1", day="2025-01-13"),
    ])

    result = await engagement.build(source, query())

    assert result["userBreakdown"]["guest"] == 1
    assert result["userBreakdown"]["paid"] == 1
    assert result["userBreakdown"]["free"] == 0
    sources = {row["source"]: row["count"] for row in result["trafficSources"]}
    assert sources == {"google.com": 1, "direct": 1}
    assert result["utmSources"] == [{"source": "newsletter", "count": 1}]


def test_referrer_domain_handles_garbage():
    assert engagement.referrer_domain(None) == "direct"
    assert engagement.referrer_domain("not a url") == "direct"
    assert engagement.referrer_domain("http://[bad") == "direct"


@pytest.mark.asyncio
@pytest.mark.parametrize("view", sorted(VIEWS))
async def test_every_view_handles_an_empty_window(view):
    result = await VIEWS[view](FakeEventSource(), query())
    assert result["dateRange"] == {"from": "2025-01-11", "to": "2025-01-20"}
    assert "lastUpdated" in result


@pytest.mark.asyncio
async def test_engagement_averages_round_half_up():
    source = FakeEventSource([
        make_event("Session_Started", "u1", day="2025-01-11"),
        make_event("Session_Started", "u2", day="2025-01-11"),
        make_event("$ae_session", "u1", day="2025-01-12", **{"$ae_session_length": 10}),
        make_event("$ae_session", "u2", day="2025-01-12", **{"$ae_session_length": 11}),
        make_event("Session_Started", "u3", day="2025-01-12"),
    ])

    result = await engagement.build(source, query(to_date="2025-01-12"))

    assert result["avgDAU"] == 3
    assert result["avgSessionDuration"] == 11
