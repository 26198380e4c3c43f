from collections import defaultdict

from dashboard.assemblers.base import EventSource, envelope, load_window
from dashboard.assemblers.names import (
    PAYWALL_DISMISSED_EVENTS,
    PAYWALL_VIEWED_EVENTS,
    PLAN_SELECTED_EVENTS,
    PURCHASE_CANCELLED_EVENTS,
    PURCHASE_COMPLETED_EVENTS,
    PURCHASE_FAILED_EVENTS,
    PURCHASE_INITIATED_EVENTS,
)
from dashboard.core.aggregators import (
    average,
    count_by_name,
    distribution_rows,
    filter_by_names,
    property_distribution,
    unique_users,
    users_for,
)
from dashboard.core.funnel import funnel_rows
from dashboard.core.properties import read_label, read_number
from dashboard.models.metrics import MetricsQuery

# fallback list prices when a purchase event carries no price
PLAN_PRICES = {
    "weekly": 2.99,
    "monthly": 9.99,
    "annual": 49.99,
    "yearly": 49.99,
}


def revenue_by_plan(purchases) -> list:
    by_plan = defaultdict(list)
    for event in purchases:
        by_plan[read_label(event.properties, "plan_type")].append(event)

    rows = []
    for plan, plan_events in by_plan.items():
        list_price = PLAN_PRICES.get(plan.lower(), 0.0)
        prices = [read_number(event.properties, "price") or list_price for event in plan_events]
        rows.append({
            "plan": plan,
            "count": len(plan_events),
            "revenue": len(plan_events) * average(prices),
            "estimated": any(not read_number(event.properties, "price") for event in plan_events),
        })
    return sorted(rows, key=lambda row: row["revenue"], reverse=True)


async def build(source: EventSource, query: MetricsQuery) -> dict:
    window = await load_window(source, query)
    events = window.events

    failed_users = users_for(events, PURCHASE_FAILED_EVENTS)
    completed = [
        event for event in filter_by_names(events, PURCHASE_COMPLETED_EVENTS)
        if event.user_id not in failed_users
    ]

    paywall_viewed = count_by_name(events, *PAYWALL_VIEWED_EVENTS)
    funnel = funnel_rows([
        ("Paywall Viewed", paywall_viewed),
        ("Plan Selected", count_by_name(events, *PLAN_SELECTED_EVENTS)),
        ("Purchase Initiated", count_by_name(events, *PURCHASE_INITIATED_EVENTS)),
        ("Purchase Completed", len(completed)),
    ])

    trial_users = unique_users(event for event in events if event.properties.get("has_trial") is True)
    converted = len(trial_users & unique_users(completed))

    failed = filter_by_names(events, PURCHASE_FAILED_EVENTS)
    paywalls = filter_by_names(events, PAYWALL_VIEWED_EVENTS)

    return envelope(
        window, query,
        funnel=funnel,
        revenueByPlan=revenue_by_plan(filter_by_names(events, PURCHASE_COMPLETED_EVENTS)),
        trialConversion={"converted": converted, "notConverted": len(trial_users) - converted},
        failedPurchases=distribution_rows(property_distribution(failed, "error_message"), "error", "count"),
        paywallSources=distribution_rows(property_distribution(paywalls, "source"), "source", "count"),
        paywallDismissed=count_by_name(events, *PAYWALL_DISMISSED_EVENTS),
        purchaseCancelled=count_by_name(events, *PURCHASE_CANCELLED_EVENTS),
    )
