"""User tier classification.

Every distinct user gets exactly one tier per window: the highest tier any of
their events signals. Subscribers also count as authenticated users when
filtering and summarising.
"""
from enum import IntEnum
from typing import Dict, Iterable, List, Set

from dashboard.core.properties import IDENTITY, IS_AUTHENTICATED, PLAN, SUBSCRIPTION_STATUS
from dashboard.models.events import Event
from dashboard.models.metrics import UserBreakdown

SUBSCRIBER_EVENTS = frozenset({
    "Purchase_Completed",
    "Purchase Completed",
    "Subscription_Started",
})

AUTH_EVENTS = frozenset({
    "Signup_Completed",
    "Login_Completed",
    "SignUp",
    "Account Created",
})

ALL_USERS = "all"
VISITORS = "visitors"
AUTHENTICATED = "authenticated"
SUBSCRIBERS = "subscribers"


class UserTier(IntEnum):
    VISITOR = 0
    AUTHENTICATED = 1
    SUBSCRIBER = 2


def _matching_tiers(user_type: str) -> Set[UserTier]:
    if user_type == VISITORS:
        return {UserTier.VISITOR}
    if user_type == AUTHENTICATED:
        return {UserTier.AUTHENTICATED, UserTier.SUBSCRIBER}
    if user_type == SUBSCRIBERS:
        return {UserTier.SUBSCRIBER}
    return set(UserTier)


def event_tier(event: Event) -> UserTier:
    properties = event.properties
    if (
            event.name in SUBSCRIBER_EVENTS
            or PLAN.read(properties) == "Subscribed"
            or SUBSCRIPTION_STATUS.read(properties) == "active"
    ):
        return UserTier.SUBSCRIBER
    if (
            event.name in AUTH_EVENTS
            or IDENTITY.present(properties)
            or IS_AUTHENTICATED.read(properties) is True
    ):
        return UserTier.AUTHENTICATED
    return UserTier.VISITOR


def classify(events: Iterable[Event]) -> Dict[str, UserTier]:
    tiers: Dict[str, UserTier] = {}
    for event in events:
        candidate = event_tier(event)
        current = tiers.get(event.user_id)
        if current is None or candidate > current:
            tiers[event.user_id] = candidate
    return tiers


def filter_by_user_tier(events: List[Event], user_type: str) -> List[Event]:
    if user_type not in (VISITORS, AUTHENTICATED, SUBSCRIBERS):
        return events

    tiers = classify(events)
    allowed = _matching_tiers(user_type)
    return [event for event in events if tiers[event.user_id] in allowed]


def unique_users_by_tier(events: List[Event], user_type: str) -> Set[str]:
    tiers = classify(events)
    allowed = _matching_tiers(user_type)
    return {user_id for user_id, tier in tiers.items() if tier in allowed}


def count_by_tier(events: Iterable[Event]) -> UserBreakdown:
    tiers = classify(events)
    visitors = sum(1 for tier in tiers.values() if tier == UserTier.VISITOR)
    subscribers = sum(1 for tier in tiers.values() if tier == UserTier.SUBSCRIBER)
    return UserBreakdown(
        total=len(tiers),
        visitors=visitors,
        # includes subscribers
        authenticated=len(tiers) - visitors,
        subscribers=subscribers,
    )
