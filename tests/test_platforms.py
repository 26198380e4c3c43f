import pytest

from dashboard.core.platforms import filter_by_platform, platform_group, platform_of, platform_segment
from helpers import make_event


@pytest.mark.parametrize("properties,expected", [
    ({"mp_lib": "web", "$os": "iOS"}, "web"),
    ({"platform": "web"}, "web"),
    ({"$os": "iPadOS"}, "iPadOS"),
    ({"platform": "iPadOS", "$os": "iOS"}, "iPadOS"),
    ({"$os": "iOS"}, "iOS"),
    ({"$os": "macOS"}, "macOS"),
    ({"platform": "visionOS"}, "visionOS"),
    ({"$os": "Android"}, None),
    ({}, None),
])
def test_platform_of(properties, expected):
    assert platform_of(make_event("Page_Viewed", "u", **properties)) == expected


def events():
    return [
        make_event("A", "u1", **{"$os": "iOS"}),
        make_event("A", "u2", **{"$os": "iPadOS"}),
        make_event("A", "u3", **{"mp_lib": "web"}),
        make_event("A", "u4", **{"$os": "macOS"}),
        make_event("A", "u5"),
    ]


def test_ios_selects_ipados_too():
    assert [e.user_id for e in filter_by_platform(events(), "iOS")] == ["u1", "u2"]


def test_exact_tags_and_unknown_tags():
    assert [e.user_id for e in filter_by_platform(events(), "iPadOS")] == ["u2"]
    assert [e.user_id for e in filter_by_platform(events(), "web")] == ["u3"]
    assert filter_by_platform(events(), "android") == []


def test_all_is_identity_and_filter_is_idempotent():
    batch = events()
    assert filter_by_platform(batch, "all") == batch
    for platform in ("macOS", "web", "iOS"):
        once = filter_by_platform(batch, platform)
        assert filter_by_platform(once, platform) == once


def test_groups_and_segments():
    batch = events()
    assert [platform_group(e) for e in batch] == ["mobile", "mobile", "web", "macOS", None]
    assert [platform_segment(e) for e in batch] == ["iOS", "iOS", "web", "macOS", "Unknown"]
