from datetime import date

from dashboard.core.dates import DateRange, enumerate_days, prior_period, resolve_range


def test_resolve_range_token_is_inclusive_of_today():
    date_range = resolve_range("7d", today=date(2025, 1, 15))
    assert date_range.to_dict() == {"from": "2025-01-09", "to": "2025-01-15"}
    assert date_range.days == 7


def test_resolve_range_single_day():
    date_range = resolve_range("1d", today=date(2025, 1, 15))
    assert date_range.from_date == date_range.to_date == "2025-01-15"


def test_unknown_token_falls_back_to_thirty_days():
    date_range = resolve_range("bogus", today=date(2025, 1, 30))
    assert date_range.from_date == "2025-01-01"
    assert date_range.days == 30


def test_explicit_bounds_win_over_token():
    date_range = resolve_range("7d", "2024-12-01", "2024-12-05", today=date(2025, 1, 15))
    assert date_range == DateRange("2024-12-01", "2024-12-05")


def test_one_explicit_bound_is_ignored():
    date_range = resolve_range("7d", from_date="2024-12-01", today=date(2025, 1, 15))
    assert date_range.from_date == "2025-01-09"


def test_enumerate_days_crosses_month_boundary():
    assert enumerate_days(DateRange("2024-01-30", "2024-02-02")) == [
        "2024-01-30", "2024-01-31", "2024-02-01", "2024-02-02",
    ]


def test_enumerate_days_includes_leap_day():
    date_range = DateRange("2024-02-27", "2024-03-01")
    assert enumerate_days(date_range) == ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"]
    assert date_range.days == 4


def test_prior_period_across_leap_day():
    previous = prior_period(DateRange("2024-03-01", "2024-03-02"))
    assert previous.to_dict() == {"from": "2024-02-28", "to": "2024-02-29"}


def test_enumerate_days_empty_when_reversed():
    date_range = DateRange("2025-01-10", "2025-01-01")
    assert enumerate_days(date_range) == []
    assert date_range.days == 0


def test_prior_period_is_adjacent_and_equal_length():
    current = resolve_range("30d", today=date(2025, 1, 30))
    previous = prior_period(current)
    assert previous.to_dict() == {"from": "2024-12-02", "to": "2024-12-31"}
    assert previous.days == current.days


def test_prior_period_for_explicit_bounds_uses_span_length():
    previous = prior_period(DateRange("2025-01-10", "2025-01-12"))
    assert previous.to_dict() == {"from": "2025-01-07", "to": "2025-01-09"}
