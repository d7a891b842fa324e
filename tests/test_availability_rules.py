"""Tests for the pure availability rules."""

from datetime import date

import pytest

from app.services.availability_rules import (
    ScheduleSnapshot,
    bookable_dates,
    candidate_slots,
    day_of_week,
    is_quota_exhausted,
    month_bounds,
    open_slots,
    resolve_range,
)

# 2030-01-06 is a Sunday
SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def make_snapshot(**kwargs) -> ScheduleSnapshot:
    product = kwargs.pop("product", {"is_active": True, "quota_per_day": 2})
    weekly = kwargs.pop("weekly_by_day", {1: ["09:00", "10:00", "11:00"], 2: ["09:00"]})
    return ScheduleSnapshot(product=product, weekly_by_day=weekly, **kwargs)


def test_day_of_week_starts_on_sunday():
    """Sunday is 0 and Saturday is 6."""
    assert day_of_week(SUNDAY) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2030, 1, 12)) == 6


def test_month_bounds_zero_based():
    """Month 0 is January, month 1 is February."""
    assert month_bounds(2030, 0) == (date(2030, 1, 1), date(2030, 1, 31))
    assert month_bounds(2028, 1) == (date(2028, 2, 1), date(2028, 2, 29))
    assert month_bounds(2030, 11) == (date(2030, 12, 1), date(2030, 12, 31))


@pytest.mark.parametrize("month", [-1, 12])
def test_month_bounds_rejects_out_of_range(month: int):
    """Only 0 to 11 are valid months."""
    with pytest.raises(ValueError):
        month_bounds(2030, month)


def test_weekly_template_gives_candidates():
    """Without overrides the weekly template is used in order."""
    snapshot = make_snapshot()
    assert candidate_slots(snapshot, MONDAY) == ["09:00", "10:00", "11:00"]
    assert candidate_slots(snapshot, SUNDAY) == []


def test_closed_override_wins_over_custom_slots():
    """A closed day has no candidates even if custom slots are stored."""
    snapshot = make_snapshot(
        overrides_by_date={
            MONDAY: {"is_closed": True, "custom_time_slots": ["09:00"]},
        }
    )
    assert candidate_slots(snapshot, MONDAY) == []
    assert open_slots(snapshot, MONDAY) == []


def test_custom_slots_replace_weekly_in_given_order():
    """Custom labels are returned as stored, ignoring the weekly template."""
    snapshot = make_snapshot(
        overrides_by_date={
            MONDAY: {"is_closed": False, "custom_time_slots": ["15:00", "08:30"]},
        }
    )
    assert candidate_slots(snapshot, MONDAY) == ["15:00", "08:30"]


def test_custom_slots_open_unscheduled_day():
    """An override can open a day with no weekly slots."""
    snapshot = make_snapshot(
        overrides_by_date={SUNDAY: {"is_closed": False, "custom_time_slots": ["10:00"]}}
    )
    assert open_slots(snapshot, SUNDAY) == ["10:00"]


def test_note_only_override_keeps_weekly():
    """An open override without custom slots falls back to the template."""
    snapshot = make_snapshot(
        overrides_by_date={TUESDAY: {"is_closed": False, "custom_time_slots": None}}
    )
    assert open_slots(snapshot, TUESDAY) == ["09:00"]


def test_inactive_product_has_nothing():
    """Inactive or missing products never have candidates."""
    inactive = make_snapshot(product={"is_active": False, "quota_per_day": 5})
    missing = make_snapshot(product=None)

    for snapshot in (inactive, missing):
        assert candidate_slots(snapshot, MONDAY) == []
        assert is_quota_exhausted(snapshot, MONDAY) is True
        assert bookable_dates(snapshot, MONDAY, TUESDAY) == []


def test_occupied_slots_are_removed():
    """A slot booked by any product is not offered."""
    snapshot = make_snapshot(booked_by_date={MONDAY: {"10:00"}})
    assert open_slots(snapshot, MONDAY) == ["09:00", "11:00"]


def test_quota_exhaustion_closes_day():
    """Reaching the product quota empties the day."""
    snapshot = make_snapshot(
        booked_by_date={MONDAY: {"09:00", "10:00"}},
        product_counts={MONDAY: 2},
    )
    assert is_quota_exhausted(snapshot, MONDAY) is True
    assert open_slots(snapshot, MONDAY) == []


def test_zero_quota_is_always_exhausted():
    """A quota of zero means nothing can be booked."""
    snapshot = make_snapshot(product={"is_active": True, "quota_per_day": 0})
    assert open_slots(snapshot, MONDAY) == []


def test_other_product_bookings_do_not_use_quota():
    """Quota counts only this product, occupancy counts everyone."""
    snapshot = make_snapshot(
        booked_by_date={MONDAY: {"09:00", "10:00"}},
        product_counts={},
    )
    assert is_quota_exhausted(snapshot, MONDAY) is False
    assert open_slots(snapshot, MONDAY) == ["11:00"]


def test_month_view_matches_day_view():
    """A date is bookable exactly when its day view is non-empty."""
    snapshot = make_snapshot(
        overrides_by_date={
            date(2030, 1, 14): {"is_closed": True, "custom_time_slots": None},
            date(2030, 1, 13): {"is_closed": False, "custom_time_slots": ["12:00"]},
        },
        booked_by_date={date(2030, 1, 8): {"09:00"}},
        product_counts={date(2030, 1, 8): 1},
    )
    start, end = month_bounds(2030, 0)

    resolved = resolve_range(snapshot, start, end)
    dates = bookable_dates(snapshot, start, end)

    assert dates == [day for day in sorted(resolved) if open_slots(snapshot, day)]
    assert date(2030, 1, 13) in dates
    assert date(2030, 1, 14) not in dates
    # Tuesday's only slot is taken
    assert date(2030, 1, 8) not in dates
    assert date(2030, 1, 7) in dates
