"""Rules that turn a schedule snapshot into bookable slots.

Everything in this module is pure. A :class:`ScheduleSnapshot` is loaded
once per request for a date range and :func:`open_slots` is the single
per-day rule applied by both the day view and the month view.

Two checks are composed for every day:

* per-product capacity: live bookings of the product against its
  ``quota_per_day``;
* clinic-wide slot occupancy: a time slot taken by any live appointment,
  whatever its product, is taken for every product on that date.
"""

import calendar
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any


def day_of_week(day: date) -> int:
    """Return the schedule weekday: 0 for Sunday through 6 for Saturday."""
    return day.isoweekday() % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a zero-based month."""
    if not 0 <= month <= 11:
        raise ValueError(f"month must be between 0 and 11, got {month}")
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, 1), date(year, month + 1, last_day)


@dataclass
class ScheduleSnapshot:
    """Everything needed to resolve availability for one product over a range."""

    product: dict[str, Any] | None
    # day_of_week -> active labels, ascending
    weekly_by_day: dict[int, list[str]] = field(default_factory=dict)
    overrides_by_date: dict[date, dict[str, Any]] = field(default_factory=dict)
    # Occupied labels per date across all products
    booked_by_date: dict[date, set[str]] = field(default_factory=dict)
    # Live bookings per date for this product only
    product_counts: dict[date, int] = field(default_factory=dict)

    @property
    def is_bookable(self) -> bool:
        """Whether the product exists and is active."""
        return bool(self.product and self.product["is_active"])


def candidate_slots(snapshot: ScheduleSnapshot, day: date) -> list[str]:
    """Labels the clinic offers on a day before bookings are considered."""
    if not snapshot.is_bookable:
        return []

    override = snapshot.overrides_by_date.get(day)
    if override:
        if override["is_closed"]:
            return []
        # Custom hours replace the template regardless of weekly flags
        if override.get("custom_time_slots"):
            return list(override["custom_time_slots"])

    return list(snapshot.weekly_by_day.get(day_of_week(day), []))


def is_quota_exhausted(snapshot: ScheduleSnapshot, day: date) -> bool:
    """Whether the product's live bookings for the day reached its quota."""
    if not snapshot.is_bookable:
        return True
    return snapshot.product_counts.get(day, 0) >= snapshot.product["quota_per_day"]


def open_slots(snapshot: ScheduleSnapshot, day: date) -> list[str]:
    """Bookable labels for a day, in candidate order."""
    candidates = candidate_slots(snapshot, day)
    if not candidates or is_quota_exhausted(snapshot, day):
        return []

    booked = snapshot.booked_by_date.get(day, set())
    return [label for label in candidates if label not in booked]


def resolve_range(snapshot: ScheduleSnapshot, start: date, end: date) -> dict[date, list[str]]:
    """Apply :func:`open_slots` to every day of the range."""
    return {day: open_slots(snapshot, day) for day in iter_days(start, end)}


def bookable_dates(snapshot: ScheduleSnapshot, start: date, end: date) -> list[date]:
    """Days of the range with at least one open slot, ascending."""
    return [day for day, slots in resolve_range(snapshot, start, end).items() if slots]
