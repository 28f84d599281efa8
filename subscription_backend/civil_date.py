from __future__ import annotations

from datetime import date, datetime, timedelta

SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6


def to_civil_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def add_days(value: date, days: int) -> date:
    return to_civil_date(value) + timedelta(days=days)


def weekday(value: date) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return to_civil_date(value).isoweekday() % 7


def same_day(first: date, second: date) -> bool:
    return to_civil_date(first) == to_civil_date(second)


def monday_of_week(value: date) -> date:
    day_of_week = weekday(value)
    if day_of_week == SUNDAY:
        return add_days(value, -6)
    return add_days(value, MONDAY - day_of_week)
