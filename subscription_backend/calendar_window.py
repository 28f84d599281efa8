from __future__ import annotations

from datetime import date
from typing import List, Optional

from subscription_backend.civil_date import add_days, monday_of_week, to_civil_date

DEFAULT_WINDOW_WEEKS = 6
DAYS_PER_WEEK = 7


def build_calendar_window(
    today: date,
    last_delivery_date: Optional[date] = None,
) -> List[date]:
    """Monday-anchored whole weeks covering today and, when given, the last delivery.

    The default span is six weeks. A last delivery past the final day of that
    span stretches the window through the week that contains it.
    """
    first_monday = monday_of_week(today)
    weeks_to_show = DEFAULT_WINDOW_WEEKS

    if last_delivery_date is not None:
        last_delivery = to_civil_date(last_delivery_date)
        last_default_day = add_days(first_monday, DEFAULT_WINDOW_WEEKS * DAYS_PER_WEEK - 1)
        if last_delivery > last_default_day:
            days_between = (monday_of_week(last_delivery) - first_monday).days
            weeks_to_show = _ceil_div(days_between, DAYS_PER_WEEK) + 1

    return [
        add_days(first_monday, offset)
        for offset in range(weeks_to_show * DAYS_PER_WEEK)
    ]


def _ceil_div(numerator: int, denominator: int) -> int:
    return -((-numerator) // denominator)
