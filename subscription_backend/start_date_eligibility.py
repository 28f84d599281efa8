from __future__ import annotations

from datetime import date
from typing import List

from subscription_backend.civil_date import SUNDAY, add_days, to_civil_date, weekday

MIN_LEAD_DAYS = 2
MAX_LEAD_DAYS = 21


def is_start_date_selectable(candidate_date: date, today: date) -> bool:
    candidate = to_civil_date(candidate_date)
    if weekday(candidate) == SUNDAY:
        return False
    earliest, latest = selection_window(today)
    return earliest <= candidate <= latest


def selection_window(today: date) -> tuple[date, date]:
    return add_days(today, MIN_LEAD_DAYS), add_days(today, MAX_LEAD_DAYS)


def selectable_start_dates(today: date) -> List[date]:
    earliest, _ = selection_window(today)
    candidates = (
        add_days(earliest, offset)
        for offset in range(MAX_LEAD_DAYS - MIN_LEAD_DAYS + 1)
    )
    return [candidate for candidate in candidates if is_start_date_selectable(candidate, today)]
