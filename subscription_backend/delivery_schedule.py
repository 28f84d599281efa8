from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence, Set

from subscription_backend.civil_date import (
    FRIDAY,
    MONDAY,
    SATURDAY,
    SUNDAY,
    THURSDAY,
    TUESDAY,
    WEDNESDAY,
    add_days,
    to_civil_date,
    weekday,
)

logger = logging.getLogger(__name__)

class DeliveryFrequency(str, Enum):
    THREE_PER_WEEK = "three_per_week"
    DAILY = "daily"


THREE_PER_WEEK = DeliveryFrequency.THREE_PER_WEEK.value
DAILY = DeliveryFrequency.DAILY.value
SUPPORTED_FREQUENCIES = set(DeliveryFrequency)
SUPPORTED_WEEKS = {1, 2, 4}
DELIVERIES_PER_WEEK = 3
DAYS_PER_WEEK = 7

FREQUENCY_ALIASES = {
    "threeperweek": DeliveryFrequency.THREE_PER_WEEK,
    "threeweek": DeliveryFrequency.THREE_PER_WEEK,
    "3perweek": DeliveryFrequency.THREE_PER_WEEK,
    "주3회": DeliveryFrequency.THREE_PER_WEEK,
    "daily": DeliveryFrequency.DAILY,
    "매일배송": DeliveryFrequency.DAILY,
}

MON_WED_FRI = frozenset({MONDAY, WEDNESDAY, FRIDAY})
TUE_THU_SAT = frozenset({TUESDAY, THURSDAY, SATURDAY})


class ScheduleErrorCode(str, Enum):
    INVALID_WEEKS = "invalid_weeks"
    INVALID_FREQUENCY = "invalid_frequency"
    INVALID_START_WEEKDAY = "invalid_start_weekday"


class ScheduleValidationError(ValueError):
    """Raised before any delivery is produced when the request is unusable."""

    def __init__(self, code: ScheduleErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class SubscriptionRequest:
    start_date: date
    weeks: int
    frequency: DeliveryFrequency | str = DeliveryFrequency.THREE_PER_WEEK


@dataclass(frozen=True)
class DeliveryScheduleEntry:
    sequence: int
    delivery_date: date
    production_date: date


def generate_delivery_schedule(
    start_date: date,
    weeks: int,
    frequency: DeliveryFrequency | str,
) -> List[DeliveryScheduleEntry]:
    start = to_civil_date(start_date)
    normalized_weeks = _validate_weeks(weeks)
    normalized_frequency = normalize_frequency(frequency)

    if normalized_frequency is DeliveryFrequency.THREE_PER_WEEK:
        allowed_days = _allowed_weekdays(start)
        delivery_dates = _scan_allowed_days(
            start, allowed_days, normalized_weeks * DELIVERIES_PER_WEEK
        )
    else:
        delivery_dates = _daily_dates(start, normalized_weeks * DAYS_PER_WEEK)

    entries = [
        DeliveryScheduleEntry(
            sequence=index,
            delivery_date=delivery_date,
            production_date=add_days(delivery_date, -1),
        )
        for index, delivery_date in enumerate(delivery_dates, start=1)
    ]
    logger.debug(
        "Generated %d %s deliveries from %s over %d week(s).",
        len(entries),
        normalized_frequency.value,
        start.isoformat(),
        normalized_weeks,
    )
    return entries


def generate_subscription_schedule(
    request: SubscriptionRequest,
) -> List[DeliveryScheduleEntry]:
    return generate_delivery_schedule(request.start_date, request.weeks, request.frequency)


def last_delivery_date(entries: Sequence[DeliveryScheduleEntry]) -> Optional[date]:
    if not entries:
        return None
    return entries[-1].delivery_date


def normalize_frequency(frequency: DeliveryFrequency | str) -> DeliveryFrequency:
    if not isinstance(frequency, str):
        raise ScheduleValidationError(
            ScheduleErrorCode.INVALID_FREQUENCY,
            "Delivery frequency must be a string.",
        )
    normalized = "".join(ch for ch in frequency.strip().lower() if ch.isalnum())
    resolved = FREQUENCY_ALIASES.get(normalized)
    if resolved not in SUPPORTED_FREQUENCIES:
        raise ScheduleValidationError(
            ScheduleErrorCode.INVALID_FREQUENCY,
            "Only three_per_week or daily deliveries are supported.",
        )
    return resolved


def _validate_weeks(weeks: int) -> int:
    if isinstance(weeks, bool) or not isinstance(weeks, int) or weeks not in SUPPORTED_WEEKS:
        raise ScheduleValidationError(
            ScheduleErrorCode.INVALID_WEEKS,
            "Subscription length must be 1, 2, or 4 weeks.",
        )
    return weeks


def _allowed_weekdays(start_date: date) -> frozenset[int]:
    first_weekday = weekday(start_date)
    if first_weekday == SUNDAY:
        raise ScheduleValidationError(
            ScheduleErrorCode.INVALID_START_WEEKDAY,
            "Three-per-week deliveries cannot start on a Sunday.",
        )
    if first_weekday in MON_WED_FRI:
        return MON_WED_FRI
    return TUE_THU_SAT


def _scan_allowed_days(
    start_date: date, allowed_days: frozenset[int], target_count: int
) -> List[date]:
    emitted: List[date] = []
    seen: Set[date] = set()
    current_date = start_date
    while len(emitted) < target_count:
        if weekday(current_date) in allowed_days and current_date not in seen:
            seen.add(current_date)
            emitted.append(current_date)
        current_date = add_days(current_date, 1)
    return emitted


def _daily_dates(start_date: date, total_days: int) -> List[date]:
    candidates = (add_days(start_date, offset) for offset in range(total_days))
    return [candidate for candidate in candidates if weekday(candidate) != SUNDAY]
