from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List

from subscription_backend.civil_date import add_days, to_civil_date

PAYMENT_ATTEMPT_OFFSETS = (7, 6, 5, 4)


@dataclass(frozen=True)
class PaymentAttempt:
    days_before: int
    attempt_date: date


def generate_payment_attempts(last_delivery_date: date) -> List[PaymentAttempt]:
    """Billing retry dates counted back from the last delivery (D-7 through D-4)."""
    anchor = to_civil_date(last_delivery_date)
    return [
        PaymentAttempt(days_before=days_before, attempt_date=add_days(anchor, -days_before))
        for days_before in PAYMENT_ATTEMPT_OFFSETS
    ]
