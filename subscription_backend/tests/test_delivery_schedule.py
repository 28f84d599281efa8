import unittest
from datetime import date, datetime, timedelta

from subscription_backend.delivery_schedule import (
    DAILY,
    THREE_PER_WEEK,
    DeliveryFrequency,
    DeliveryScheduleEntry,
    ScheduleErrorCode,
    ScheduleValidationError,
    SubscriptionRequest,
    generate_delivery_schedule,
    generate_subscription_schedule,
    last_delivery_date,
    normalize_frequency,
)


def _delivery_dates(entries):
    return [entry.delivery_date for entry in entries]


class ThreePerWeekScheduleTests(unittest.TestCase):
    def test_monday_start_uses_monday_wednesday_friday(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 1), 1, THREE_PER_WEEK)

        self.assertEqual(
            entries,
            [
                DeliveryScheduleEntry(
                    sequence=1,
                    delivery_date=date(2025, 12, 1),
                    production_date=date(2025, 11, 30),
                ),
                DeliveryScheduleEntry(
                    sequence=2,
                    delivery_date=date(2025, 12, 3),
                    production_date=date(2025, 12, 2),
                ),
                DeliveryScheduleEntry(
                    sequence=3,
                    delivery_date=date(2025, 12, 5),
                    production_date=date(2025, 12, 4),
                ),
            ],
        )

    def test_tuesday_start_over_two_weeks(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 2), 2, THREE_PER_WEEK)

        self.assertEqual([entry.sequence for entry in entries], [1, 2, 3, 4, 5, 6])
        self.assertEqual(
            _delivery_dates(entries),
            [
                date(2025, 12, 2),
                date(2025, 12, 4),
                date(2025, 12, 6),
                date(2025, 12, 9),
                date(2025, 12, 11),
                date(2025, 12, 13),
            ],
        )

    def test_friday_start_continues_into_next_week(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 5), 1, THREE_PER_WEEK)

        self.assertEqual(
            _delivery_dates(entries),
            [date(2025, 12, 5), date(2025, 12, 8), date(2025, 12, 10)],
        )

    def test_saturday_start_uses_tuesday_thursday_saturday(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 6), 1, THREE_PER_WEEK)

        self.assertEqual(
            _delivery_dates(entries),
            [date(2025, 12, 6), date(2025, 12, 9), date(2025, 12, 11)],
        )

    def test_schedule_crosses_year_boundary(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 25), 2, THREE_PER_WEEK)

        self.assertEqual(
            _delivery_dates(entries),
            [
                date(2025, 12, 25),
                date(2025, 12, 27),
                date(2025, 12, 30),
                date(2026, 1, 1),
                date(2026, 1, 3),
                date(2026, 1, 6),
            ],
        )
        self.assertEqual(entries[3].production_date, date(2025, 12, 31))

    def test_four_weeks_yields_twelve_deliveries(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 1), 4, THREE_PER_WEEK)

        self.assertEqual(len(entries), 12)
        self.assertEqual(last_delivery_date(entries), date(2025, 12, 26))

    def test_sunday_start_is_rejected(self) -> None:
        with self.assertRaises(ScheduleValidationError) as ctx:
            generate_delivery_schedule(date(2025, 12, 7), 1, THREE_PER_WEEK)

        self.assertEqual(ctx.exception.code, ScheduleErrorCode.INVALID_START_WEEKDAY)

    def test_accepts_frequency_aliases_and_datetimes(self) -> None:
        expected = generate_delivery_schedule(date(2025, 12, 1), 1, THREE_PER_WEEK)

        self.assertEqual(
            generate_delivery_schedule(datetime(2025, 12, 1, 18, 30), 1, "ThreeWeek"),
            expected,
        )
        self.assertEqual(generate_delivery_schedule(date(2025, 12, 1), 1, "주3회"), expected)


class FrequencyTests(unittest.TestCase):
    def test_aliases_resolve_to_frequency_members(self) -> None:
        self.assertIs(normalize_frequency("three_per_week"), DeliveryFrequency.THREE_PER_WEEK)
        self.assertIs(normalize_frequency("주3회"), DeliveryFrequency.THREE_PER_WEEK)
        self.assertIs(normalize_frequency(" Daily "), DeliveryFrequency.DAILY)
        self.assertIs(normalize_frequency("매일배송"), DeliveryFrequency.DAILY)

    def test_accepts_frequency_members(self) -> None:
        self.assertEqual(
            generate_delivery_schedule(date(2025, 12, 1), 1, DeliveryFrequency.DAILY),
            generate_delivery_schedule(date(2025, 12, 1), 1, DAILY),
        )
        self.assertEqual(SubscriptionRequest(date(2025, 12, 1), 1).frequency, THREE_PER_WEEK)


class DailyScheduleTests(unittest.TestCase):
    def test_monday_start_skips_sunday(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 1), 1, DAILY)

        self.assertEqual(
            _delivery_dates(entries),
            [date(2025, 12, day) for day in range(1, 7)],
        )
        self.assertEqual([entry.sequence for entry in entries], [1, 2, 3, 4, 5, 6])

    def test_midweek_start_keeps_sequence_contiguous_across_sunday(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 3), 1, "매일배송")

        self.assertEqual(
            _delivery_dates(entries),
            [
                date(2025, 12, 3),
                date(2025, 12, 4),
                date(2025, 12, 5),
                date(2025, 12, 6),
                date(2025, 12, 8),
                date(2025, 12, 9),
            ],
        )
        self.assertEqual(entries[4].sequence, 5)

    def test_four_weeks_skips_every_sunday(self) -> None:
        entries = generate_delivery_schedule(date(2025, 12, 1), 4, DAILY)

        self.assertEqual(len(entries), 24)
        self.assertTrue(all(entry.delivery_date.isoweekday() != 7 for entry in entries))


class ScheduleValidationTests(unittest.TestCase):
    def test_rejects_unsupported_weeks(self) -> None:
        for weeks in (0, 3, 5, True):
            with self.subTest(weeks=weeks):
                with self.assertRaises(ScheduleValidationError) as ctx:
                    generate_delivery_schedule(date(2025, 12, 1), weeks, THREE_PER_WEEK)
                self.assertEqual(ctx.exception.code, ScheduleErrorCode.INVALID_WEEKS)

    def test_weeks_checked_before_start_weekday(self) -> None:
        with self.assertRaises(ScheduleValidationError) as ctx:
            generate_delivery_schedule(date(2025, 12, 7), 3, THREE_PER_WEEK)

        self.assertEqual(ctx.exception.code, ScheduleErrorCode.INVALID_WEEKS)

    def test_rejects_unknown_frequency(self) -> None:
        with self.assertRaises(ScheduleValidationError) as ctx:
            generate_delivery_schedule(date(2025, 12, 1), 1, "weekly")

        self.assertEqual(ctx.exception.code, ScheduleErrorCode.INVALID_FREQUENCY)

    def test_validation_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            generate_delivery_schedule(date(2025, 12, 1), 2, "monthly")


class ScheduleInvariantTests(unittest.TestCase):
    def test_entries_are_ordered_and_production_precedes_delivery(self) -> None:
        start = date(2025, 12, 1)
        for offset in range(14):
            start_date = start + timedelta(days=offset)
            for frequency in (THREE_PER_WEEK, DAILY):
                if frequency == THREE_PER_WEEK and start_date.isoweekday() == 7:
                    continue
                for weeks in (1, 2, 4):
                    with self.subTest(start=start_date, frequency=frequency, weeks=weeks):
                        entries = generate_delivery_schedule(start_date, weeks, frequency)
                        self.assertEqual(
                            [entry.sequence for entry in entries],
                            list(range(1, len(entries) + 1)),
                        )
                        dates = _delivery_dates(entries)
                        self.assertEqual(dates, sorted(set(dates)))
                        for entry in entries:
                            self.assertEqual(
                                entry.production_date,
                                entry.delivery_date - timedelta(days=1),
                            )

    def test_identical_requests_yield_identical_schedules(self) -> None:
        request = SubscriptionRequest(start_date=date(2025, 12, 4), weeks=4)

        self.assertEqual(
            generate_subscription_schedule(request),
            generate_subscription_schedule(request),
        )

    def test_last_delivery_date_of_empty_schedule(self) -> None:
        self.assertIsNone(last_delivery_date([]))


if __name__ == "__main__":
    unittest.main()
