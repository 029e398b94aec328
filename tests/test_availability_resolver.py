"""
Tests for availability/availability_service.py

Weekly rules, date exceptions and their precedence.
"""
import unittest
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from booking.services.availability.availability_service import (
    AvailabilityService,
    resolve_open_intervals,
)
from booking.services.scheduling.time_utils import day_bounds

from factories import MONDAY_WEEKDAY, TOKYO, SalonFixture, make_exception, make_rule, memory_session_factory

DAY = date(2030, 1, 7)


def rule(start_time, end_time, rule_id="r"):
    return SimpleNamespace(id=rule_id, start_time=start_time, end_time=end_time)


def exception(is_closed, start_time=None, end_time=None):
    return SimpleNamespace(id="e", is_closed=is_closed, start_time=start_time, end_time=end_time)


def utc(hour, minute=0, day=7):
    return datetime(2030, 1, day, hour, minute, tzinfo=timezone.utc)


class TestResolveOpenIntervals(unittest.TestCase):
    """Pure resolution over in-memory rules"""

    def test_single_rule(self):
        intervals = resolve_open_intervals(DAY, TOKYO, [rule("09:00", "18:00")])
        self.assertEqual(len(intervals), 1)
        self.assertEqual(intervals[0].start, utc(0))
        self.assertEqual(intervals[0].end, utc(9))

    def test_no_rules_means_closed(self):
        self.assertEqual(resolve_open_intervals(DAY, TOKYO, []), [])

    def test_closed_exception_beats_rules(self):
        rules = [rule("09:00", "12:00"), rule("13:00", "18:00")]
        self.assertEqual(resolve_open_intervals(DAY, TOKYO, rules, exception(True)), [])

    def test_open_exception_replaces_rules(self):
        rules = [rule("09:00", "18:00")]
        intervals = resolve_open_intervals(DAY, TOKYO, rules, exception(False, "10:00", "12:00"))
        self.assertEqual(len(intervals), 1)
        self.assertEqual(intervals[0].start, utc(1))
        self.assertEqual(intervals[0].end, utc(3))

    def test_invalid_open_exception_closes_day(self):
        rules = [rule("09:00", "18:00")]
        self.assertEqual(
            resolve_open_intervals(DAY, TOKYO, rules, exception(False, "12:00", "10:00")),
            []
        )
        self.assertEqual(
            resolve_open_intervals(DAY, TOKYO, rules, exception(False, None, None)),
            []
        )

    def test_invalid_rules_are_discarded(self):
        rules = [rule("18:00", "09:00", "bad"), rule("xx:yy", "10:00", "worse"), rule("13:00", "15:00")]
        intervals = resolve_open_intervals(DAY, TOKYO, rules)
        self.assertEqual(len(intervals), 1)
        self.assertEqual(intervals[0].start, utc(4))

    def test_split_shift_sorted_by_start(self):
        rules = [rule("14:00", "18:00"), rule("09:00", "12:00")]
        intervals = resolve_open_intervals(DAY, TOKYO, rules)
        self.assertEqual([i.start for i in intervals], [utc(0), utc(5)])

    def test_overlapping_rules_are_not_merged(self):
        rules = [rule("09:00", "13:00"), rule("12:00", "18:00")]
        intervals = resolve_open_intervals(DAY, TOKYO, rules)
        self.assertEqual(len(intervals), 2)

    def test_deterministic(self):
        rules = [rule("14:00", "18:00"), rule("09:00", "12:00")]
        first = resolve_open_intervals(DAY, TOKYO, rules)
        second = resolve_open_intervals(DAY, TOKYO, rules)
        self.assertEqual(first, second)


class TestAvailabilityServiceStore(unittest.TestCase):
    """Resolution against rules and exceptions read from the database"""

    def setUp(self):
        self.engine, Session = memory_session_factory()
        self.db = Session()
        self.salon = SalonFixture(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_weekday_rules_only_apply_to_their_day(self):
        business = self.salon.business
        monday = AvailabilityService.resolve_open_intervals(self.db, business, DAY)
        tuesday = AvailabilityService.resolve_open_intervals(self.db, business, DAY + timedelta(days=1))
        self.assertEqual(len(monday), 1)
        self.assertEqual(tuesday, [])

    def test_closed_exception_from_store(self):
        business = self.salon.business
        make_rule(self.db, business, MONDAY_WEEKDAY, "19:00", "21:00")
        make_exception(self.db, business, day_bounds(DAY, TOKYO)[0], is_closed=True)
        self.assertEqual(AvailabilityService.resolve_open_intervals(self.db, business, DAY), [])

    def test_exception_on_other_day_is_ignored(self):
        business = self.salon.business
        make_exception(self.db, business, day_bounds(DAY + timedelta(days=7), TOKYO)[0], is_closed=True)
        self.assertEqual(len(AvailabilityService.resolve_open_intervals(self.db, business, DAY)), 1)

    def test_most_recent_exception_wins(self):
        business = self.salon.business
        day_start = day_bounds(DAY, TOKYO)[0]
        make_exception(
            self.db, business, day_start,
            is_closed=True,
            created_at=datetime(2029, 12, 1, tzinfo=timezone.utc),
        )
        # A second row pinned inside the same local day, written later
        make_exception(
            self.db, business, day_start + timedelta(hours=6),
            is_closed=False, start_time="10:00", end_time="11:00",
            created_at=datetime(2029, 12, 2, tzinfo=timezone.utc),
        )
        intervals = AvailabilityService.resolve_open_intervals(self.db, business, DAY)
        self.assertEqual(len(intervals), 1)
        self.assertEqual(intervals[0].start, utc(1))
        self.assertEqual(intervals[0].end, utc(2))


if __name__ == "__main__":
    unittest.main()
