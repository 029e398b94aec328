"""
Tests for availability/slot_generator.py

Slot walking, past filtering, occupied ranges and staff scoping.
"""
import unittest
import uuid

from booking.core.errors import NotFoundError, ValidationError
from booking.models import AppointmentStatus, UserRole
from booking.services.availability.slot_generator import SlotGenerator, validate_step_minutes
from booking.services.scheduling.clock import fixed_clock
from booking.services.scheduling.time_utils import day_bounds, parse_calendar_date

from factories import (
    MONDAY,
    MONDAY_WEEKDAY,
    SUNDAY_NOON_TOKYO,
    TOKYO,
    SalonFixture,
    make_appointment,
    make_business,
    make_exception,
    make_rule,
    make_service,
    make_staff,
    make_user,
    memory_session_factory,
    tokyo,
)


def starts(result):
    return [slot["start_at"][11:16] for slot in result["slots"]]


class TestSlotGenerator(unittest.TestCase):

    def setUp(self):
        self.engine, Session = memory_session_factory()
        self.db = Session()
        self.salon = SalonFixture(self.db)
        self.generator = SlotGenerator(fixed_clock(SUNDAY_NOON_TOKYO))

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def availability(self, **kwargs):
        params = {
            "business_id": self.salon.business.id,
            "service_id": self.salon.service.id,
            "date": MONDAY,
        }
        params.update(kwargs)
        return self.generator.get_availability(self.db, **params)

    def test_monday_in_tokyo(self):
        result = self.availability()

        self.assertEqual(result["date"], MONDAY)
        self.assertEqual(result["timezone"], "Asia/Tokyo")
        self.assertEqual(result["service_duration_min"], 60)
        self.assertEqual(result["step_minutes"], 15)
        self.assertEqual(len(result["slots"]), 33)
        self.assertEqual(result["slots"][0], {
            "start_at": "2030-01-07T09:00:00+09:00",
            "end_at": "2030-01-07T10:00:00+09:00",
        })
        self.assertEqual(result["slots"][-1]["start_at"], "2030-01-07T17:00:00+09:00")
        self.assertEqual(result["slots"][-1]["end_at"], "2030-01-07T18:00:00+09:00")

    def test_booking_removes_overlapping_starts(self):
        make_appointment(self.db, self.salon.business, self.salon.service, self.salon.customer, tokyo(10), tokyo(11))

        offered = starts(self.availability())

        self.assertEqual(len(offered), 26)
        for blocked in ["09:15", "09:30", "09:45", "10:00", "10:15", "10:30", "10:45"]:
            self.assertNotIn(blocked, offered)
        self.assertIn("09:00", offered)
        self.assertIn("11:00", offered)

    def test_cancelled_booking_frees_slot(self):
        make_appointment(
            self.db, self.salon.business, self.salon.service, self.salon.customer,
            tokyo(10), tokyo(11), status=AppointmentStatus.CANCELLED
        )
        self.assertEqual(len(self.availability()["slots"]), 33)

    def test_confirmed_and_completed_still_occupy(self):
        make_appointment(
            self.db, self.salon.business, self.salon.service, self.salon.customer,
            tokyo(10), tokyo(11), status=AppointmentStatus.CONFIRMED
        )
        make_appointment(
            self.db, self.salon.business, self.salon.service, self.salon.customer,
            tokyo(15), tokyo(16), status=AppointmentStatus.COMPLETED
        )
        offered = starts(self.availability())
        self.assertNotIn("10:00", offered)
        self.assertNotIn("15:00", offered)

    def test_slot_length_equals_duration(self):
        service = make_service(self.db, self.salon.business, duration=45, name="Trim")
        result = self.availability(service_id=service.id, step_minutes=30)
        for slot in result["slots"]:
            start_min = int(slot["start_at"][11:13]) * 60 + int(slot["start_at"][14:16])
            end_min = int(slot["end_at"][11:13]) * 60 + int(slot["end_at"][14:16])
            self.assertEqual(end_min - start_min, 45)
        # 09:00 .. 17:00 every 30 minutes, 17:30 would end after 18:00
        self.assertEqual(starts(result)[-1], "17:00")

    def test_past_slots_are_hidden(self):
        generator = SlotGenerator(fixed_clock(tokyo(10)))
        result = generator.get_availability(self.db, self.salon.business.id, self.salon.service.id, MONDAY)
        self.assertEqual(starts(result)[0], "10:00")

    def test_start_after_grace_window_is_past(self):
        generator = SlotGenerator(fixed_clock(tokyo(10, 1)))
        result = generator.get_availability(self.db, self.salon.business.id, self.salon.service.id, MONDAY)
        self.assertEqual(starts(result)[0], "10:15")

    def test_whole_day_in_past(self):
        generator = SlotGenerator(fixed_clock(tokyo(9, day=8)))
        result = generator.get_availability(self.db, self.salon.business.id, self.salon.service.id, MONDAY)
        self.assertEqual(result["slots"], [])

    def test_duration_longer_than_interval(self):
        service = make_service(self.db, self.salon.business, duration=600, name="Marathon")
        self.assertEqual(self.availability(service_id=service.id)["slots"], [])

    def test_step_longer_than_interval(self):
        owner = make_user(self.db, "solo@example.com", role=UserRole.BUSINESS_OWNER)
        business = make_business(self.db, owner, name="Solo")
        service = make_service(self.db, business, duration=30)
        make_rule(self.db, business, MONDAY_WEEKDAY, "09:00", "09:30")

        result = self.generator.get_availability(self.db, business.id, service.id, MONDAY, step_minutes=60)

        self.assertEqual(starts(result), ["09:00"])

    def test_closed_exception_gives_no_slots(self):
        make_exception(self.db, self.salon.business, day_bounds(parse_calendar_date(MONDAY, TOKYO), TOKYO)[0])
        self.assertEqual(self.availability()["slots"], [])

    def test_open_exception_overrides_hours(self):
        make_exception(
            self.db, self.salon.business, day_bounds(parse_calendar_date(MONDAY, TOKYO), TOKYO)[0],
            is_closed=False, start_time="13:00", end_time="15:00"
        )
        self.assertEqual(starts(self.availability(step_minutes=30)), ["13:00", "13:30", "14:00"])

    def test_overlapping_rules_offer_boundary_twice(self):
        make_rule(self.db, self.salon.business, MONDAY_WEEKDAY, "17:00", "19:00")
        offered = starts(self.availability(step_minutes=60))
        self.assertEqual(offered.count("17:00"), 2)

    def test_staff_scoping(self):
        alice = make_staff(self.db, self.salon.business, "alice.staff@example.com")
        bob = make_staff(self.db, self.salon.business, "bob.staff@example.com")
        make_appointment(
            self.db, self.salon.business, self.salon.service, self.salon.customer,
            tokyo(10), tokyo(11), staff=alice
        )

        self.assertIn("10:00", starts(self.availability(staff_id=str(bob.id))))
        self.assertNotIn("10:00", starts(self.availability(staff_id=str(alice.id))))
        self.assertNotIn("10:00", starts(self.availability()))

    def test_staff_id_spelling_does_not_matter(self):
        alice = make_staff(self.db, self.salon.business, "alice.staff@example.com")
        make_appointment(
            self.db, self.salon.business, self.salon.service, self.salon.customer,
            tokyo(10), tokyo(11), staff=alice
        )

        for spelling in [str(alice.id).upper(), alice.id.hex, f"{{{alice.id}}}"]:
            self.assertNotIn("10:00", starts(self.availability(staff_id=spelling)), spelling)

    def test_malformed_staff_id_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self.availability(staff_id="alice")

    def test_unscoped_booking_blocks_every_staff(self):
        bob = make_staff(self.db, self.salon.business, "bob.staff@example.com")
        make_appointment(self.db, self.salon.business, self.salon.service, self.salon.customer, tokyo(10), tokyo(11))
        self.assertNotIn("10:00", starts(self.availability(staff_id=str(bob.id))))

    def test_date_given_as_instant(self):
        result = self.availability(date="2030-01-06T20:00:00Z")
        self.assertEqual(result["date"], MONDAY)
        self.assertEqual(len(result["slots"]), 33)

    def test_unknown_business(self):
        with self.assertRaises(NotFoundError):
            self.availability(business_id=uuid.uuid4())
        with self.assertRaises(NotFoundError):
            self.availability(business_id="not-a-uuid")

    def test_unknown_or_inactive_service(self):
        with self.assertRaises(NotFoundError):
            self.availability(service_id=uuid.uuid4())
        retired = make_service(self.db, self.salon.business, name="Retired", is_active=False)
        with self.assertRaises(NotFoundError):
            self.availability(service_id=retired.id)

    def test_service_from_other_business(self):
        owner = make_user(self.db, "rival@example.com", role=UserRole.BUSINESS_OWNER)
        rival = make_business(self.db, owner, name="Rival")
        foreign = make_service(self.db, rival)
        with self.assertRaises(ValidationError):
            self.availability(service_id=foreign.id)

    def test_bad_date(self):
        with self.assertRaises(ValidationError):
            self.availability(date="next monday")

    def test_bad_step(self):
        for step in [0, -15, True, "15"]:
            with self.assertRaises(ValidationError):
                self.availability(step_minutes=step)


class TestValidateStepMinutes(unittest.TestCase):

    def test_default(self):
        self.assertEqual(validate_step_minutes(None), 15)

    def test_explicit(self):
        self.assertEqual(validate_step_minutes(5), 5)


if __name__ == "__main__":
    unittest.main()
