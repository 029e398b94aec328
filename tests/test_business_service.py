"""
Tests for business/business_service.py
"""
import unittest
import uuid
from unittest import mock
from datetime import datetime, timezone

from booking.core.errors import AuthorizationError, NotFoundError, ValidationError
from booking.models import AvailabilityException, UserRole
from booking.services.business.business_service import BusinessService

from factories import MONDAY, SalonFixture, make_user, memory_session_factory


class TestBusinessService(unittest.TestCase):

    def setUp(self):
        self.engine, Session = memory_session_factory()
        self.db = Session()
        self.salon = SalonFixture(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_create_business_defaults(self):
        business = BusinessService.create_business(self.db, self.salon.owner.id, "Kissaten", "cafe")
        self.assertEqual(business.timezone, "Asia/Tokyo")
        self.assertEqual(business.booking_version, 0)
        self.assertTrue(business.is_active)

    def test_only_owners_create_businesses(self):
        with self.assertRaises(AuthorizationError):
            BusinessService.create_business(self.db, self.salon.customer.id, "Nope", "cafe")
        with self.assertRaises(NotFoundError):
            BusinessService.create_business(self.db, uuid.uuid4(), "Ghost", "cafe")

    def test_list_businesses_by_owner(self):
        other = make_user(self.db, "other.owner@example.com", role=UserRole.BUSINESS_OWNER)
        BusinessService.create_business(self.db, other.id, "Other", "cafe")
        self.assertEqual(len(BusinessService.list_businesses(self.db)), 2)
        mine = BusinessService.list_businesses(self.db, owner_id=self.salon.owner.id)
        self.assertEqual([b.name for b in mine], ["Sakura Hair"])

    def test_inactive_services_are_hidden(self):
        BusinessService.create_service(self.db, self.salon.business.id, "Old", 30, is_active=False)
        names = [s.name for s in BusinessService.list_services(self.db, self.salon.business.id)]
        self.assertEqual(names, ["Haircut"])

    def test_service_validation(self):
        with self.assertRaises(ValidationError):
            BusinessService.create_service(self.db, self.salon.business.id, "Zero", 0)
        with self.assertRaises(ValidationError):
            BusinessService.create_service(self.db, self.salon.business.id, "Cheap", 30, price=-1)
        with self.assertRaises(NotFoundError):
            BusinessService.create_service(self.db, uuid.uuid4(), "Lost", 30)

    def test_rule_validation(self):
        business_id = self.salon.business.id
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_rule(self.db, business_id, 7, "09:00", "10:00")
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_rule(self.db, business_id, True, "09:00", "10:00")
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_rule(self.db, business_id, 2, "10:00", "10:00")
        with self.assertRaises(AuthorizationError):
            BusinessService.add_availability_rule(
                self.db, business_id, 2, "09:00", "10:00", actor_id=self.salon.customer.id
            )

    def test_exception_is_pinned_to_local_midnight(self):
        exception = BusinessService.add_availability_exception(self.db, self.salon.business.id, MONDAY)
        self.assertEqual(
            exception.to_dict()["date"],
            datetime(2030, 1, 6, 15, 0, tzinfo=timezone.utc).isoformat()
        )
        self.assertTrue(exception.is_closed)

    def test_exception_replaces_previous_for_same_day(self):
        business_id = self.salon.business.id
        BusinessService.add_availability_exception(self.db, business_id, MONDAY, reason="Holiday")
        BusinessService.add_availability_exception(
            self.db, business_id, "2030-01-07T12:00:00+09:00",
            is_closed=False, start_time="10:00", end_time="12:00"
        )
        rows = self.db.query(AvailabilityException).all()
        self.assertEqual(len(rows), 1)
        self.assertFalse(rows[0].is_closed)
        self.assertEqual(rows[0].start_time, "10:00")
        self.assertIsNone(rows[0].reason)

    def test_exception_created_concurrently_is_replaced(self):
        business_id = self.salon.business.id
        stored = BusinessService.add_availability_exception(self.db, business_id, MONDAY, reason="Holiday")

        # the first lookup misses, as if the other writer had not committed yet
        lookup = BusinessService._find_exception
        calls = []

        def late_lookup(*args):
            calls.append(args)
            return None if len(calls) == 1 else lookup(*args)

        with mock.patch.object(BusinessService, "_find_exception", side_effect=late_lookup):
            exception = BusinessService.add_availability_exception(
                self.db, business_id, MONDAY, is_closed=False, start_time="10:00", end_time="12:00"
            )

        self.assertEqual(len(calls), 2)
        self.assertEqual(exception.id, stored.id)
        rows = self.db.query(AvailabilityException).all()
        self.assertEqual(len(rows), 1)
        self.assertFalse(rows[0].is_closed)
        self.assertEqual(rows[0].start_time, "10:00")
        self.assertIsNone(rows[0].reason)

    def test_closed_exception_drops_times(self):
        exception = BusinessService.add_availability_exception(
            self.db, self.salon.business.id, MONDAY, is_closed=True, start_time="10:00", end_time="12:00"
        )
        self.assertIsNone(exception.start_time)
        self.assertIsNone(exception.end_time)

    def test_exception_validation(self):
        business_id = self.salon.business.id
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_exception(self.db, business_id, "not a date")
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_exception(self.db, business_id, MONDAY, is_closed=False)
        with self.assertRaises(ValidationError):
            BusinessService.add_availability_exception(
                self.db, business_id, MONDAY, is_closed=False, start_time="12:00", end_time="10:00"
            )


if __name__ == "__main__":
    unittest.main()
