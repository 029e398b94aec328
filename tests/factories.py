"""
Shared fixtures for the booking tests: throwaway SQLite databases and
small builders for users, businesses, services and rules.
"""
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from booking.models import (
    Appointment,
    AppointmentStatus,
    AvailabilityException,
    AvailabilityRule,
    Base,
    Business,
    Service,
    StaffMembership,
    User,
    UserRole,
)

TOKYO = ZoneInfo("Asia/Tokyo")

# 2030-01-07 is a Monday; the clock sits on the Sunday before, Tokyo time
MONDAY = "2030-01-07"
SUNDAY_NOON_TOKYO = datetime(2030, 1, 6, 12, 0, tzinfo=TOKYO)
MONDAY_WEEKDAY = 1


def memory_session_factory():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine, autocommit=False, autoflush=False)


def file_session_factory(path):
    """File-backed SQLite so concurrent sessions really contend for the writer lock."""
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_user(db, email, role=UserRole.CUSTOMER, name=None, is_active=True):
    user = User(email=email, name=name or email.split("@")[0], role=role, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_business(db, owner, name="Sakura Hair", timezone_name="Asia/Tokyo"):
    business = Business(
        owner_id=owner.id,
        name=name,
        category="salon",
        timezone=timezone_name,
        is_active=True,
    )
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


def make_service(db, business, duration=60, name="Haircut", is_active=True):
    service = Service(
        business_id=business.id,
        name=name,
        duration=duration,
        price=Decimal("4500"),
        is_active=is_active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_rule(db, business, day_of_week, start_time, end_time):
    rule = AvailabilityRule(
        business_id=business.id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def make_exception(db, business, day_start_utc, is_closed=True, start_time=None, end_time=None, created_at=None):
    exception = AvailabilityException(
        business_id=business.id,
        date=day_start_utc,
        is_closed=is_closed,
        start_time=start_time,
        end_time=end_time,
    )
    if created_at is not None:
        exception.created_at = created_at
    db.add(exception)
    db.commit()
    db.refresh(exception)
    return exception


def make_staff(db, business, email):
    staff = make_user(db, email, role=UserRole.STAFF)
    db.add(StaffMembership(business_id=business.id, user_id=staff.id, is_active=True))
    db.commit()
    return staff


def make_appointment(db, business, service, customer, start, end, status=AppointmentStatus.BOOKED, staff=None):
    """Insert an appointment directly, bypassing the booking checks."""
    appointment = Appointment(
        business_id=business.id,
        service_id=service.id,
        customer_id=customer.id,
        staff_id=staff.id if staff else None,
        staff_key=str(staff.id) if staff else "",
        start_at=start.astimezone(timezone.utc),
        end_at=end.astimezone(timezone.utc),
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def tokyo(hour, minute=0, day=7):
    """An instant on 2030-01-<day> in Tokyo wall-clock time."""
    return datetime(2030, 1, day, hour, minute, tzinfo=TOKYO)


class SalonFixture:
    """Owner, customer and a Tokyo salon open Monday 09:00-18:00 with a 60 minute service."""

    def __init__(self, db):
        self.owner = make_user(db, "owner@example.com", role=UserRole.BUSINESS_OWNER)
        self.customer = make_user(db, "alice@example.com")
        self.other_customer = make_user(db, "bob@example.com")
        self.business = make_business(db, self.owner)
        self.service = make_service(db, self.business, duration=60)
        self.rule = make_rule(db, self.business, MONDAY_WEEKDAY, "09:00", "18:00")
