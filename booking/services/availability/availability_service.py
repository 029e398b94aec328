# ===== booking/services/availability/availability_service.py =====
"""
Availability resolution: the single source of truth for a business's open
intervals on a calendar day. The slot query and the booking path both go
through load_day_context so they can never disagree.
"""
from datetime import date
from typing import List, NamedTuple, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session
from booking.core.errors import NotFoundError, ValidationError
from booking.models.availability import AvailabilityRule, AvailabilityException
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.business import Business
from booking.models.service import Service
from booking.services.scheduling.time_utils import (
    Interval,
    day_bounds,
    get_timezone,
    resolve_day_interval,
    weekday_index,
)
import logging

logger = logging.getLogger(__name__)


class DayContext(NamedTuple):
    """Everything one request needs about one business day, fetched once."""
    business: Business
    day: date
    timezone: ZoneInfo
    intervals: List[Interval]
    appointments: List[Appointment]


def resolve_open_intervals(
        day: date,
        tz: ZoneInfo,
        rules: Sequence[AvailabilityRule],
        exception: Optional[AvailabilityException] = None
) -> List[Interval]:
    """
    Combine the weekday rules with the day's exception.

    A closed exception empties the day no matter how many rules exist; an
    open exception replaces the rule intervals with its own. Rule intervals
    are returned sorted by start, neither merged nor de-duplicated.
    """
    if exception is not None:
        if exception.is_closed:
            return []
        override = resolve_day_interval(day, tz, exception.start_time, exception.end_time)
        if override is None:
            logger.warning(
                f"Ignoring invalid exception {exception.id} "
                f"({exception.start_time}-{exception.end_time}) on {day}"
            )
            return []
        return [override]

    intervals = []
    for rule in rules:
        interval = resolve_day_interval(day, tz, rule.start_time, rule.end_time)
        if interval is None:
            logger.warning(
                f"Discarding invalid availability rule {rule.id} "
                f"({rule.start_time}-{rule.end_time})"
            )
            continue
        intervals.append(interval)

    intervals.sort(key=lambda interval: interval.start)
    return intervals


class AvailabilityService:
    """Reads rules, exceptions and live appointments for a business day"""

    @staticmethod
    def get_business(db: Session, business_id: UUID) -> Business:
        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise NotFoundError("Business not found")
        return business

    @staticmethod
    def get_bookable_service(db: Session, business_id: UUID, service_id: UUID) -> Service:
        """An active service of this business; inactive services count as missing."""
        service = db.query(Service).filter(Service.id == service_id).first()
        if not service or not service.is_active:
            raise NotFoundError("Service not found")
        if str(service.business_id) != str(business_id):
            raise ValidationError("Service does not belong to this business")
        return service

    @staticmethod
    def get_rules_for_weekday(db: Session, business_id: UUID, weekday: int) -> List[AvailabilityRule]:
        return db.query(AvailabilityRule).filter(
            AvailabilityRule.business_id == business_id,
            AvailabilityRule.day_of_week == weekday
        ).order_by(AvailabilityRule.start_time.asc()).all()

    @staticmethod
    def get_exception_for_day(
            db: Session,
            business_id: UUID,
            day: date,
            tz: ZoneInfo
    ) -> Optional[AvailabilityException]:
        """The exception pinned to day; the most recently created one wins."""
        day_start, day_end = day_bounds(day, tz)
        return db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business_id,
            AvailabilityException.date >= day_start,
            AvailabilityException.date < day_end
        ).order_by(
            AvailabilityException.created_at.desc(),
            AvailabilityException.id.desc()
        ).first()

    @staticmethod
    def get_active_appointments(
            db: Session,
            business_id: UUID,
            day: date,
            tz: ZoneInfo
    ) -> List[Appointment]:
        """Non-cancelled appointments touching the local day."""
        day_start, day_end = day_bounds(day, tz)
        return db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.start_at < day_end,
            Appointment.end_at > day_start,
            Appointment.status != AppointmentStatus.CANCELLED
        ).order_by(Appointment.start_at.asc()).all()

    @staticmethod
    def resolve_open_intervals(db: Session, business: Business, day: date) -> List[Interval]:
        tz = get_timezone(business.timezone)
        rules = AvailabilityService.get_rules_for_weekday(db, business.id, weekday_index(day, tz))
        exception = AvailabilityService.get_exception_for_day(db, business.id, day, tz)
        return resolve_open_intervals(day, tz, rules, exception)

    @staticmethod
    def load_day_context(db: Session, business: Business, day: date) -> DayContext:
        tz = get_timezone(business.timezone)
        intervals = AvailabilityService.resolve_open_intervals(db, business, day)
        appointments = AvailabilityService.get_active_appointments(db, business.id, day, tz)

        logger.debug(
            f"Business {business.id} on {day}: {len(intervals)} open intervals, "
            f"{len(appointments)} live appointments"
        )
        return DayContext(
            business=business,
            day=day,
            timezone=tz,
            intervals=intervals,
            appointments=appointments,
        )
