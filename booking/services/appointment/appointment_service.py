# ============================================================================
# booking/services/appointment/appointment_service.py
# Booking creation, cancellation and listing
# ============================================================================
"""
Appointment scheduling

Bookings are validated and committed in one transaction. Before reading the
day's state the transaction bumps Business.booking_version, which takes the
business row lock on PostgreSQL and the writer lock on SQLite, so two
overlapping requests for the same business are checked one after the other.
A partial unique index on (business, staff scope, start) backs this up at
commit time. Losers of either mechanism get SlotConflictError.
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional, Set, Union
from uuid import UUID
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
import logging

from booking.config.settings import get_settings
from booking.core.errors import (
    AuthorizationError,
    BookingError,
    NotFoundError,
    SlotConflictError,
    ValidationError,
)
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.business import Business
from booking.models.user import ActorKind, StaffMembership, User, UserRole
from booking.schemas.auth import Actor
from booking.services.availability.availability_service import AvailabilityService
from booking.services.availability.conflict import find_conflict
from booking.services.availability.slot_generator import past_cutoff
from booking.services.scheduling.clock import Clock, system_clock
from booking.services.scheduling.time_utils import get_timezone, parse_instant, to_utc
from booking.utils.ids import parse_uuid

logger = logging.getLogger(__name__)

# BOOKED -> CONFIRMED/CANCELLED, CONFIRMED -> CANCELLED/COMPLETED; the rest are terminal
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, Set[AppointmentStatus]] = {
    AppointmentStatus.BOOKED: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED},
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.COMPLETED: set(),
}

# PostgreSQL serialization_failure / deadlock_detected
_CONTENTION_PGCODES = {"40001", "40P01"}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if not can_transition(current, target):
        raise ValidationError(
            f"Appointment cannot move from {current.value} to {target.value}"
        )


def _is_write_contention(exc: DBAPIError) -> bool:
    """True when the store refused a write because a concurrent writer holds the lock."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in _CONTENTION_PGCODES:
        return True
    message = str(orig or exc).lower()
    return "database is locked" in message or "deadlock" in message


class AppointmentService:
    """Handles appointment operations"""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def _get_customer(db: Session, customer_id: UUID) -> User:
        customer = db.query(User).filter(
            User.id == customer_id,
            User.role == UserRole.CUSTOMER,
            User.is_active == True
        ).first()
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    @staticmethod
    def _get_staff(db: Session, business: Business, staff_id: UUID) -> User:
        """The owner or an active member of this business."""
        staff = db.query(User).filter(
            User.id == staff_id,
            User.is_active == True
        ).first()
        if not staff or staff.role == UserRole.CUSTOMER:
            raise NotFoundError("Staff not found")
        if staff.id == business.owner_id:
            return staff

        membership = db.query(StaffMembership).filter(
            StaffMembership.business_id == business.id,
            StaffMembership.user_id == staff.id,
            StaffMembership.is_active == True
        ).first()
        if not membership:
            raise NotFoundError("Staff not found for this business")
        return staff

    @staticmethod
    def _lock_business_calendar(db: Session, business_id: UUID) -> None:
        db.query(Business).filter(Business.id == business_id).update(
            {Business.booking_version: Business.booking_version + 1},
            synchronize_session=False
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_appointment(
            self,
            db: Session,
            business_id: Union[str, UUID],
            service_id: Union[str, UUID],
            customer_id: Union[str, UUID],
            start_at: Any,
            staff_id: Optional[Union[str, UUID]] = None,
            customer_note: Optional[str] = None
    ) -> Appointment:
        """
        Validate a booking request against the business day and commit it as BOOKED.

        Raises NotFoundError, ValidationError or SlotConflictError; nothing is
        written unless every check passes.
        """
        business = AvailabilityService.get_business(db, parse_uuid(business_id, "Business"))
        service = AvailabilityService.get_bookable_service(db, business.id, parse_uuid(service_id, "Service"))
        customer = self._get_customer(db, parse_uuid(customer_id, "Customer"))
        staff = self._get_staff(db, business, parse_uuid(staff_id, "Staff")) if staff_id else None

        tz = get_timezone(business.timezone)
        start = parse_instant(start_at, tz)
        if start is None:
            raise ValidationError("Invalid start time, expected ISO-8601")
        end = start + timedelta(minutes=service.duration)

        if start <= past_cutoff(self.clock()):
            raise ValidationError("Cannot book an appointment in the past")

        business_pk = business.id
        staff_pk = staff.id if staff else None

        try:
            # Everything from here to commit is one transaction
            self._lock_business_calendar(db, business_pk)
            context = AvailabilityService.load_day_context(db, business, start.date())

            fits_availability = any(
                start >= interval.start and end <= interval.end
                for interval in context.intervals
            )
            if not fits_availability:
                raise ValidationError("Requested time is outside the business availability")

            clash = find_conflict(start, end, context.appointments, staff_pk)
            if clash is not None:
                logger.info(
                    f"Booking rejected for business {business_pk}: overlaps appointment {clash.id}"
                )
                raise SlotConflictError("Another appointment already occupies that time")

            appointment = Appointment(
                business_id=business_pk,
                service_id=service.id,
                customer_id=customer.id,
                staff_id=staff_pk,
                staff_key=str(staff_pk) if staff_pk else "",
                start_at=to_utc(start),
                end_at=to_utc(end),
                status=AppointmentStatus.BOOKED,
                customer_note=customer_note,
            )
            db.add(appointment)
            db.commit()
        except BookingError:
            db.rollback()
            raise
        except IntegrityError:
            db.rollback()
            logger.warning(f"Booking for business {business_pk} lost the race at commit")
            raise SlotConflictError()
        except DBAPIError as e:
            db.rollback()
            if _is_write_contention(e):
                logger.warning(f"Booking for business {business_pk} hit write contention: {e.orig}")
                raise SlotConflictError() from e
            raise

        db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id} for business {business_pk} "
            f"at {appointment.start_at} (staff={staff_pk})"
        )
        return appointment

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_appointment(
            self,
            db: Session,
            appointment_id: Union[str, UUID],
            actor: Actor,
            reason: Optional[str] = None
    ) -> Appointment:
        """
        Cancel on behalf of the booking customer or the business owner.
        Cancelling an already cancelled appointment is a no-op success.
        """
        appointment = self.get_appointment(db, appointment_id)
        if appointment.status == AppointmentStatus.CANCELLED:
            return appointment

        if actor.kind == ActorKind.CLIENT:
            if appointment.customer_id != actor.id:
                raise AuthorizationError("Only the customer who booked can cancel this appointment")
        elif actor.kind == ActorKind.BUSINESS:
            business = AvailabilityService.get_business(db, appointment.business_id)
            if business.owner_id != actor.id:
                raise AuthorizationError("Only the business owner can cancel this appointment")
        else:
            raise AuthorizationError("Not allowed to cancel this appointment")

        ensure_transition(appointment.status, AppointmentStatus.CANCELLED)

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_at = to_utc(self.clock())
        appointment.cancellation_reason = reason
        db.commit()
        db.refresh(appointment)

        logger.info(f"Cancelled appointment {appointment.id} by {actor.kind.value} {actor.id}")
        return appointment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def get_appointment(db: Session, appointment_id: Union[str, UUID]) -> Appointment:
        appointment = db.query(Appointment).filter(
            Appointment.id == parse_uuid(appointment_id, "Appointment")
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def get_appointment_for_actor(db: Session, appointment_id: Union[str, UUID], actor: Actor) -> Appointment:
        appointment = AppointmentService.get_appointment(db, appointment_id)
        if actor.kind == ActorKind.CLIENT and appointment.customer_id == actor.id:
            return appointment
        if actor.kind == ActorKind.BUSINESS and appointment.business.owner_id == actor.id:
            return appointment
        raise AuthorizationError("You don't have access to this appointment")

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: Optional[Union[str, UUID]] = None,
            customer_id: Optional[Union[str, UUID]] = None,
            owner_id: Optional[UUID] = None,
            limit: Optional[int] = None
    ) -> List[Appointment]:
        """Live (non-cancelled) appointments ordered by start time."""
        settings = get_settings()
        if limit is None:
            limit = settings.APPOINTMENT_LIST_DEFAULT_LIMIT
        if limit < 1 or limit > settings.APPOINTMENT_LIST_MAX_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {settings.APPOINTMENT_LIST_MAX_LIMIT}"
            )

        query = db.query(Appointment).filter(Appointment.status != AppointmentStatus.CANCELLED)

        if customer_id:
            query = query.filter(Appointment.customer_id == parse_uuid(customer_id, "Customer"))

        if owner_id and not business_id:
            raise AuthorizationError("business_id is required to list appointments as a business")

        if business_id:
            business = AvailabilityService.get_business(db, parse_uuid(business_id, "Business"))
            if owner_id and business.owner_id != owner_id:
                raise AuthorizationError("Only the business owner can list its appointments")
            query = query.filter(Appointment.business_id == business.id)

        return query.order_by(Appointment.start_at.asc()).limit(limit).all()
