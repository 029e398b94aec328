# booking/services/availability/slot_generator.py
"""
Slot generation

Walks each open interval of a day at step granularity and offers every
service-length window that is not in the past and not taken.
"""
from datetime import timedelta, datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID
from sqlalchemy.orm import Session
from booking.config.settings import get_settings
from booking.core.errors import ValidationError
from booking.services.availability.availability_service import AvailabilityService, DayContext
from booking.services.availability.conflict import find_conflict
from booking.services.scheduling.clock import Clock, system_clock
from booking.services.scheduling.time_utils import Slot, parse_calendar_date, get_timezone
from booking.utils.ids import parse_uuid
import logging

logger = logging.getLogger(__name__)


def past_cutoff(now: datetime) -> datetime:
    """Starts at or before this instant are in the past (grace window against clock skew)."""
    return now - timedelta(minutes=get_settings().PAST_SLOT_GRACE_MINUTES)


def validate_step_minutes(step_minutes: Any) -> int:
    if step_minutes is None:
        return get_settings().DEFAULT_STEP_MINUTES
    if isinstance(step_minutes, bool) or not isinstance(step_minutes, int) or step_minutes <= 0:
        raise ValidationError("step_minutes must be a positive integer")
    return step_minutes


def generate_slots(
        context: DayContext,
        duration_minutes: int,
        step_minutes: int,
        now: datetime,
        staff_id: Optional[Any] = None
) -> List[Slot]:
    """
    Emit candidate slots in interval order.

    Intervals are walked independently, so overlapping split-shift rules can
    offer the same start twice. Order follows the intervals and is not
    re-sorted globally.
    """
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)
    cutoff = past_cutoff(now)

    slots = []
    for interval in context.intervals:
        cursor = interval.start
        while cursor + duration <= interval.end:
            candidate = Slot(cursor, cursor + duration)

            is_past = candidate.start <= cutoff
            if not is_past and find_conflict(candidate.start, candidate.end, context.appointments, staff_id) is None:
                slots.append(candidate)

            cursor += step

    return slots


class SlotGenerator:
    """Answers availability queries for one service on one business day"""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    def get_availability(
            self,
            db: Session,
            business_id: Union[str, UUID],
            service_id: Union[str, UUID],
            date: Union[str, Any],
            step_minutes: Optional[int] = None,
            staff_id: Optional[Union[str, UUID]] = None
    ) -> Dict[str, Any]:
        business = AvailabilityService.get_business(db, parse_uuid(business_id, "Business"))
        tz = get_timezone(business.timezone)

        day = parse_calendar_date(date, tz)
        if day is None:
            raise ValidationError("Invalid date, expected YYYY-MM-DD")

        service = AvailabilityService.get_bookable_service(db, business.id, parse_uuid(service_id, "Service"))
        step = validate_step_minutes(step_minutes)

        context = AvailabilityService.load_day_context(db, business, day)
        staff_pk = parse_uuid(staff_id, "Staff") if staff_id else None
        slots = generate_slots(context, service.duration, step, self.clock(), staff_pk)

        logger.info(
            f"Availability for business {business.id} service {service.id} on {day}: "
            f"{len(slots)} slots"
        )

        return {
            "date": day.isoformat(),
            "timezone": tz.key,
            "service_duration_min": service.duration,
            "step_minutes": step,
            "slots": [
                {
                    "start_at": slot.start.astimezone(tz).isoformat(),
                    "end_at": slot.end.astimezone(tz).isoformat(),
                }
                for slot in slots
            ],
        }
