"""
Overlap Detection

Decides whether a candidate range collides with an existing appointment,
considering staff scoping:
- two named, different staff members can serve at the same time
- an unstaffed appointment consumes the business's shared capacity
"""
from datetime import datetime
from typing import Iterable, Optional, Any
from uuid import UUID

from booking.services.scheduling.time_utils import to_utc


def _staff_identity(value: Any) -> Any:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return str(value)


def _same_staff(a: Any, b: Any) -> bool:
    return _staff_identity(a) == _staff_identity(b)


def overlaps(
        candidate_start: datetime,
        candidate_end: datetime,
        existing_start: datetime,
        existing_end: datetime,
        requested_staff_id: Optional[Any] = None,
        existing_staff_id: Optional[Any] = None
) -> bool:
    """
    Half-open overlap test on [start, end) ranges with staff scoping.

    Only when both sides name a staff member, and they differ, is a time
    overlap ignored. Any other combination conflicts on time alone.
    """
    if requested_staff_id and existing_staff_id and not _same_staff(requested_staff_id, existing_staff_id):
        return False

    return to_utc(candidate_start) < to_utc(existing_end) and to_utc(candidate_end) > to_utc(existing_start)


def find_conflict(
        candidate_start: datetime,
        candidate_end: datetime,
        appointments: Iterable[Any],
        staff_id: Optional[Any] = None
) -> Optional[Any]:
    """Return the first appointment the candidate collides with, or None."""
    for appointment in appointments:
        if overlaps(
                candidate_start,
                candidate_end,
                appointment.start_at,
                appointment.end_at,
                staff_id,
                appointment.staff_id,
        ):
            return appointment
    return None
