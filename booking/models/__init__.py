# booking/models/__init__.py
from .base import Base
from .user import User, UserRole, ActorKind, StaffMembership
from .business import Business
from .service import Service
from .availability import AvailabilityRule, AvailabilityException
from .appointment import Appointment, AppointmentStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "ActorKind",
    "StaffMembership",
    "Business",
    "Service",
    "AvailabilityRule",
    "AvailabilityException",
    "Appointment",
    "AppointmentStatus",
]
