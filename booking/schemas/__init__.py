# booking/schemas/__init__.py
from .auth import Actor

from .booking import (
    BusinessCreateRequest,
    ServiceCreateRequest,
    AvailabilityRuleCreateRequest,
    AvailabilityExceptionCreateRequest,
    AppointmentCreateRequest,
    AppointmentCancelRequest,
    SlotResponse,
    AvailabilityResponse,
    ServiceResponse,
    BusinessResponse,
    AvailabilityRuleResponse,
    AvailabilityExceptionResponse,
    AppointmentResponse,
)

__all__ = [
    "Actor",
    "BusinessCreateRequest",
    "ServiceCreateRequest",
    "AvailabilityRuleCreateRequest",
    "AvailabilityExceptionCreateRequest",
    "AppointmentCreateRequest",
    "AppointmentCancelRequest",
    "SlotResponse",
    "AvailabilityResponse",
    "ServiceResponse",
    "BusinessResponse",
    "AvailabilityRuleResponse",
    "AvailabilityExceptionResponse",
    "AppointmentResponse",
]
