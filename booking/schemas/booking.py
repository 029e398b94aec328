"""
Pydantic schemas for booking requests and responses
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class BusinessCreateRequest(BaseModel):
    """Schema for creating a business. The caller becomes its owner."""
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    timezone: Optional[str] = Field(None, description="IANA timezone, e.g. Asia/Tokyo")


class ServiceCreateRequest(BaseModel):
    """Schema for adding a service to a business"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    duration: int = Field(..., gt=0, description="Duration in minutes")
    price: float = Field(0, ge=0)
    is_active: bool = True


class AvailabilityRuleCreateRequest(BaseModel):
    """Weekly opening hours. day_of_week: 0 = Sunday ... 6 = Saturday"""
    day_of_week: int
    start_time: str = Field(..., min_length=1, description="HH:MM")
    end_time: str = Field(..., min_length=1, description="HH:MM")


class AvailabilityExceptionCreateRequest(BaseModel):
    """Date override. Open overrides need both start_time and end_time."""
    date: str = Field(..., min_length=1, description="YYYY-MM-DD")
    is_closed: bool = True
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=200)


class AppointmentCreateRequest(BaseModel):
    """Booking request from a customer"""
    business_id: UUID
    service_id: UUID
    start_at: str = Field(..., min_length=1, description="ISO-8601 start time")
    staff_id: Optional[UUID] = None
    customer_note: Optional[str] = Field(None, max_length=1000)

    @field_validator('customer_note')
    @classmethod
    def blank_note_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class AppointmentCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# ============================================================================
# Response Schemas (for outgoing data)
# ============================================================================

class SlotResponse(BaseModel):
    start_at: str
    end_at: str


class AvailabilityResponse(BaseModel):
    """Bookable slots for one service on one business day"""
    date: str
    timezone: str
    service_duration_min: int
    step_minutes: int
    slots: List[SlotResponse]


class ServiceResponse(BaseModel):
    id: str
    business_id: str
    name: str
    description: Optional[str]
    price: float
    duration: int
    formatted_duration: str
    is_active: bool
    created_at: Optional[str]


class BusinessResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    category: str
    phone: Optional[str]
    address: Optional[str]
    timezone: str
    is_active: Optional[bool]
    created_at: Optional[str]
    updated_at: Optional[str]
    services: Optional[List[ServiceResponse]] = None


class AvailabilityRuleResponse(BaseModel):
    id: str
    business_id: str
    day_of_week: int
    start_time: str
    end_time: str


class AvailabilityExceptionResponse(BaseModel):
    id: str
    business_id: str
    date: Optional[str]
    is_closed: bool
    start_time: Optional[str]
    end_time: Optional[str]
    reason: Optional[str]


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    service_id: str
    customer_id: str
    staff_id: Optional[str]
    start_at: str
    end_at: str
    status: str
    customer_note: Optional[str]
    business_note: Optional[str]
    service_name: Optional[str]
    business_name: Optional[str]
    cancelled_at: Optional[str]
    cancellation_reason: Optional[str]
