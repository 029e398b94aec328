"""
Business catalogue and availability routes
Owners manage services, weekly rules and date exceptions. Reading the
catalogue and querying open slots needs no token.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from booking.config.database import get_db
from booking.api.dependencies import (
    get_slot_generator,
    require_business_actor,
)
from booking.schemas.auth import Actor
from booking.schemas.booking import (
    AvailabilityExceptionCreateRequest,
    AvailabilityExceptionResponse,
    AvailabilityResponse,
    AvailabilityRuleCreateRequest,
    AvailabilityRuleResponse,
    BusinessCreateRequest,
    BusinessResponse,
    ServiceCreateRequest,
    ServiceResponse,
)
from booking.services.availability.slot_generator import SlotGenerator
from booking.services.business.business_service import BusinessService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["businesses"])


# ============================================================================
# Businesses
# ============================================================================

@router.get("", response_model=List[BusinessResponse])
def list_businesses(
        db: Session = Depends(get_db)
):
    businesses = BusinessService.list_businesses(db)
    return [b.to_dict(include_services=True) for b in businesses]


@router.get("/mine", response_model=List[BusinessResponse])
def list_my_businesses(
        actor: Actor = Depends(require_business_actor),
        db: Session = Depends(get_db)
):
    businesses = BusinessService.list_businesses(db, owner_id=actor.id)
    return [b.to_dict(include_services=True) for b in businesses]


@router.post("", response_model=BusinessResponse, status_code=status.HTTP_201_CREATED)
def create_business(
        request: BusinessCreateRequest,
        actor: Actor = Depends(require_business_actor),
        db: Session = Depends(get_db)
):
    business = BusinessService.create_business(
        db,
        owner_id=actor.id,
        name=request.name,
        category=request.category,
        phone=request.phone,
        address=request.address,
        timezone=request.timezone,
    )
    return business.to_dict(include_services=True)


# ============================================================================
# Services
# ============================================================================

@router.post(
    "/{business_id}/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED
)
def create_service(
        business_id: UUID,
        request: ServiceCreateRequest,
        actor: Actor = Depends(require_business_actor),
        db: Session = Depends(get_db)
):
    service = BusinessService.create_service(
        db,
        business_id,
        name=request.name,
        duration=request.duration,
        price=request.price,
        description=request.description,
        is_active=request.is_active,
        actor_id=actor.id,
    )
    return service.to_dict()


@router.get("/{business_id}/services", response_model=List[ServiceResponse])
def list_services(
        business_id: UUID,
        db: Session = Depends(get_db)
):
    return [s.to_dict() for s in BusinessService.list_services(db, business_id)]


# ============================================================================
# Weekly rules
# ============================================================================

@router.post(
    "/{business_id}/rules",
    response_model=AvailabilityRuleResponse,
    status_code=status.HTTP_201_CREATED
)
def create_rule(
        business_id: UUID,
        request: AvailabilityRuleCreateRequest,
        actor: Actor = Depends(require_business_actor),
        db: Session = Depends(get_db)
):
    rule = BusinessService.add_availability_rule(
        db,
        business_id,
        day_of_week=request.day_of_week,
        start_time=request.start_time,
        end_time=request.end_time,
        actor_id=actor.id,
    )
    return rule.to_dict()


@router.get("/{business_id}/rules", response_model=List[AvailabilityRuleResponse])
def list_rules(
        business_id: UUID,
        db: Session = Depends(get_db)
):
    return [r.to_dict() for r in BusinessService.list_availability_rules(db, business_id)]


# ============================================================================
# Date exceptions
# ============================================================================

@router.post(
    "/{business_id}/exceptions",
    response_model=AvailabilityExceptionResponse,
    status_code=status.HTTP_201_CREATED
)
def create_exception(
        business_id: UUID,
        request: AvailabilityExceptionCreateRequest,
        actor: Actor = Depends(require_business_actor),
        db: Session = Depends(get_db)
):
    """Creates the override for a date, replacing any previous one for that date."""
    exception = BusinessService.add_availability_exception(
        db,
        business_id,
        date=request.date,
        is_closed=request.is_closed,
        start_time=request.start_time,
        end_time=request.end_time,
        reason=request.reason,
        actor_id=actor.id,
    )
    return exception.to_dict()


@router.get("/{business_id}/exceptions", response_model=List[AvailabilityExceptionResponse])
def list_exceptions(
        business_id: UUID,
        db: Session = Depends(get_db)
):
    return [e.to_dict() for e in BusinessService.list_availability_exceptions(db, business_id)]


# ============================================================================
# Availability
# ============================================================================

@router.get("/{business_id}/availability", response_model=AvailabilityResponse)
def get_availability(
        business_id: UUID,
        service_id: str = Query(..., description="Service to book"),
        date: str = Query(..., description="YYYY-MM-DD in the business timezone"),
        step_minutes: Optional[int] = Query(None, description="Slot start granularity"),
        staff_id: Optional[str] = Query(None, description="Staff member the slot is for"),
        db: Session = Depends(get_db),
        slot_generator: SlotGenerator = Depends(get_slot_generator)
):
    """
    Bookable slots for one service on one business day.
    Slot times are ISO-8601 in the business timezone.
    """
    return slot_generator.get_availability(
        db,
        business_id,
        service_id,
        date,
        step_minutes=step_minutes,
        staff_id=staff_id,
    )
