"""
Appointment routes
Clients book and cancel; business owners list and cancel their business's bookings.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from booking.config.database import get_db
from booking.api.dependencies import (
    get_appointment_service,
    get_current_actor,
    require_client_actor,
)
from booking.models.user import ActorKind
from booking.schemas.auth import Actor
from booking.schemas.booking import (
    AppointmentCancelRequest,
    AppointmentCreateRequest,
    AppointmentResponse,
)
from booking.services.appointment.appointment_service import AppointmentService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
        request: AppointmentCreateRequest,
        actor: Actor = Depends(require_client_actor),
        db: Session = Depends(get_db),
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """
    Book a slot for the calling customer.

    409 means someone else got the slot first; re-query availability and retry.
    """
    appointment = appointment_service.create_appointment(
        db,
        business_id=request.business_id,
        service_id=request.service_id,
        customer_id=actor.id,
        start_at=request.start_at,
        staff_id=request.staff_id,
        customer_note=request.customer_note,
    )
    return appointment.to_dict()


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
        business_id: Optional[UUID] = Query(None),
        limit: Optional[int] = Query(None),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    if actor.kind == ActorKind.CLIENT:
        appointments = AppointmentService.list_appointments(
            db, business_id=business_id, customer_id=actor.id, limit=limit
        )
    else:
        appointments = AppointmentService.list_appointments(
            db, business_id=business_id, owner_id=actor.id, limit=limit
        )
    return [a.to_dict() for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
        appointment_id: UUID,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    return AppointmentService.get_appointment_for_actor(db, appointment_id, actor).to_dict()


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
        appointment_id: UUID,
        request: Optional[AppointmentCancelRequest] = None,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db),
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    appointment = appointment_service.cancel_appointment(
        db,
        appointment_id,
        actor,
        reason=request.reason if request else None,
    )
    return appointment.to_dict()
