# ============================================================================
# booking_api/api/v1/appointments.py
# Client booking endpoints - thin HTTP layer
# ============================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from booking_api.api.dependencies import Principal, require_client
from booking_api.config.database import get_db
from booking_api.schemas.appointment import (
    AppointmentCancelRequest,
    AppointmentCreateRequest,
    AppointmentResponse,
)
from booking_api.services.appointment.appointment_query_service import AppointmentQueryService
from booking_api.services.appointment.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
        request: AppointmentCreateRequest,
        client: Principal = Depends(require_client),
        db: Session = Depends(get_db)
):
    """
    Book a slot returned by the availability query.
    Fails with 409 slot_no_longer_available if someone else got there first.
    """
    appointment = AppointmentService.create_appointment(
        db,
        entity_id=request.entity_id,
        service_id=request.service_id,
        client_id=client.user_id,
        requested_start=request.start_time,
        notes=request.notes,
        client_name=request.client_name
    )
    return appointment.to_dict()


@router.get("/mine")
def list_my_appointments(
        filter: str = Query("upcoming", description="upcoming or past"),
        client: Principal = Depends(require_client),
        db: Session = Depends(get_db)
):
    """The caller's upcoming or past appointments."""
    return AppointmentQueryService.list_client_appointments(db, client.user_id, when=filter)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_my_appointment(
        appointment_id: str = Path(..., description="The appointment ID"),
        request: Optional[AppointmentCancelRequest] = None,
        client: Principal = Depends(require_client),
        db: Session = Depends(get_db)
):
    """Cancel one of the caller's pending or confirmed appointments."""
    appointment = AppointmentService.cancel_by_client(
        db, appointment_id, client.user_id, reason=request.reason if request else None
    )
    return appointment.to_dict()
