# ============================================================================
# booking_api/api/v1/dashboard/appointments.py
# Business calendar endpoints - thin HTTP layer
# ============================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from booking_api.api.dependencies import Principal, require_business_member
from booking_api.config.database import get_db
from booking_api.schemas.appointment import AppointmentResponse, AppointmentStatusUpdate
from booking_api.services.appointment.appointment_query_service import AppointmentQueryService
from booking_api.services.appointment.appointment_service import AppointmentService
from booking_api.services.appointment.state_machine import Actor

router = APIRouter(prefix="/appointments", tags=["dashboard-appointments"])


@router.get("")
def list_appointments(
        day: Optional[date] = Query(None, alias="date", description="Calendar day, defaults to today"),
        filter: str = Query("all", description="pending, confirmed or all"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """
    Get the business calendar for one day.
    Requires a business owner or staff token.
    """
    return AppointmentQueryService.list_business_appointments(
        db=db,
        business_id=member.business_id,
        day=day or date.today(),
        status_filter=filter
    )


@router.get("/stats/summary")
def get_appointment_stats(
        day: Optional[date] = Query(None, alias="date", description="Calendar day, defaults to today"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """
    Counts per status and revenue for one day.
    Requires a business owner or staff token.
    """
    return AppointmentQueryService.get_day_summary(
        db=db,
        business_id=member.business_id,
        day=day or date.today()
    )


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: str = Path(..., description="The appointment ID"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """
    Get detailed information about a specific appointment.
    Requires a business owner or staff token.
    """
    result = AppointmentQueryService.get_appointment_by_id(
        db=db,
        business_id=member.business_id,
        appointment_id=appointment_id
    )

    if not result:
        raise HTTPException(
            status_code=404,
            detail="Appointment not found or you don't have access to it"
        )

    return result


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
        update: AppointmentStatusUpdate,
        appointment_id: str = Path(..., description="The appointment ID"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """
    Confirm, complete or cancel an appointment.
    Invalid transitions return 409 and change nothing.
    """
    appointment = AppointmentService.transition_status(
        db,
        appointment_id,
        update.status,
        actor=Actor.BUSINESS,
        actor_id=member.user_id,
        business_id=member.business_id,
        reason=update.reason
    )
    return appointment.to_dict()
