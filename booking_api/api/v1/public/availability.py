# ============================================================================
# booking_api/api/v1/public/availability.py
# Public availability query - thin HTTP layer
# ============================================================================
from datetime import date as date_type, datetime
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from booking_api.config.database import get_db
from booking_api.config.settings import get_settings
from booking_api.schemas.availability import AvailabilityResponse
from booking_api.services.availability.availability_service import (
    AccessLevel,
    AvailabilityMode,
    AvailabilityService,
)

router = APIRouter(prefix="/availability", tags=["public-availability"])


def _parse_query(
        entity_id: Optional[str],
        business_id: Optional[str],
        date: Optional[str],
        duration: Optional[str]
) -> Tuple[str, date_type, int]:
    """400 for missing or malformed parameters; zero availability is never an error"""
    settings = get_settings()
    entity = (entity_id or business_id or "").strip()

    if not entity or not date:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: entity_id and date"
        )

    try:
        day = datetime.strptime(date, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be an ISO calendar date (YYYY-MM-DD)")

    if duration is None or duration == "":
        minutes = settings.DEFAULT_SLOT_DURATION_MINUTES
    else:
        try:
            minutes = int(duration)
        except ValueError:
            raise HTTPException(status_code=400, detail="duration must be a whole number of minutes")

    if minutes <= 0 or minutes > settings.MAX_SLOT_DURATION_MINUTES:
        raise HTTPException(
            status_code=400,
            detail=f"duration must be between 1 and {settings.MAX_SLOT_DURATION_MINUTES} minutes"
        )

    return entity, day, minutes


@router.get("", response_model=AvailabilityResponse, response_model_exclude_none=True)
def get_availability(
        entity_id: Optional[str] = Query(None, description="Business or staff member id"),
        business_id: Optional[str] = Query(None, description="Alias of entity_id"),
        date: Optional[str] = Query(None, description="Local calendar date, YYYY-MM-DD"),
        duration: Optional[str] = Query(None, description="Slot length in minutes"),
        debug: bool = Query(False, description="Include diagnostics"),
        db: Session = Depends(get_db)
):
    """
    Bookable slot starts for one entity and day, checked against existing bookings.
    Closed days and fully booked days return 200 with an empty list.
    """
    entity, day, minutes = _parse_query(entity_id, business_id, date, duration)

    result = AvailabilityService.get_availability(
        db, entity, day, minutes, access_level=AccessLevel.SERVICE
    )
    return AvailabilityResponse.from_result(result, include_meta=debug)


@router.get("/fallback", response_model=AvailabilityResponse, response_model_exclude_none=True)
def get_fallback_availability(
        entity_id: Optional[str] = Query(None, description="Business or staff member id"),
        business_id: Optional[str] = Query(None, description="Alias of entity_id"),
        date: Optional[str] = Query(None, description="Local calendar date, YYYY-MM-DD"),
        duration: Optional[str] = Query(None, description="Slot length in minutes"),
        debug: bool = Query(False, description="Include diagnostics"),
        db: Session = Depends(get_db)
):
    """
    Degraded channel for when the primary query is unreachable.
    Slots come from working hours alone and are always labeled source=fallback.
    """
    if not get_settings().FALLBACK_AVAILABILITY_ENABLED:
        raise HTTPException(status_code=404, detail="Fallback availability is disabled")

    entity, day, minutes = _parse_query(entity_id, business_id, date, duration)

    result = AvailabilityService.get_availability(
        db, entity, day, minutes,
        access_level=AccessLevel.PUBLIC,
        mode=AvailabilityMode.DEGRADED
    )
    return AvailabilityResponse.from_result(result, include_meta=debug)
