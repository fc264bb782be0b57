# ============================================================================
# booking_api/api/v1/dashboard/working_hours.py
# Weekly schedule maintenance - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from booking_api.api.dependencies import Principal, require_business_member
from booking_api.config.database import get_db
from booking_api.schemas.working_hours import WorkingHoursSchedule
from booking_api.services.schedule.working_hours_service import WorkingHoursService

router = APIRouter(prefix="/working-hours", tags=["dashboard-working-hours"])


@router.get("/{entity_id}")
def get_working_hours(
        entity_id: str = Path(..., description="The business or one of its staff members"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """Weekly schedule of the business or one of its staff."""
    entity_type = WorkingHoursService.resolve_owned_entity(db, entity_id, member.business_id)
    return {
        "entity_id": entity_id,
        "entity_type": entity_type,
        "days": WorkingHoursService.get_schedule(db, entity_id)
    }


@router.put("/{entity_id}")
def replace_working_hours(
        schedule: WorkingHoursSchedule,
        entity_id: str = Path(..., description="The business or one of its staff members"),
        member: Principal = Depends(require_business_member),
        db: Session = Depends(get_db)
):
    """Replace the weekly schedule; weekdays left out become closed."""
    entity_type = WorkingHoursService.resolve_owned_entity(db, entity_id, member.business_id)
    days = WorkingHoursService.replace_schedule(
        db,
        entity_id,
        entity_type,
        [day.model_dump() for day in schedule.days]
    )
    return {"entity_id": entity_id, "entity_type": entity_type, "days": days}
