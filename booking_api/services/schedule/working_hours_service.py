# booking_api/services/schedule/working_hours_service.py
"""Weekly working-hours maintenance for businesses and their staff"""
import logging
from datetime import date
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from booking_api.core.errors import ConfigurationError, NotFoundError, ValidationError
from booking_api.models.availability import EntityType, WorkingHours
from booking_api.models.business import Business, StaffMember
from booking_api.services.availability.slots import window_bounds

logger = logging.getLogger(__name__)

# Any fixed day works; only the time-of-day part is being checked
_REFERENCE_DAY = date(2000, 1, 2)


class WorkingHoursService:
    """Reads and replaces an entity's weekly schedule"""

    @staticmethod
    def resolve_owned_entity(db: Session, entity_id: str, business_id: str) -> str:
        """Entity type of `entity_id` if it is `business_id` or one of its staff"""
        if entity_id == business_id:
            if db.query(Business).filter(Business.id == business_id).first():
                return EntityType.BUSINESS
        else:
            staff = db.query(StaffMember).filter(
                StaffMember.id == entity_id,
                StaffMember.business_id == business_id
            ).first()
            if staff:
                return EntityType.STAFF

        raise NotFoundError("Calendar not found or you don't have access to it", entity_id=entity_id)

    @staticmethod
    def get_schedule(db: Session, entity_id: str) -> List[Dict]:
        rows = db.query(WorkingHours).filter(
            WorkingHours.entity_id == entity_id
        ).order_by(WorkingHours.day_of_week.asc()).all()
        return [row.to_dict() for row in rows]

    @staticmethod
    def validate_days(days: Iterable[Dict]) -> List[Dict]:
        """One window per weekday, parseable times, start before end"""
        seen = set()
        cleaned = []
        for day in days:
            dow = day.get("day_of_week")
            if not isinstance(dow, int) or not 0 <= dow <= 6:
                raise ValidationError(f"day_of_week must be 0 (Sunday) to 6 (Saturday), got {dow!r}")
            if dow in seen:
                raise ValidationError(f"Only one working-hours window per weekday (duplicate {dow})")
            seen.add(dow)

            try:
                window_bounds(_REFERENCE_DAY, day.get("start_time"), day.get("end_time"))
            except ConfigurationError as e:
                raise ValidationError(e.message, day_of_week=dow) from e

            cleaned.append({
                "day_of_week": dow,
                "start_time": day["start_time"].strip(),
                "end_time": day["end_time"].strip(),
            })
        return sorted(cleaned, key=lambda d: d["day_of_week"])

    @staticmethod
    def replace_schedule(
            db: Session,
            entity_id: str,
            entity_type: str,
            days: Iterable[Dict]
    ) -> List[Dict]:
        """Replace the whole weekly schedule; weekdays left out become closed"""
        cleaned = WorkingHoursService.validate_days(days)

        try:
            db.query(WorkingHours).filter(WorkingHours.entity_id == entity_id).delete()
            db.flush()
            for day in cleaned:
                db.add(WorkingHours(entity_type=entity_type, entity_id=entity_id, **day))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Replaced working hours of {entity_type} {entity_id}: {len(cleaned)} open days")
        return WorkingHoursService.get_schedule(db, entity_id)
