"""
Pydantic schemas for the availability query
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from booking_api.services.availability.availability_service import AvailabilityResult


class WorkingHoursWindow(BaseModel):
    start_time: str
    end_time: str


class AvailabilityMeta(BaseModel):
    """Diagnostics; which branch was taken, never user-facing prose"""
    model_config = ConfigDict(populate_by_name=True)

    source: str
    branch: str
    reason: Optional[str] = None
    warning: Optional[str] = None
    entity_id: str = Field(alias="entityId")
    date: str
    day_of_week: int = Field(alias="dayOfWeek")
    duration: int
    working_hours: Optional[WorkingHoursWindow] = Field(None, alias="workingHours")
    appointments_count: Optional[int] = Field(None, alias="appointmentsCount")


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available_slots: List[str] = Field(default_factory=list, alias="availableSlots")
    meta: Optional[AvailabilityMeta] = None

    @classmethod
    def from_result(cls, result: AvailabilityResult, include_meta: bool) -> "AvailabilityResponse":
        meta = None
        if include_meta or result.is_fallback:
            diag = result.diagnostics
            meta = AvailabilityMeta(
                source=result.source,
                branch=diag.branch,
                reason=diag.reason,
                warning=getattr(result, "warning", None),
                entity_id=diag.entity_id,
                date=diag.date.isoformat(),
                day_of_week=diag.day_of_week,
                duration=diag.duration_minutes,
                working_hours=WorkingHoursWindow(
                    start_time=diag.working_hours["start_time"],
                    end_time=diag.working_hours["end_time"]
                ) if diag.working_hours else None,
                appointments_count=diag.appointments_count,
            )

        return cls(
            available_slots=[slot.isoformat() for slot in result.slots],
            meta=meta
        )
