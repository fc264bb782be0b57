"""
Pydantic schemas for booking and status changes
"""
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class AppointmentCreateRequest(BaseModel):
    """
    Book a slot. start_time must be one of the values most recently returned
    by the availability query (local wall-clock, no offset).
    """
    entity_id: str = Field(..., min_length=1, description="Business or staff member whose calendar to book")
    service_id: str = Field(..., min_length=1)
    start_time: datetime
    client_name: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("start_time")
    @classmethod
    def validate_local_time(cls, v):
        if v.tzinfo is not None:
            raise ValueError("start_time must be a local wall-clock timestamp without a UTC offset")
        return v


class AppointmentStatusUpdate(BaseModel):
    status: str = Field(..., description="CONFIRMED, COMPLETED or CANCELLED")
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    staff_member_id: Optional[str] = None
    service_id: str
    client_id: str
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    notes: Optional[str] = None
