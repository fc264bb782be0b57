"""
Pydantic schemas for weekly working hours
"""
from pydantic import BaseModel, Field
from typing import List


class WorkingHoursDay(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: str = Field(..., description="HH:MM or HH:MM:SS, local wall clock")
    end_time: str = Field(..., description="HH:MM or HH:MM:SS, local wall clock")


class WorkingHoursSchedule(BaseModel):
    """Full weekly schedule; weekdays not listed are closed"""
    days: List[WorkingHoursDay] = Field(default_factory=list)
