# booking_api/models/__init__.py
from .base import Base
from .business import Business, StaffMember
from .service import Service
from .availability import WorkingHours, EntityType
from .appointment import Appointment, AppointmentStatus, ACTIVE_STATUSES

__all__ = [
    "Base",
    "Business",
    "StaffMember",
    "Service",
    "WorkingHours",
    "EntityType",
    "Appointment",
    "AppointmentStatus",
    "ACTIVE_STATUSES",
]
