# booking_api/models/appointment.py
import enum

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from booking_api.models.base import Base
from booking_api.models.business import new_id


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Only these block a slot
ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)

_ACTIVE_PREDICATE = text("status IN ('PENDING', 'CONFIRMED')")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Storage-level backstop: two live bookings can never share a start on one calendar
        Index(
            "uq_appointments_active_calendar_start",
            "calendar_id",
            "start_time",
            unique=True,
            sqlite_where=_ACTIVE_PREDICATE,
            postgresql_where=_ACTIVE_PREDICATE,
        ),
        Index("ix_appointments_calendar_window", "calendar_id", "start_time", "end_time"),
    )

    id = Column(String(36), primary_key=True, default=new_id)

    # References
    calendar_id = Column(String(36), nullable=False)  # staff member if chosen, else business
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    staff_member_id = Column(String(36), ForeignKey("staff_members.id"), nullable=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    client_id = Column(String(36), nullable=False, index=True)

    # Local wall-clock instants, no offset stored
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)  # snapshot of the service at booking time
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    service = relationship("Service")
    business = relationship("Business")

    def __repr__(self):
        return f"<Appointment(id={self.id}, calendar_id={self.calendar_id}, status={self.status})>"

    def to_dict(self, detailed: bool = False):
        """Convert to dictionary for API responses"""
        data = {
            "id": self.id,
            "business_id": self.business_id,
            "staff_member_id": self.staff_member_id,
            "service_id": self.service_id,
            "client_id": self.client_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "notes": self.notes,
        }
        if detailed:
            data.update({
                "calendar_id": self.calendar_id,
                "created_at": self.created_at.isoformat() if self.created_at else None,
                "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
                "completed_at": self.completed_at.isoformat() if self.completed_at else None,
                "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
                "cancellation_reason": self.cancellation_reason,
            })
        return data
