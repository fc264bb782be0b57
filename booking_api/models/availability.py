# booking_api/models/availability.py
from sqlalchemy import Column, String, Integer, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from booking_api.models.base import Base
from booking_api.models.business import new_id


class EntityType:
    BUSINESS = "business"
    STAFF = "staff"


class WorkingHours(Base):
    """One opening window per entity and weekday; a missing weekday means closed"""
    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("entity_id", "day_of_week", name="uq_working_hours_entity_day"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_working_hours_day"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    entity_type = Column(String(20), nullable=False, default=EntityType.BUSINESS)
    entity_id = Column(String(36), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(String(8), nullable=False)  # HH:MM or HH:MM:SS, local wall clock
    end_time = Column(String(8), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WorkingHours(entity_id={self.entity_id}, day={self.day_of_week})>"

    def to_dict(self):
        return {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
