# booking_api/models/business.py
"""
Business and staff models.
Both are calendar entities: each one owns a weekly schedule and a calendar of appointments.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking_api.models.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)  # receives new-booking notifications

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    staff_members = relationship("StaffMember", back_populates="business")

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(
        String(36),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(36), nullable=True)
    name = Column(String(200), nullable=True)
    position = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_active = Column(Boolean, default=True)

    business = relationship("Business", back_populates="staff_members")

    def __repr__(self):
        return f"<StaffMember(id={self.id}, business_id={self.business_id})>"
