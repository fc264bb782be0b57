# ============================================================================
# booking_api/services/appointment/appointment_query_service.py
# Read-side business logic - no FastAPI dependencies, fully testable
# ============================================================================
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, joinedload

from booking_api.core.errors import ValidationError
from booking_api.models.appointment import Appointment, AppointmentStatus, ACTIVE_STATUSES
from booking_api.services.availability.availability_service import day_window

CALENDAR_FILTERS = {
    "pending": (AppointmentStatus.PENDING.value,),
    "confirmed": (AppointmentStatus.CONFIRMED.value,),
    "all": (
        AppointmentStatus.PENDING.value,
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.COMPLETED.value,
    ),
}

PAST_STATUSES = (
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.NO_SHOW.value,
)

REVENUE_STATUSES = (AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value)


class AppointmentQueryService:
    """Service layer for appointment listings and summaries."""

    @staticmethod
    def list_business_appointments(
            db: Session,
            business_id: str,
            day: date,
            status_filter: str = "all"
    ) -> Dict[str, Any]:
        """Appointments of one business starting on one day."""
        statuses = CALENDAR_FILTERS.get(status_filter)
        if statuses is None:
            raise ValidationError(f"Unknown filter {status_filter!r}; expected one of {sorted(CALENDAR_FILTERS)}")

        day_start, day_end = day_window(day)
        appointments = db.query(Appointment).options(joinedload(Appointment.service)).filter(
            Appointment.business_id == business_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_end,
            Appointment.status.in_(statuses)
        ).order_by(Appointment.start_time.asc()).all()

        return {
            "business_id": business_id,
            "date": day.isoformat(),
            "filter": status_filter,
            "total_appointments": len(appointments),
            "appointments": [AppointmentQueryService._serialize(appt) for appt in appointments]
        }

    @staticmethod
    def get_appointment_by_id(
            db: Session,
            business_id: str,
            appointment_id: str
    ) -> Optional[Dict[str, Any]]:
        """Get a single appointment by ID. Returns None if not found."""
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()

        if not appointment:
            return None

        return AppointmentQueryService._serialize(appointment, detailed=True)

    @staticmethod
    def get_day_summary(
            db: Session,
            business_id: str,
            day: date
    ) -> Dict[str, Any]:
        """Counts per status and revenue of confirmed + completed bookings for one day."""
        day_start, day_end = day_window(day)
        appointments = db.query(Appointment).options(joinedload(Appointment.service)).filter(
            Appointment.business_id == business_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_end,
            Appointment.status.in_(CALENDAR_FILTERS["all"])
        ).all()

        counts = {status: 0 for status in CALENDAR_FILTERS["all"]}
        revenue = Decimal("0")
        for appt in appointments:
            counts[appt.status] += 1
            if appt.status in REVENUE_STATUSES and appt.service is not None:
                revenue += Decimal(appt.service.price or 0)

        return {
            "business_id": business_id,
            "date": day.isoformat(),
            "total": len(appointments),
            "pending": counts[AppointmentStatus.PENDING.value],
            "confirmed": counts[AppointmentStatus.CONFIRMED.value],
            "completed": counts[AppointmentStatus.COMPLETED.value],
            "revenue": float(revenue)
        }

    @staticmethod
    def list_client_appointments(
            db: Session,
            client_id: str,
            when: str = "upcoming",
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """A client's upcoming (active, not started) or past (finished) appointments."""
        query = db.query(Appointment).options(joinedload(Appointment.service)).filter(
            Appointment.client_id == client_id
        )

        if when == "upcoming":
            now = now or datetime.now()
            query = query.filter(
                Appointment.start_time >= now,
                Appointment.status.in_(ACTIVE_STATUSES)
            ).order_by(Appointment.start_time.asc())
        elif when == "past":
            query = query.filter(
                Appointment.status.in_(PAST_STATUSES)
            ).order_by(Appointment.start_time.desc())
        else:
            raise ValidationError(f"Unknown filter {when!r}; expected 'upcoming' or 'past'")

        appointments = query.all()
        return {
            "client_id": client_id,
            "filter": when,
            "total_appointments": len(appointments),
            "appointments": [AppointmentQueryService._serialize(appt) for appt in appointments]
        }

    @staticmethod
    def _serialize(appt: Appointment, detailed: bool = False) -> Dict[str, Any]:
        data = appt.to_dict(detailed=detailed)
        if appt.service is not None:
            data["service"] = {
                "name": appt.service.name,
                "price": float(appt.service.price or 0),
                "duration_minutes": appt.service.duration_minutes,
                "formatted_duration": appt.service.formatted_duration,
            }
        return data
