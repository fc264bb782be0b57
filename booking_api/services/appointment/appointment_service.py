# ============================================================================
# booking_api/services/appointment/appointment_service.py
# Booking commit path and status transitions
# ============================================================================
"""Service for creating appointments and moving them through their lifecycle"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from booking_api.config.database import acquire_write_lock
from booking_api.config.settings import get_settings
from booking_api.core.errors import (
    DataUnavailableError,
    NotFoundError,
    PermissionDeniedError,
    SlotNoLongerAvailableError,
    ValidationError,
)
from booking_api.models.appointment import Appointment, AppointmentStatus
from booking_api.models.availability import EntityType
from booking_api.models.business import Business, StaffMember
from booking_api.models.service import Service
from booking_api.services.availability.availability_service import AvailabilityService, Branch
from booking_api.services.availability.calendar_lock import calendar_lock
from booking_api.services.appointment.state_machine import Actor, INITIAL_STATUS, validate_transition
from booking_api.tasks.notification_tasks import notify_business_of_booking, send_appointment_confirmation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarRef:
    """The entity whose calendar a booking occupies"""
    entity_id: str
    entity_type: str
    business_id: str
    staff_member_id: Optional[str] = None


def compose_notes(client_name: Optional[str] = None, notes: Optional[str] = None) -> Optional[str]:
    parts = []
    if client_name and client_name.strip():
        parts.append(f"Client Name: {client_name.strip()}")
    if notes and notes.strip():
        parts.append(notes.strip())
    return "\n".join(parts) if parts else None


def _dispatch(task, appointment_id: str) -> None:
    """Queue a post-commit side effect; its failure never affects stored state"""
    try:
        task.delay(appointment_id)
    except Exception as e:
        logger.error(f"Could not queue {task.name} for appointment {appointment_id}: {e}")


class AppointmentService:
    """Handles appointment writes"""

    @staticmethod
    def resolve_calendar(db: Session, entity_id: str) -> CalendarRef:
        """Find the business or staff member behind an entity id"""
        business = db.query(Business).filter(Business.id == entity_id).first()
        if business:
            if not business.is_active:
                raise NotFoundError("Business is not accepting bookings", entity_id=entity_id)
            return CalendarRef(
                entity_id=business.id,
                entity_type=EntityType.BUSINESS,
                business_id=business.id
            )

        staff = db.query(StaffMember).filter(StaffMember.id == entity_id).first()
        if staff:
            if not staff.is_active:
                raise NotFoundError("Staff member is not accepting bookings", entity_id=entity_id)
            return CalendarRef(
                entity_id=staff.id,
                entity_type=EntityType.STAFF,
                business_id=staff.business_id,
                staff_member_id=staff.id
            )

        raise NotFoundError("Calendar not found", entity_id=entity_id)

    @staticmethod
    def _lock_entity_row(db: Session, calendar: CalendarRef) -> None:
        """Row lock on the calendar owner; serializes writers across processes on PostgreSQL"""
        model = StaffMember if calendar.entity_type == EntityType.STAFF else Business
        db.query(model).filter(model.id == calendar.entity_id).with_for_update().one()

    @staticmethod
    def create_appointment(
            db: Session,
            entity_id: str,
            service_id: str,
            client_id: str,
            requested_start: datetime,
            notes: Optional[str] = None,
            client_name: Optional[str] = None
    ) -> Appointment:
        """
        Book `requested_start` on an entity's calendar.

        Availability is recomputed while the calendar's booking lock is held;
        if the slot is gone the call fails with SlotNoLongerAvailableError and
        nothing is written. The new appointment starts in PENDING with
        end = start + the service's current duration.
        """
        if requested_start.tzinfo is not None:
            raise ValidationError(
                "start_time must be a local wall-clock timestamp without a UTC offset"
            )

        calendar = AppointmentService.resolve_calendar(db, entity_id)

        service = db.query(Service).filter(Service.id == service_id).first()
        if not service or not service.is_active or service.business_id != calendar.business_id:
            raise NotFoundError("Service not found for this calendar", service_id=service_id)

        duration_minutes = service.duration_minutes
        settings = get_settings()

        with calendar_lock(calendar.entity_id, timeout=settings.BOOKING_LOCK_TIMEOUT_SECONDS):
            try:
                try:
                    acquire_write_lock(db)
                except OperationalError as e:
                    raise SlotNoLongerAvailableError(
                        "Calendar is busy with another booking, please retry",
                        entity_id=calendar.entity_id
                    ) from e
                AppointmentService._lock_entity_row(db, calendar)

                result = AvailabilityService.get_availability(
                    db, calendar.entity_id, requested_start.date(), duration_minutes
                )
                if result.diagnostics.branch == Branch.APPOINTMENTS_UNAVAILABLE:
                    raise DataUnavailableError(
                        "Existing bookings could not be checked; booking refused",
                        entity_id=calendar.entity_id
                    )

                if requested_start not in result.slots:
                    raise SlotNoLongerAvailableError(
                        "Selected time is no longer available. Please choose another time.",
                        entity_id=calendar.entity_id,
                        start_time=requested_start.isoformat()
                    )

                appointment = Appointment(
                    calendar_id=calendar.entity_id,
                    business_id=calendar.business_id,
                    staff_member_id=calendar.staff_member_id,
                    service_id=service.id,
                    client_id=client_id,
                    start_time=requested_start,
                    end_time=requested_start + timedelta(minutes=duration_minutes),
                    duration_minutes=duration_minutes,
                    status=INITIAL_STATUS.value,
                    notes=compose_notes(client_name, notes),
                )
                db.add(appointment)
                db.commit()

            except IntegrityError as e:
                db.rollback()
                logger.info(f"Booking on {calendar.entity_id} at {requested_start} lost at the storage constraint")
                raise SlotNoLongerAvailableError(
                    "Selected time is no longer available. Please choose another time.",
                    entity_id=calendar.entity_id,
                    start_time=requested_start.isoformat()
                ) from e
            except Exception:
                db.rollback()
                raise

        db.refresh(appointment)
        logger.info(
            f"Created appointment {appointment.id} on calendar {calendar.entity_id} "
            f"at {appointment.start_time.isoformat()} ({duration_minutes} min)"
        )

        _dispatch(notify_business_of_booking, appointment.id)
        return appointment

    @staticmethod
    def transition_status(
            db: Session,
            appointment_id: str,
            target_status,
            actor: Actor,
            actor_id: str,
            business_id: Optional[str] = None,
            reason: Optional[str] = None
    ) -> Appointment:
        """
        Move an appointment to `target_status` on behalf of `actor`.

        Business actors may only touch their own business's appointments,
        clients only their own. An invalid transition raises
        InvalidTransitionError and leaves the row untouched.
        """
        if actor == Actor.BUSINESS and not business_id:
            raise PermissionDeniedError("Business actions require a business context", appointment_id=appointment_id)

        try:
            appointment = db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).with_for_update().first()

            if not appointment or not AppointmentService._owned_by(appointment, actor, actor_id, business_id):
                raise NotFoundError(
                    "Appointment not found or you don't have access to it",
                    appointment_id=appointment_id
                )

            previous = appointment.status
            target = validate_transition(previous, target_status, actor)

            now = datetime.now(timezone.utc)
            appointment.status = target.value
            if target == AppointmentStatus.CONFIRMED:
                appointment.confirmed_at = now
            elif target == AppointmentStatus.COMPLETED:
                appointment.completed_at = now
            elif target == AppointmentStatus.CANCELLED:
                appointment.cancelled_at = now
                appointment.cancellation_reason = reason

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(appointment)
        logger.info(f"Appointment {appointment.id}: {previous} -> {appointment.status} by {actor.value} {actor_id}")

        if target == AppointmentStatus.CONFIRMED:
            _dispatch(send_appointment_confirmation, appointment.id)

        return appointment

    @staticmethod
    def cancel_by_client(
            db: Session,
            appointment_id: str,
            client_id: str,
            reason: Optional[str] = None
    ) -> Appointment:
        return AppointmentService.transition_status(
            db,
            appointment_id,
            AppointmentStatus.CANCELLED,
            actor=Actor.CLIENT,
            actor_id=client_id,
            reason=reason
        )

    @staticmethod
    def _owned_by(appointment: Appointment, actor: Actor, actor_id: str, business_id: Optional[str]) -> bool:
        if actor == Actor.CLIENT:
            return appointment.client_id == actor_id
        return business_id is not None and appointment.business_id == business_id
