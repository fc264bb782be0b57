# ===== booking_api/services/availability/availability_service.py =====
import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_api.core.errors import ConfigurationError, DataUnavailableError, StorageUnavailableError
from booking_api.models.appointment import Appointment, ACTIVE_STATUSES
from booking_api.models.availability import WorkingHours
from booking_api.models.business import Business, StaffMember
from booking_api.services.availability.overlap import filter_available
from booking_api.services.availability.slots import generate_slots

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Computed from working hours only; may not reflect existing bookings"


class AccessLevel(str, enum.Enum):
    """What the caller's credentials may read from the schedule store"""
    SERVICE = "service"  # working hours and appointments
    PUBLIC = "public"    # working hours only


class AvailabilityMode(str, enum.Enum):
    STRICT = "strict"
    DEGRADED = "degraded"  # explicit escape hatch, never the default


class Branch:
    INACTIVE = "entity_inactive"
    CLOSED = "no_working_hours"
    MISCONFIGURED = "invalid_working_hours"
    APPOINTMENTS_UNAVAILABLE = "appointments_unavailable"
    FILTERED = "filtered"
    UNFILTERED = "unfiltered_fallback"


def day_of_week_index(day: date) -> int:
    """0=Sunday .. 6=Saturday"""
    return (day.weekday() + 1) % 7


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[midnight, next midnight) of a local calendar day"""
    day_start = datetime.combine(day, time.min)
    return day_start, day_start + timedelta(days=1)


@dataclass(frozen=True)
class AvailabilityDiagnostics:
    entity_id: str
    date: date
    day_of_week: int
    duration_minutes: int
    branch: str
    reason: Optional[str] = None
    working_hours: Optional[dict] = None
    appointments_count: Optional[int] = None


@dataclass(frozen=True)
class ValidatedAvailability:
    """Slots checked against every active appointment of the entity"""
    slots: Tuple[datetime, ...]
    diagnostics: AvailabilityDiagnostics
    source: str = field(default="validated", init=False)
    is_fallback: bool = field(default=False, init=False)


@dataclass(frozen=True)
class FallbackAvailability:
    """Unfiltered grid, produced only in degraded mode when bookings could not be read"""
    slots: Tuple[datetime, ...]
    diagnostics: AvailabilityDiagnostics
    warning: str = FALLBACK_WARNING
    source: str = field(default="fallback", init=False)
    is_fallback: bool = field(default=True, init=False)


AvailabilityResult = Union[ValidatedAvailability, FallbackAvailability]


class AvailabilityService:
    """Computes bookable slots for one entity and one local calendar day"""

    @staticmethod
    def get_availability(
            db: Session,
            entity_id: str,
            day: date,
            duration_minutes: int,
            access_level: AccessLevel = AccessLevel.SERVICE,
            mode: AvailabilityMode = AvailabilityMode.STRICT
    ) -> AvailabilityResult:
        """
        Get available slots for an entity on a date.

        0. Deactivated entity => no slots
        1. Working hours for the weekday (absent => closed)
        2. Full slot grid for the window
        3. Active appointments overlapping the day
        4. Grid minus overlapping slots

        When appointments cannot be read, strict mode returns no slots and
        degraded mode returns the unfiltered grid tagged as fallback.
        Raises StorageUnavailableError only when working hours cannot be read.
        """
        if duration_minutes is None or duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be positive, got {duration_minutes!r}")

        dow = day_of_week_index(day)

        def diagnostics(branch: str, reason: Optional[str] = None, **extra) -> AvailabilityDiagnostics:
            return AvailabilityDiagnostics(
                entity_id=entity_id,
                date=day,
                day_of_week=dow,
                duration_minutes=duration_minutes,
                branch=branch,
                reason=reason,
                **extra
            )

        if not AvailabilityService.is_accepting_bookings(db, entity_id):
            logger.debug(f"Entity {entity_id} is inactive; no slots on {day}")
            return ValidatedAvailability(
                slots=(),
                diagnostics=diagnostics(Branch.INACTIVE, reason=Branch.INACTIVE)
            )

        hours = AvailabilityService.get_working_hours(db, entity_id, dow)
        if hours is None:
            logger.debug(f"Entity {entity_id} closed on {day} (weekday {dow})")
            return ValidatedAvailability(
                slots=(),
                diagnostics=diagnostics(Branch.CLOSED, reason=Branch.CLOSED)
            )

        window = hours.to_dict()
        try:
            grid = generate_slots(day, hours.start_time, hours.end_time, duration_minutes)
        except ConfigurationError as e:
            logger.warning(
                f"Malformed working hours for entity {entity_id}, weekday {dow}: {e.message}; treating day as closed"
            )
            return ValidatedAvailability(
                slots=(),
                diagnostics=diagnostics(Branch.MISCONFIGURED, reason=Branch.MISCONFIGURED, working_hours=window)
            )

        day_start, day_end = day_window(day)
        try:
            appointments = AvailabilityService.get_active_appointments(
                db, entity_id, day_start, day_end, access_level=access_level
            )
        except DataUnavailableError as e:
            logger.warning(f"Appointments unavailable for entity {entity_id} on {day}: {e.message}")

            if mode == AvailabilityMode.DEGRADED:
                return FallbackAvailability(
                    slots=tuple(grid),
                    diagnostics=diagnostics(
                        Branch.UNFILTERED,
                        reason=Branch.APPOINTMENTS_UNAVAILABLE,
                        working_hours=window
                    )
                )

            return ValidatedAvailability(
                slots=(),
                diagnostics=diagnostics(
                    Branch.APPOINTMENTS_UNAVAILABLE,
                    reason=Branch.APPOINTMENTS_UNAVAILABLE,
                    working_hours=window
                )
            )

        available = filter_available(grid, duration_minutes, appointments)
        logger.debug(
            f"Entity {entity_id} on {day}: {len(grid)} candidate slots, "
            f"{len(appointments)} active appointments, {len(available)} available"
        )

        return ValidatedAvailability(
            slots=tuple(available),
            diagnostics=diagnostics(
                Branch.FILTERED,
                working_hours=window,
                appointments_count=len(appointments)
            )
        )

    @staticmethod
    def is_accepting_bookings(db: Session, entity_id: str) -> bool:
        """False for a deactivated business or staff member; unknown ids fall through to the hours lookup"""
        try:
            for model in (Business, StaffMember):
                entity = db.query(model).filter(model.id == entity_id).first()
                if entity is not None:
                    return bool(entity.is_active)
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageUnavailableError(f"Calendar entity could not be loaded: {e}") from e
        return True

    @staticmethod
    def get_working_hours(db: Session, entity_id: str, day_of_week: int) -> Optional[WorkingHours]:
        """Working-hours row for one weekday; a store failure here is a hard failure"""
        try:
            return db.query(WorkingHours).filter(
                WorkingHours.entity_id == entity_id,
                WorkingHours.day_of_week == day_of_week
            ).first()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageUnavailableError(f"Working hours could not be loaded: {e}") from e

    @staticmethod
    def get_active_appointments(
            db: Session,
            calendar_id: str,
            window_start: datetime,
            window_end: datetime,
            access_level: AccessLevel = AccessLevel.SERVICE
    ) -> List[Appointment]:
        """
        Active appointments overlapping [window_start, window_end).

        Uses overlap semantics rather than a start-time range so a booking that
        begins before midnight and runs into the day is still found.
        """
        if access_level != AccessLevel.SERVICE:
            raise DataUnavailableError(
                "Caller is not allowed to read appointments",
                access_level=access_level.value
            )

        try:
            return db.query(Appointment).filter(
                Appointment.calendar_id == calendar_id,
                Appointment.status.in_(ACTIVE_STATUSES),
                Appointment.start_time < window_end,
                Appointment.end_time > window_start
            ).order_by(Appointment.start_time.asc()).all()
        except SQLAlchemyError as e:
            db.rollback()
            raise DataUnavailableError(f"Appointments could not be loaded: {e}") from e
