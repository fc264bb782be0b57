"""
Appointment lifecycle.

    PENDING   -> CONFIRMED | CANCELLED
    CONFIRMED -> COMPLETED | CANCELLED
    COMPLETED, CANCELLED, NO_SHOW are terminal

The business actor may take any allowed transition; the client actor may only
cancel. Validation never touches stored state.
"""
import enum
from typing import Dict, FrozenSet, Union

from booking_api.core.errors import InvalidTransitionError, ValidationError
from booking_api.models.appointment import AppointmentStatus


class Actor(str, enum.Enum):
    BUSINESS = "business"
    CLIENT = "client"


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

ACTOR_TARGETS: Dict[Actor, FrozenSet[AppointmentStatus]] = {
    Actor.BUSINESS: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    Actor.CLIENT: frozenset({AppointmentStatus.CANCELLED}),
}

INITIAL_STATUS = AppointmentStatus.PENDING


def coerce_status(value: Union[str, AppointmentStatus]) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown appointment status: {value!r}", status=value) from None


def allowed_targets(current: Union[str, AppointmentStatus], actor: Actor = Actor.BUSINESS) -> FrozenSet[AppointmentStatus]:
    """Statuses `actor` may move an appointment in `current` to"""
    return ALLOWED_TRANSITIONS[coerce_status(current)] & ACTOR_TARGETS[actor]


def validate_transition(
        current: Union[str, AppointmentStatus],
        target: Union[str, AppointmentStatus],
        actor: Actor = Actor.BUSINESS
) -> AppointmentStatus:
    """
    Return the target status.

    Raises ValidationError for an unknown status name and
    InvalidTransitionError for a move the table or the actor does not allow.
    """
    current_status = coerce_status(current)
    target_status = coerce_status(target)

    if current_status in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            current_status.value,
            target_status.value,
            f"Appointment is {current_status.value} and can no longer change"
        )

    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransitionError(current_status.value, target_status.value)

    if target_status not in ACTOR_TARGETS[actor]:
        raise InvalidTransitionError(
            current_status.value,
            target_status.value,
            f"A {actor.value} may not move an appointment to {target_status.value}"
        )

    return target_status
