"""
Overlap filtering.

Removes candidate slots whose [start, start + duration) interval intersects an
active appointment's [start, end). Appointments in any other status are
ignored entirely.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Protocol

from booking_api.models.appointment import ACTIVE_STATUSES


class BookedInterval(Protocol):
    start_time: datetime
    end_time: datetime
    status: str


def intervals_overlap(
        start: datetime,
        end: datetime,
        other_start: datetime,
        other_end: datetime
) -> bool:
    """Half-open overlap: touching intervals do not collide"""
    return start < other_end and end > other_start


def is_blocking(appointment: BookedInterval) -> bool:
    status = getattr(appointment.status, "value", appointment.status)
    return status in ACTIVE_STATUSES


def find_conflicts(
        start: datetime,
        end: datetime,
        appointments: Iterable[BookedInterval],
        exclude_id: Optional[str] = None
) -> List[BookedInterval]:
    """Active appointments that collide with [start, end)"""
    conflicts = []
    for appt in appointments:
        if exclude_id is not None and getattr(appt, "id", None) == exclude_id:
            continue
        if not is_blocking(appt):
            continue
        if intervals_overlap(start, end, appt.start_time, appt.end_time):
            conflicts.append(appt)
    return conflicts


def filter_available(
        slots: Iterable[datetime],
        duration_minutes: int,
        appointments: Iterable[BookedInterval]
) -> List[datetime]:
    """Keep only slots that collide with no active appointment, order preserved"""
    step = timedelta(minutes=duration_minutes)
    blocking = [appt for appt in appointments if is_blocking(appt)]

    available = []
    for slot_start in slots:
        slot_end = slot_start + step
        if any(intervals_overlap(slot_start, slot_end, a.start_time, a.end_time) for a in blocking):
            continue
        available.append(slot_start)

    return available
