"""
Slot generation.

Turns one working-hours window into a fixed-stride grid of candidate start
instants. Instants are naive local wall-clock datetimes: the window's date and
time-of-day are combined as-is, no timezone conversion happens anywhere.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Union

from booking_api.core.errors import ConfigurationError

TimeValue = Union[str, time, None]


def parse_wall_clock(value: TimeValue) -> time:
    """
    Parse a stored working-hours time.

    Accepts HH:MM or HH:MM:SS strings (or a time already parsed by the driver).
    Raises ConfigurationError for anything else.
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None)

    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Missing working-hours time: {value!r}", value=value)

    raw = value.strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue

    raise ConfigurationError(f"Malformed working-hours time: {value!r}", value=value)


def window_bounds(day: date, start_time: TimeValue, end_time: TimeValue):
    """Absolute [open, close) instants of a window on a given day"""
    opens_at = datetime.combine(day, parse_wall_clock(start_time))
    closes_at = datetime.combine(day, parse_wall_clock(end_time))

    if closes_at <= opens_at:
        raise ConfigurationError(
            f"Working-hours window must start before it ends: {start_time}-{end_time}",
            start_time=start_time,
            end_time=end_time,
        )

    return opens_at, closes_at


def generate_slots(
        day: date,
        start_time: TimeValue,
        end_time: TimeValue,
        duration_minutes: int
) -> List[datetime]:
    """
    Generate back-to-back slot starts for one window.

    Algorithm:
        1. Start at the window's opening instant
        2. Emit the current instant while current + duration <= close
        3. Advance by exactly one duration (no gaps, no overlap)

    A duration longer than the window yields no slots; a partial final slot is
    never emitted.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes!r}")

    opens_at, closes_at = window_bounds(day, start_time, end_time)
    step = timedelta(minutes=duration_minutes)

    slots = []
    current = opens_at
    while current + step <= closes_at:
        slots.append(current)
        current += step

    return slots
