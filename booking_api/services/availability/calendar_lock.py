"""
Per-entity serialization of the booking check-and-write.

One in-process lock per calendar entity, held across re-validation and insert.
Across processes the booking path additionally takes the SQLite write lock
(BEGIN IMMEDIATE) or, on PostgreSQL, locks the entity's row
(SELECT ... FOR UPDATE). The partial unique index on appointments rejects a
duplicate start as a last resort.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from booking_api.core.errors import SlotNoLongerAvailableError

logger = logging.getLogger(__name__)

_calendar_locks: Dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def _lock_for(calendar_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _calendar_locks.get(calendar_id)
        if lock is None:
            lock = threading.Lock()
            _calendar_locks[calendar_id] = lock
        return lock


@contextmanager
def calendar_lock(calendar_id: str, timeout: Optional[float] = None):
    """
    Hold the booking lock of one calendar.

    Waiting longer than `timeout` seconds raises SlotNoLongerAvailableError so
    the caller can retry or pick another slot.
    """
    lock = _lock_for(calendar_id)
    acquired = lock.acquire(timeout=timeout) if timeout else lock.acquire()
    if not acquired:
        logger.warning(f"Timed out waiting for booking lock of calendar {calendar_id}")
        raise SlotNoLongerAvailableError(
            "Calendar is busy with another booking, please retry",
            calendar_id=calendar_id
        )
    try:
        yield
    finally:
        lock.release()
