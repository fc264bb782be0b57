"""
Tests for services/appointment/appointment_service.py

Booking commit path, lifecycle transitions and post-commit notifications.
"""
import os
import tempfile
import threading
import unittest
from contextlib import nullcontext
from datetime import datetime, timezone
from unittest import mock

from booking_api.core.errors import (
    DataUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    SlotNoLongerAvailableError,
    ValidationError,
)
from booking_api.models import Appointment, AppointmentStatus, WorkingHours
from booking_api.services.appointment.appointment_service import AppointmentService, compose_notes
from booking_api.services.appointment.state_machine import Actor
from booking_api.services.availability.availability_service import (
    AvailabilityDiagnostics,
    AvailabilityService,
    Branch,
    ValidatedAvailability,
)
from booking_api.services.availability.calendar_lock import calendar_lock
from booking_api.services.availability.overlap import intervals_overlap
from tests.base import MONDAY, DatabaseTestCase, at

SERVICE_MODULE = "booking_api.services.appointment.appointment_service"


class NotificationPatchMixin:
    """Celery dispatch is replaced by mocks for every test"""

    def setUp(self):
        super().setUp()
        created = mock.patch(f"{SERVICE_MODULE}.notify_business_of_booking")
        confirmed = mock.patch(f"{SERVICE_MODULE}.send_appointment_confirmation")
        self.notify_booking = created.start()
        self.notify_confirmed = confirmed.start()
        self.addCleanup(created.stop)
        self.addCleanup(confirmed.stop)


class TestComposeNotes(unittest.TestCase):

    def test_client_name_prefixes_notes(self):
        self.assertEqual(compose_notes("Ana", "first visit"), "Client Name: Ana\nfirst visit")
        self.assertEqual(compose_notes(None, " first visit "), "first visit")
        self.assertIsNone(compose_notes("  ", None))


class TestCreateAppointment(NotificationPatchMixin, DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.business = self.create_business()
        self.service = self.create_service(self.business, duration_minutes=60)

    def test_books_free_slot_as_pending(self):
        appointment = AppointmentService.create_appointment(
            self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "10:00"),
            notes="please be on time", client_name="Ana"
        )

        self.assertEqual(appointment.status, AppointmentStatus.PENDING.value)
        self.assertEqual(appointment.calendar_id, self.business.id)
        self.assertEqual(appointment.end_time, at(MONDAY, "11:00"))
        self.assertEqual(appointment.notes, "Client Name: Ana\nplease be on time")
        self.notify_booking.delay.assert_called_once_with(appointment.id)

    def test_booked_slot_disappears_from_availability(self):
        AppointmentService.create_appointment(
            self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "10:00")
        )

        result = AvailabilityService.get_availability(self.db, self.business.id, MONDAY, 60)
        self.assertNotIn(at(MONDAY, "10:00"), result.slots)
        self.assertEqual(len(result.slots), 7)

    def test_duration_is_snapshotted(self):
        appointment = AppointmentService.create_appointment(
            self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "09:00")
        )

        self.service.duration_minutes = 30
        self.db.commit()
        self.db.refresh(appointment)

        self.assertEqual(appointment.duration_minutes, 60)
        self.assertEqual(appointment.end_time, at(MONDAY, "10:00"))

    def test_taken_slot_is_rejected_without_writing(self):
        self.book(self.business, self.service, at(MONDAY, "10:00"))

        with self.assertRaises(SlotNoLongerAvailableError):
            AppointmentService.create_appointment(
                self.db, self.business.id, self.service.id, "client-2", at(MONDAY, "10:00")
            )

        self.assertEqual(self.db.query(Appointment).count(), 1)
        self.notify_booking.delay.assert_not_called()

    def test_start_off_the_grid_is_rejected(self):
        with self.assertRaises(SlotNoLongerAvailableError):
            AppointmentService.create_appointment(
                self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "09:30")
            )

    def test_closed_day_is_rejected(self):
        with self.assertRaises(SlotNoLongerAvailableError):
            AppointmentService.create_appointment(
                self.db, self.business.id, self.service.id, "client-1", datetime(2030, 1, 6, 10, 0)
            )

    def test_cancelled_slot_can_be_booked_again(self):
        self.book(self.business, self.service, at(MONDAY, "10:00"), status=AppointmentStatus.CANCELLED)

        appointment = AppointmentService.create_appointment(
            self.db, self.business.id, self.service.id, "client-2", at(MONDAY, "10:00")
        )
        self.assertEqual(appointment.status, AppointmentStatus.PENDING.value)

    def test_staff_calendar_is_independent(self):
        staff = self.create_staff(self.business)
        self.book(self.business, self.service, at(MONDAY, "10:00"))

        appointment = AppointmentService.create_appointment(
            self.db, staff.id, self.service.id, "client-2", at(MONDAY, "10:00")
        )

        self.assertEqual(appointment.calendar_id, staff.id)
        self.assertEqual(appointment.staff_member_id, staff.id)
        self.assertEqual(appointment.business_id, self.business.id)

    def test_service_of_another_business_is_not_found(self):
        other = self.create_business(name="Elsewhere")
        foreign_service = self.create_service(other)

        with self.assertRaises(NotFoundError):
            AppointmentService.create_appointment(
                self.db, self.business.id, foreign_service.id, "client-1", at(MONDAY, "10:00")
            )

    def test_unknown_entity_is_not_found(self):
        with self.assertRaises(NotFoundError):
            AppointmentService.create_appointment(
                self.db, "missing", self.service.id, "client-1", at(MONDAY, "10:00")
            )

    def test_offset_aware_start_is_rejected(self):
        with self.assertRaises(ValidationError):
            AppointmentService.create_appointment(
                self.db, self.business.id, self.service.id, "client-1",
                datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)
            )

    def test_booking_refused_when_appointments_cannot_be_checked(self):
        blind = ValidatedAvailability(
            slots=(),
            diagnostics=AvailabilityDiagnostics(
                entity_id=self.business.id,
                date=MONDAY,
                day_of_week=1,
                duration_minutes=60,
                branch=Branch.APPOINTMENTS_UNAVAILABLE,
                reason=Branch.APPOINTMENTS_UNAVAILABLE,
            )
        )
        with mock.patch.object(AvailabilityService, "get_availability", return_value=blind):
            with self.assertRaises(DataUnavailableError):
                AppointmentService.create_appointment(
                    self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "10:00")
                )

        self.assertEqual(self.db.query(Appointment).count(), 0)

    def test_unique_index_catches_stale_availability(self):
        self.book(self.business, self.service, at(MONDAY, "10:00"), status=AppointmentStatus.PENDING)
        stale = ValidatedAvailability(
            slots=(at(MONDAY, "10:00"),),
            diagnostics=AvailabilityDiagnostics(
                entity_id=self.business.id,
                date=MONDAY,
                day_of_week=1,
                duration_minutes=60,
                branch=Branch.FILTERED,
            )
        )

        with mock.patch.object(AvailabilityService, "get_availability", return_value=stale):
            with self.assertRaises(SlotNoLongerAvailableError):
                AppointmentService.create_appointment(
                    self.db, self.business.id, self.service.id, "client-2", at(MONDAY, "10:00")
                )

        self.assertEqual(self.db.query(Appointment).count(), 1)

    def test_notification_failure_does_not_undo_booking(self):
        self.notify_booking.delay.side_effect = RuntimeError("broker down")

        with self.assertLogs(SERVICE_MODULE, level="ERROR"):
            appointment = AppointmentService.create_appointment(
                self.db, self.business.id, self.service.id, "client-1", at(MONDAY, "10:00")
            )

        stored = self.db.query(Appointment).filter(Appointment.id == appointment.id).one()
        self.assertEqual(stored.status, AppointmentStatus.PENDING.value)


class TestTransitions(NotificationPatchMixin, DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.business = self.create_business()
        self.service = self.create_service(self.business)
        self.appointment = self.book(
            self.business, self.service, at(MONDAY, "10:00"), status=AppointmentStatus.PENDING
        )

    def _transition(self, target, actor=Actor.BUSINESS, actor_id="owner-1", business_id=None, reason=None):
        return AppointmentService.transition_status(
            self.db,
            self.appointment.id,
            target,
            actor=actor,
            actor_id=actor_id,
            business_id=business_id if business_id is not None else self.business.id,
            reason=reason
        )

    def test_confirm_then_complete(self):
        confirmed = self._transition("CONFIRMED")
        self.assertEqual(confirmed.status, "CONFIRMED")
        self.assertIsNotNone(confirmed.confirmed_at)
        self.notify_confirmed.delay.assert_called_once_with(self.appointment.id)

        completed = self._transition(AppointmentStatus.COMPLETED)
        self.assertEqual(completed.status, "COMPLETED")
        self.assertIsNotNone(completed.completed_at)
        self.assertEqual(self.notify_confirmed.delay.call_count, 1)

    def test_invalid_transition_leaves_status_unchanged(self):
        with self.assertRaises(InvalidTransitionError):
            self._transition("COMPLETED")

        self.db.expire_all()
        stored = self.db.query(Appointment).filter(Appointment.id == self.appointment.id).one()
        self.assertEqual(stored.status, "PENDING")
        self.assertIsNone(stored.completed_at)
        self.notify_confirmed.delay.assert_not_called()

    def test_cancel_records_reason(self):
        cancelled = self._transition("CANCELLED", reason="Stylist unavailable")

        self.assertEqual(cancelled.status, "CANCELLED")
        self.assertEqual(cancelled.cancellation_reason, "Stylist unavailable")
        self.assertIsNotNone(cancelled.cancelled_at)

    def test_business_actor_without_business_is_forbidden(self):
        with self.assertRaises(PermissionDeniedError):
            AppointmentService.transition_status(
                self.db, self.appointment.id, "CONFIRMED", actor=Actor.BUSINESS, actor_id="owner-1"
            )

    def test_other_business_cannot_touch_appointment(self):
        with self.assertRaises(NotFoundError):
            self._transition("CONFIRMED", business_id="someone-else")

    def test_client_cancels_own_appointment(self):
        cancelled = AppointmentService.cancel_by_client(self.db, self.appointment.id, "client-1", reason="sick")
        self.assertEqual(cancelled.status, "CANCELLED")

    def test_client_cannot_cancel_someone_elses(self):
        with self.assertRaises(NotFoundError):
            AppointmentService.cancel_by_client(self.db, self.appointment.id, "client-2")

    def test_client_cannot_confirm(self):
        with self.assertRaises(InvalidTransitionError):
            self._transition("CONFIRMED", actor=Actor.CLIENT, actor_id="client-1")

    def test_confirmation_dispatch_failure_keeps_new_status(self):
        self.notify_confirmed.delay.side_effect = RuntimeError("broker down")

        with self.assertLogs(SERVICE_MODULE, level="ERROR"):
            confirmed = self._transition("CONFIRMED")

        self.assertEqual(confirmed.status, "CONFIRMED")


class TestCalendarLock(unittest.TestCase):

    def test_busy_calendar_times_out_as_retryable_conflict(self):
        with calendar_lock("calendar-busy"):
            with self.assertRaises(SlotNoLongerAvailableError):
                with calendar_lock("calendar-busy", timeout=0.05):
                    pass

    def test_different_calendars_do_not_contend(self):
        with calendar_lock("calendar-a"):
            with calendar_lock("calendar-b", timeout=0.05):
                pass


class TestConcurrentBooking(NotificationPatchMixin, DatabaseTestCase):
    """Two clients racing for the last slot of the day"""

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.database_url = f"sqlite:///{self.db_path}"
        super().setUp()
        self.business = self.create_business(hours={1: ("09:00", "10:00")})
        self.service = self.create_service(self.business)
        # loaded once here; the racing threads must not refresh through self.db
        self.business_id = self.business.id
        self.service_id = self.service.id

    def tearDown(self):
        super().tearDown()
        os.remove(self.db_path)

    def test_exactly_one_booking_wins(self):
        barrier = threading.Barrier(2)
        outcomes = []
        outcomes_lock = threading.Lock()

        def attempt(client_id):
            session = self.Session()
            try:
                barrier.wait()
                appointment = AppointmentService.create_appointment(
                    session, self.business_id, self.service_id, client_id, at(MONDAY, "09:00")
                )
                result = ("booked", appointment.status)
            except SlotNoLongerAvailableError:
                result = ("rejected", None)
            finally:
                session.close()
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(f"client-{i}",)) for i in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), [("booked", "PENDING"), ("rejected", None)])
        self.db.expire_all()
        self.assertEqual(self.db.query(Appointment).count(), 1)

    def test_overlapping_durations_across_processes(self):
        """Without the in-process lock, as with separate workers, the store still serializes writers"""
        short_service = self.create_service(self.business, duration_minutes=30, name="Trim")
        short_service_id = short_service.id
        self.db.query(WorkingHours).filter(WorkingHours.entity_id == self.business_id).update(
            {"end_time": "11:00"}
        )
        self.db.commit()

        barrier = threading.Barrier(2)
        outcomes = []
        outcomes_lock = threading.Lock()

        def attempt(client_id, service_id, start):
            session = self.Session()
            try:
                barrier.wait()
                AppointmentService.create_appointment(session, self.business_id, service_id, client_id, start)
                result = "booked"
            except SlotNoLongerAvailableError:
                result = "rejected"
            finally:
                session.close()
            with outcomes_lock:
                outcomes.append(result)

        threads = [
            threading.Thread(target=attempt, args=("client-1", self.service_id, at(MONDAY, "09:00"))),
            threading.Thread(target=attempt, args=("client-2", short_service_id, at(MONDAY, "09:30"))),
        ]
        with mock.patch(f"{SERVICE_MODULE}.calendar_lock", side_effect=lambda *args, **kwargs: nullcontext()):
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["booked", "rejected"])

        self.db.expire_all()
        active = self.db.query(Appointment).filter(
            Appointment.status.in_(("PENDING", "CONFIRMED"))
        ).all()
        self.assertEqual(len(active), 1)
        for i, first in enumerate(active):
            for second in active[i + 1:]:
                self.assertFalse(intervals_overlap(
                    first.start_time, first.end_time, second.start_time, second.end_time
                ))


if __name__ == "__main__":
    unittest.main()
