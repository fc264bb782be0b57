# ===== booking_api/tasks/notification_tasks.py =====
"""
Post-commit notifications.

The booking and confirmation writes never wait on these; a missing sink or a
failed delivery is logged and retried here, never surfaced to the caller.
"""
import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from booking_api.config.celery_config import celery_app
from booking_api.config.database import SessionLocal
from booking_api.config.settings import get_settings
from booking_api.models.appointment import Appointment

logger = logging.getLogger(__name__)

EVENT_CREATED = "appointment.created"
EVENT_CONFIRMED = "appointment.confirmed"


def build_notification_payload(event_type: str, appointment: Appointment) -> Dict[str, Any]:
    """Build the notification payload in a consistent format."""
    service = appointment.service
    business = appointment.business
    return {
        "event": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "business_id": appointment.business_id,
        "data": {
            "appointment_id": appointment.id,
            "client_id": appointment.client_id,
            "staff_member_id": appointment.staff_member_id,
            "start_time": appointment.start_time.isoformat(),
            "end_time": appointment.end_time.isoformat(),
            "status": appointment.status,
            "notes": appointment.notes,
            "service": service.name if service else None,
            "business_name": business.name if business else None,
            "business_email": business.email if business else None,
        }
    }


def sign_payload(payload_json: str, secret: str) -> str:
    """HMAC-SHA256 signature so the receiver can verify the sender."""
    signature = hmac.new(
        secret.encode(),
        payload_json.encode(),
        hashlib.sha256
    ).hexdigest()
    return f"sha256={signature}"


def deliver_notification(event_type: str, appointment_id: str) -> Dict[str, Any]:
    """Load the appointment and POST the payload to the configured sink."""
    settings = get_settings()
    db = SessionLocal()
    try:
        appointment: Optional[Appointment] = db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            logger.error(f"Appointment {appointment_id} not found for {event_type}")
            return {"status": "failed", "reason": "appointment_not_found"}

        payload = build_notification_payload(event_type, appointment)
    finally:
        db.close()

    if not settings.NOTIFICATION_WEBHOOK_URL:
        logger.warning(f"Notification sink not configured; skipping {event_type} for {appointment_id}")
        return {"status": "skipped", "reason": "sink_not_configured"}

    payload_json = json.dumps(payload)
    headers = {
        "Content-Type": "application/json",
        "X-Booking-Event": event_type,
        "X-Booking-Signature": sign_payload(payload_json, settings.NOTIFICATION_WEBHOOK_SECRET),
    }

    with httpx.Client(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS) as client:
        response = client.post(settings.NOTIFICATION_WEBHOOK_URL, content=payload_json, headers=headers)
        response.raise_for_status()

    logger.info(f"Delivered {event_type} for appointment {appointment_id} ({response.status_code})")
    return {"status": "delivered", "status_code": response.status_code}


@celery_app.task(bind=True, max_retries=3)
def notify_business_of_booking(self, appointment_id: str):
    """Tell the business a client requested a slot"""
    try:
        return deliver_notification(EVENT_CREATED, appointment_id)
    except httpx.HTTPError as exc:
        logger.error(f"Booking notification failed for appointment {appointment_id}: {exc}")
        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))


@celery_app.task(bind=True, max_retries=3)
def send_appointment_confirmation(self, appointment_id: str):
    """Tell the client their appointment was confirmed"""
    try:
        return deliver_notification(EVENT_CONFIRMED, appointment_id)
    except httpx.HTTPError as exc:
        logger.error(f"Confirmation notification failed for appointment {appointment_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
