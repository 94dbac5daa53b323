"""
Background notification tasks

Tasks receive ids and load rows in their own session because they run after
the request session is closed.
"""
import logging

from . import models
from .database import SessionLocal
from . import email_service
from .sms_service import sms_service
from .telegram_service import telegram_notifier

logger = logging.getLogger(__name__)


async def notify_new_booking(booking_id: str) -> None:
    """Confirmation to the client, heads-up to staff"""
    db = SessionLocal()
    try:
        booking = db.get(models.Booking, booking_id)
        if booking is None:
            logger.warning(f"Booking {booking_id} vanished before notification")
            return

        if booking.email_notifications:
            await email_service.send_booking_confirmation(booking)
        if booking.sms_notifications:
            await sms_service.send_booking_confirmation(booking)
        await telegram_notifier.send_new_booking_notification(booking)
    finally:
        db.close()


async def notify_status_change(booking_id: str, old_status: str, admin_username: str) -> None:
    db = SessionLocal()
    try:
        booking = db.get(models.Booking, booking_id)
        if booking is None:
            return

        if booking.email_notifications:
            await email_service.send_status_update(booking, booking.status)
        if booking.sms_notifications:
            await sms_service.send_status_update(booking, booking.status)
        await telegram_notifier.send_status_change_notification(booking, old_status, admin_username)
    finally:
        db.close()


async def notify_invoice_sent(invoice_id: str) -> None:
    db = SessionLocal()
    try:
        invoice = db.get(models.Invoice, invoice_id)
        if invoice is None:
            return
        await email_service.send_invoice_notification(invoice.booking, invoice)
    finally:
        db.close()
