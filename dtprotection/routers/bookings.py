import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from sqlalchemy.orm import Session

from .. import config, models, schemas
from ..auth import get_current_admin
from ..billing import quote_booking
from ..database import get_db
from ..notifications import notify_new_booking, notify_status_change

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_or_404(db: Session, booking_id: str) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.post("", response_model=schemas.BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: schemas.BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Public booking request; quotes the payment and notifies client and staff"""
    total, deposit = quote_booking(
        booking.number_of_guards,
        booking.start_time,
        booking.end_time,
        config.GUARD_HOURLY_RATE,
        config.DEPOSIT_PERCENTAGE,
    )

    prefs = booking.communication_preferences or schemas.CommunicationPreferences()
    db_booking = models.Booking(
        client_name=booking.client_name,
        email=booking.email.lower(),
        phone=booking.phone,
        service_type=booking.service_type,
        date=booking.date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        venue_address=booking.venue_address,
        number_of_guards=booking.number_of_guards,
        special_requirements=booking.special_requirements,
        email_notifications=prefs.email_notifications,
        sms_notifications=prefs.sms_notifications,
        preferred_contact=prefs.preferred_contact,
    )
    db_booking.payment = models.Payment(total_amount=total, deposit_amount=deposit)
    db.add(db_booking)
    db.commit()
    db.refresh(db_booking)

    logger.info(f"Booking {db_booking.id} created for {db_booking.service_type} on {db_booking.date}")
    background_tasks.add_task(notify_new_booking, db_booking.id)

    return db_booking


@router.get("", response_model=List[schemas.BookingResponse])
def list_bookings(
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    """All bookings ordered by event date"""
    return db.query(models.Booking).order_by(models.Booking.date, models.Booking.created_at).all()


@router.get("/{booking_id}", response_model=schemas.BookingResponse)
def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    return get_booking_or_404(db, booking_id)


@router.patch("/{booking_id}/status", response_model=schemas.BookingResponse)
async def update_booking_status(
    booking_id: str,
    update: schemas.BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    """Approve, reject, complete or cancel a booking"""
    if not update.status:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status is required")
    if update.status not in models.BOOKING_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status value")

    booking = get_booking_or_404(db, booking_id)
    old_status = booking.status
    booking.status = update.status
    if update.admin_notes:
        booking.admin_notes = update.admin_notes
    db.commit()
    db.refresh(booking)

    logger.info(f"Booking {booking.id} status {old_status} -> {booking.status} by {admin.username}")
    if old_status != booking.status:
        background_tasks.add_task(notify_status_change, booking.id, old_status, admin.username)

    return booking
