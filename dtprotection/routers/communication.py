import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import email_service, models, schemas
from ..auth import get_current_admin
from ..database import get_db
from ..sms_service import sms_service
from ..validators import format_phone_number, is_valid_us_phone

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/communication",
    tags=["Communication"],
    dependencies=[Depends(get_current_admin)],
)


def _booking(db: Session, booking_id: str) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


def _invoice(db: Session, invoice_id: str) -> models.Invoice:
    invoice = db.get(models.Invoice, invoice_id)
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _result(sent: bool, what: str) -> dict:
    if not sent:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to send {what}")
    return {"message": f"{what[0].upper()}{what[1:]} sent successfully"}


# Email

@router.post("/email/booking-confirmation", response_model=schemas.MessageResponse)
async def email_booking_confirmation(request: schemas.BookingNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    return _result(await email_service.send_booking_confirmation(booking), "booking confirmation email")


@router.post("/email/payment-reminder", response_model=schemas.MessageResponse)
async def email_payment_reminder(request: schemas.BookingNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    invoice = _invoice(db, request.invoice_id) if request.invoice_id else None
    return _result(await email_service.send_payment_reminder(booking, invoice), "payment reminder email")


@router.post("/email/invoice-notification", response_model=schemas.MessageResponse)
async def email_invoice_notification(request: schemas.InvoiceNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    invoice = _invoice(db, request.invoice_id)
    return _result(await email_service.send_invoice_notification(booking, invoice), "invoice notification email")


@router.post("/email/status-update", response_model=schemas.MessageResponse)
async def email_status_update(request: schemas.StatusNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    return _result(await email_service.send_status_update(booking, request.status), "status update email")


@router.post("/email/custom", response_model=schemas.MessageResponse)
async def email_custom(request: schemas.CustomEmailRequest):
    """Free-form email; ``html`` wins over the plain ``message`` when given"""
    if request.html:
        sent = await email_service.send_email(request.to, request.subject, request.html)
    else:
        text = f"Dear {request.to_name},\n\n{request.message}" if request.to_name else request.message
        sent = await email_service.send_plain_email(request.to, request.subject, text)
    return _result(sent, "custom email")


@router.get("/email/test-connection", response_model=schemas.MessageResponse)
async def email_test_connection():
    if not await email_service.verify_connection():
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Email service connection failed")
    return {"message": "Email service connection successful"}


# SMS

@router.post("/sms/booking-confirmation", response_model=schemas.MessageResponse)
async def sms_booking_confirmation(request: schemas.BookingNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    return _result(await sms_service.send_booking_confirmation(booking), "booking confirmation SMS")


@router.post("/sms/payment-reminder", response_model=schemas.MessageResponse)
async def sms_payment_reminder(request: schemas.BookingNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    invoice = _invoice(db, request.invoice_id) if request.invoice_id else None
    return _result(await sms_service.send_payment_reminder(booking, invoice), "payment reminder SMS")


@router.post("/sms/status-update", response_model=schemas.MessageResponse)
async def sms_status_update(request: schemas.StatusNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    return _result(await sms_service.send_status_update(booking, request.status), "status update SMS")


@router.post("/sms/urgent-reminder", response_model=schemas.MessageResponse)
async def sms_urgent_reminder(request: schemas.BookingNotificationRequest, db: Session = Depends(get_db)):
    booking = _booking(db, request.booking_id)
    return _result(await sms_service.send_urgent_reminder(booking), "urgent reminder SMS")


@router.post("/sms/custom", response_model=schemas.MessageResponse)
async def sms_custom(request: schemas.CustomSmsRequest):
    """US numbers only, sent in E.164 form"""
    if not is_valid_us_phone(request.to):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid phone number is required")
    sent = await sms_service.send_sms(format_phone_number(request.to), request.message, priority=request.priority)
    return _result(sent, "custom SMS")


@router.get("/sms/test-connection", response_model=schemas.MessageResponse)
async def sms_test_connection():
    if not await sms_service.verify_connection():
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="SMS service connection failed")
    return {"message": "SMS service connection successful"}


# Preferences

@router.get("/preferences/{booking_id}", response_model=schemas.PreferencesResponse)
def get_preferences(booking_id: str, db: Session = Depends(get_db)):
    return {"preferences": _booking(db, booking_id).communication_preferences}


@router.patch("/preferences/{booking_id}", response_model=schemas.PreferencesResponse)
def update_preferences(booking_id: str, update: schemas.PreferencesPatch, db: Session = Depends(get_db)):
    booking = _booking(db, booking_id)
    for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(booking, field, value)
    db.commit()
    db.refresh(booking)

    logger.info(f"Communication preferences updated for booking {booking.id}")
    return {"preferences": booking.communication_preferences}
