import logging
import math
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import create_client_token, get_current_client
from ..database import get_db
from ..validators import is_valid_booking_id, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/client", tags=["Client portal"])

UNPAID_INVOICE_STATUSES = ("draft", "sent", "overdue")


def client_bookings(db: Session, email: str):
    return db.query(models.Booking).filter(func.lower(models.Booking.email) == email.lower())


def client_invoices(db: Session, email: str):
    return db.query(models.Invoice).join(models.Booking).filter(
        func.lower(models.Booking.email) == email.lower()
    )


def pagination(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)}


@router.post("/login", response_model=schemas.ClientLoginResponse)
def client_login(login_data: schemas.ClientLoginRequest, db: Session = Depends(get_db)):
    """Log in with the email used for a booking and its booking id"""
    email = (login_data.email or "").strip()
    booking_id = (login_data.booking_id or "").strip()

    if not email or not booking_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and booking ID are required")
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    booking = db.get(models.Booking, booking_id) if is_valid_booking_id(booking_id) else None
    if booking is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid booking ID")
    if booking.email.lower() != email.lower():
        logger.warning(f"Client login email mismatch for booking {booking.id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return {
        "success": True,
        "token": create_client_token(booking),
        "client": {"id": booking.id, "name": booking.client_name, "email": booking.email},
    }


@router.get("/profile", response_model=schemas.ClientProfile)
def get_profile(db: Session = Depends(get_db), client: dict = Depends(get_current_client)):
    bookings = client_bookings(db, client["email"]).order_by(models.Booking.created_at.desc()).all()
    latest = bookings[0] if bookings else None

    total_spent = sum(
        b.payment.total_amount for b in bookings
        if b.status == "completed" and b.payment
    )

    return {
        "id": client["id"],
        "name": latest.client_name if latest else "Unknown",
        "email": client["email"],
        "phone": latest.phone if latest else "",
        "active_bookings": sum(1 for b in bookings if b.status in models.ACTIVE_BOOKING_STATUSES),
        "total_bookings": len(bookings),
        "total_spent": total_spent,
        "communication_preferences": {
            "email": latest.email_notifications if latest else True,
            "sms": latest.sms_notifications if latest else False,
        },
        "last_login": datetime.utcnow(),
    }


@router.put("/preferences", response_model=schemas.ClientPreferencesResponse)
def update_preferences(
    update: schemas.ClientPreferencesUpdate,
    db: Session = Depends(get_db),
    client: dict = Depends(get_current_client)
):
    """Apply notification preferences to every booking of the client"""
    prefs = update.communication_preferences
    if prefs is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Communication preferences are required")
    if not isinstance(prefs.get("email"), bool) or not isinstance(prefs.get("sms"), bool):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid preferences format")

    for booking in client_bookings(db, client["email"]).all():
        booking.email_notifications = prefs["email"]
        booking.sms_notifications = prefs["sms"]
    db.commit()

    return {"success": True, "communication_preferences": {"email": prefs["email"], "sms": prefs["sms"]}}


@router.get("/bookings", response_model=schemas.ClientBookingsResponse)
def list_client_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    client: dict = Depends(get_current_client)
):
    query = client_bookings(db, client["email"])
    if status_filter and status_filter != "all":
        query = query.filter(models.Booking.status == status_filter)

    total = query.count()
    bookings = query.order_by(models.Booking.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {"bookings": bookings, "pagination": pagination(page, limit, total)}


@router.get("/bookings/{booking_id}", response_model=schemas.BookingResponse)
def get_client_booking(booking_id: str, db: Session = Depends(get_db), client: dict = Depends(get_current_client)):
    booking = client_bookings(db, client["email"]).filter(models.Booking.id == booking_id).first()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.get("/invoices", response_model=schemas.ClientInvoicesResponse)
def list_client_invoices(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    client: dict = Depends(get_current_client)
):
    query = client_invoices(db, client["email"])
    if status_filter and status_filter != "all":
        query = query.filter(models.Invoice.status == status_filter)

    total = query.count()
    invoices = query.order_by(models.Invoice.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {"invoices": invoices, "pagination": pagination(page, limit, total)}


@router.get("/invoices/{invoice_id}", response_model=schemas.InvoiceResponse)
def get_client_invoice(invoice_id: str, db: Session = Depends(get_db), client: dict = Depends(get_current_client)):
    invoice = client_invoices(db, client["email"]).filter(models.Invoice.id == invoice_id).first()
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("/statistics", response_model=schemas.ClientStatistics)
def get_statistics(db: Session = Depends(get_db), client: dict = Depends(get_current_client)):
    """Booking counts by status and invoice totals for the client dashboard"""
    bookings = client_bookings(db, client["email"]).all()
    invoices = client_invoices(db, client["email"]).all()
    today = date.today()

    booking_stats = {s: sum(1 for b in bookings if b.status == s) for s in models.BOOKING_STATUSES}
    booking_stats["total"] = len(bookings)
    booking_stats["upcoming"] = sum(1 for b in bookings if b.date > today)

    paid = [i for i in invoices if i.status == "paid"]
    unpaid = [i for i in invoices if i.status in UNPAID_INVOICE_STATUSES]

    return {
        "booking_stats": booking_stats,
        "payment_stats": {
            "total_invoices": len(invoices),
            "paid_invoices": len(paid),
            "pending_invoices": len(unpaid),
            "overdue_invoices": sum(1 for i in unpaid if i.due_date < today),
            "total_paid": sum(i.amount for i in paid),
            "total_pending": sum(i.amount for i in unpaid),
        },
    }
