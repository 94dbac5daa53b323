import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import (
    create_admin_token,
    get_current_admin,
    get_password_hash,
    require_super_admin,
    verify_password,
)
from ..billing import format_currency, summarize_payments
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def payment_row(booking: models.Booking) -> schemas.PaymentRow:
    """Flatten a booking and its payment into a payments table row"""
    payment = booking.payment or models.Payment(total_amount=0, deposit_amount=0, paid_amount=0)
    return schemas.PaymentRow(
        id=payment.id or booking.id,
        booking_id=booking.id,
        client_name=booking.client_name,
        email=booking.email,
        total_amount=payment.total_amount or 0,
        deposit_amount=payment.deposit_amount or 0,
        paid_amount=payment.paid_amount or 0,
        remaining=payment.remaining,
        status=payment.status or "pending",
        method=payment.method or "paypal",
        due_date=booking.date,
        created_at=booking.created_at,
    )


@router.post("/login", response_model=schemas.AdminLoginResponse)
def admin_login(login_data: schemas.AdminLoginRequest, db: Session = Depends(get_db)):
    """Log in with username (or email) and password"""
    admin = db.query(models.Admin).filter(
        or_(models.Admin.username == login_data.username, models.Admin.email == login_data.username.lower())
    ).first()

    if not admin or not admin.is_active or not verify_password(login_data.password, admin.password_hash):
        logger.warning(f"Failed admin login for {login_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    admin.last_login = datetime.utcnow()
    db.commit()
    db.refresh(admin)

    return {"message": "Login successful", "token": create_admin_token(admin), "admin": admin}


@router.get("/verify", response_model=schemas.AdminVerifyResponse)
def verify(admin: models.Admin = Depends(get_current_admin)):
    return {"message": "Token valid", "admin": admin}


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(admin: models.Admin = Depends(get_current_admin)):
    """Tokens are stateless; the client discards its copy"""
    return {"message": "Logout successful"}


@router.get("/dashboard", response_model=schemas.AdminDashboardResponse)
def dashboard(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    """Headline numbers and the ten most recent requests"""
    bookings = db.query(models.Booking)
    approved = bookings.filter(models.Booking.status == "approved").all()
    total_revenue = sum(b.payment.paid_amount for b in approved if b.payment and b.payment.paid_amount > 0)

    recent = bookings.order_by(models.Booking.created_at.desc()).limit(10).all()

    return schemas.AdminDashboardResponse(
        total_requests=bookings.count(),
        pending_requests=bookings.filter(models.Booking.status == "pending").count(),
        approved_requests=len(approved),
        total_revenue=total_revenue,
        recent_requests=[
            schemas.RecentRequest(
                id=b.id,
                client_name=b.client_name,
                date=b.date,
                status=b.status,
                amount=b.payment.total_amount if b.payment else 0,
                paid_amount=b.payment.paid_amount if b.payment else 0,
            )
            for b in recent
        ],
    )


# Admin accounts

@router.get("/admins", response_model=List[schemas.AdminPublic])
def list_admins(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    return db.query(models.Admin).order_by(models.Admin.created_at.desc()).all()


@router.post("/admins", response_model=schemas.AdminCreateResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    admin_data: schemas.AdminCreate,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(require_super_admin)
):
    """Create a staff account (super admin only)"""
    email = admin_data.email.lower()
    existing = db.query(models.Admin).filter(
        or_(models.Admin.username == admin_data.username, models.Admin.email == email)
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin with this username or email already exists"
        )

    new_admin = models.Admin(
        username=admin_data.username,
        email=email,
        password_hash=get_password_hash(admin_data.password),
        role=admin_data.role,
    )
    db.add(new_admin)
    db.commit()
    db.refresh(new_admin)

    logger.info(f"Admin {new_admin.username} ({new_admin.role}) created by {current_admin.username}")
    return {"message": "Admin created successfully", "admin": new_admin}


@router.patch("/admins/{admin_id}/status", response_model=schemas.AdminStatusResponse)
def update_admin_status(
    admin_id: str,
    update: schemas.AdminStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: models.Admin = Depends(require_super_admin)
):
    target = db.get(models.Admin, admin_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    if target.id == current_admin.id and not update.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")

    target.is_active = update.is_active
    db.commit()
    db.refresh(target)
    return {"message": "Admin status updated successfully", "admin": target}


@router.patch("/change-password", response_model=schemas.MessageResponse)
def change_password(
    password_data: schemas.PasswordChange,
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    if not password_data.current_password or not password_data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password and new password are required"
        )
    if len(password_data.new_password) < 8:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be at least 8 characters"
        )
    if not verify_password(password_data.current_password, admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    admin.password_hash = get_password_hash(password_data.new_password)
    db.commit()
    return {"message": "Password updated successfully"}


# Bookings, payments and invoices for the admin portal

@router.get("/bookings", response_model=schemas.AdminBookingsResponse)
def admin_bookings(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    bookings = db.query(models.Booking).order_by(models.Booking.created_at.desc()).all()
    return {"bookings": bookings}


@router.get("/payments", response_model=schemas.PaymentsListResponse)
def admin_payments(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    """One row per booking with its payment amounts and clamped balance"""
    bookings = db.query(models.Booking).order_by(models.Booking.created_at.desc()).all()
    return schemas.PaymentsListResponse(payments=[payment_row(b) for b in bookings])


@router.get("/payments/summary", response_model=schemas.PaymentSummaryResponse)
def admin_payments_summary(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    summary = summarize_payments(db.query(models.Payment).all(), db.query(models.Invoice).all())
    return schemas.PaymentSummaryResponse(
        total_revenue=summary.total_revenue,
        formatted_revenue=format_currency(summary.total_revenue),
        pending_count=summary.pending_count,
        overdue_count=summary.overdue_count,
        active_invoice_count=summary.active_invoice_count,
    )


@router.patch("/payments/{booking_id}", response_model=schemas.PaymentRow)
def update_payment(
    booking_id: str,
    update: schemas.PaymentUpdate,
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    """Edit payment fields; status is stored as given, not derived from amounts"""
    booking = db.get(models.Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    payment = booking.payment
    if payment is None:
        payment = models.Payment(booking_id=booking.id, total_amount=0, deposit_amount=0)
        booking.payment = payment

    for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(payment, field, value)
    if update.status == "paid" and payment.paid_date is None:
        payment.paid_date = datetime.utcnow()

    db.commit()
    db.refresh(booking)
    logger.info(f"Payment for booking {booking.id} updated by {admin.username}")
    return payment_row(booking)


@router.get("/invoices", response_model=schemas.InvoicesListResponse)
def admin_invoices(db: Session = Depends(get_db), admin: models.Admin = Depends(get_current_admin)):
    invoices = db.query(models.Invoice).order_by(models.Invoice.created_at.desc()).all()
    return {"invoices": invoices}
