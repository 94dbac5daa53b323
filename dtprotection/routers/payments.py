import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import config, models, schemas
from ..auth import get_current_admin
from ..billing import minimum_deposit, next_invoice_number, payment_schedule, validate_deposit
from ..database import get_db
from ..email_service import service_title
from ..notifications import notify_invoice_sent
from ..paypal_service import PayPalError, paypal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def _free_invoice_number(db: Session) -> str:
    count = db.query(models.Invoice).count()
    number = next_invoice_number(count)
    while db.query(models.Invoice).filter(models.Invoice.invoice_number == number).first():
        count += 1
        number = next_invoice_number(count)
    return number


@router.post("/create-invoice", response_model=schemas.InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: schemas.InvoiceCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    """Create a draft invoice for a booking

    A repeated Idempotency-Key returns the invoice created for it the first time.
    """
    if idempotency_key:
        existing = db.query(models.Invoice).filter(models.Invoice.idempotency_key == idempotency_key).first()
        if existing:
            logger.info(f"Idempotent replay of invoice {existing.invoice_number}")
            response.status_code = status.HTTP_200_OK
            return existing

    booking = db.get(models.Booking, invoice_data.booking_id)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    total = invoice_data.total_amount
    deposit = invoice_data.deposit_amount or minimum_deposit(total, config.DEPOSIT_PERCENTAGE)
    try:
        validate_deposit(total, deposit, config.DEPOSIT_PERCENTAGE)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if deposit > total:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Deposit cannot exceed total amount")

    if invoice_data.invoice_number:
        taken = db.query(models.Invoice).filter(
            models.Invoice.invoice_number == invoice_data.invoice_number
        ).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice number already exists")
        invoice_number = invoice_data.invoice_number
    else:
        invoice_number = _free_invoice_number(db)

    invoice = models.Invoice(
        booking_id=booking.id,
        invoice_number=invoice_number,
        amount=total,
        deposit_amount=deposit,
        due_date=invoice_data.due_date or date.today() + timedelta(days=config.INVOICE_DUE_DAYS),
        payment_method=invoice_data.payment_method,
        notes=invoice_data.notes,
        idempotency_key=idempotency_key,
    )

    if paypal_service.enabled and invoice.payment_method == "paypal":
        service_name = service_title(invoice_data.service_type or booking.service_type)
        try:
            invoice.paypal_invoice_id = await paypal_service.create_invoice(booking, invoice, service_name)
        except PayPalError as e:
            logger.warning(f"Invoice {invoice_number} kept local only: {e}")

    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if idempotency_key:
            existing = db.query(models.Invoice).filter(models.Invoice.idempotency_key == idempotency_key).first()
            if existing:
                response.status_code = status.HTTP_200_OK
                return existing
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invoice could not be created, please retry"
        )
    db.refresh(invoice)

    logger.info(f"Invoice {invoice.invoice_number} created for booking {booking.id} by {admin.username}")
    return invoice


@router.post("/send-invoice/{invoice_id}", response_model=schemas.InvoiceActionResponse)
async def send_invoice(
    invoice_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: models.Admin = Depends(get_current_admin)
):
    """Mark an invoice as sent and email it to the client"""
    invoice = db.get(models.Invoice, invoice_id)
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if invoice.status in ("paid", "cancelled"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invoice is already {invoice.status}"
        )

    if invoice.paypal_invoice_id:
        try:
            await paypal_service.send_invoice(invoice.paypal_invoice_id)
        except PayPalError as e:
            logger.error(f"PayPal send failed for {invoice.invoice_number}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to send invoice through PayPal"
            )

    invoice.status = "sent"
    db.commit()
    db.refresh(invoice)

    logger.info(f"Invoice {invoice.invoice_number} sent by {admin.username}")
    background_tasks.add_task(notify_invoice_sent, invoice.id)

    return {"message": "Invoice sent successfully", "invoice": invoice}


@router.post("/webhook", response_model=schemas.WebhookResponse)
async def paypal_webhook(request: Request, db: Session = Depends(get_db)):
    """PayPal event notifications"""
    try:
        event = await request.json()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload")

    try:
        verified = await paypal_service.verify_webhook(request.headers, event)
    except PayPalError as e:
        logger.error(f"Webhook verification failed: {e}")
        verified = False
    if not verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    result = paypal_service.parse_webhook(event)

    if result.type == "invoice_paid":
        invoice = db.query(models.Invoice).filter(
            models.Invoice.paypal_invoice_id == result.resource_id
        ).first()
        if invoice is None:
            logger.warning(f"Paid PayPal invoice {result.resource_id} has no local invoice")
        else:
            now = datetime.utcnow()
            invoice.status = "paid"
            invoice.paid_date = now

            payment = invoice.booking.payment
            if payment is None:
                payment = models.Payment(total_amount=invoice.amount, deposit_amount=invoice.deposit_amount)
                invoice.booking.payment = payment
            payment.status = "paid"
            payment.paid_amount = invoice.amount
            payment.paid_date = now
            db.commit()
            logger.info(f"Invoice {invoice.invoice_number} paid via PayPal")
    elif result.type == "payment_completed":
        logger.info(f"PayPal capture {result.resource_id} completed for {result.amount}")
    else:
        logger.info(result.message)

    return {"received": True, "type": result.type, "message": result.message}


@router.get("/schedule", response_model=schemas.PaymentScheduleResponse)
def get_payment_schedule(total_amount: float = Query(..., alias="totalAmount", gt=0)):
    """Deposit and final payment split for a quoted total"""
    return payment_schedule(total_amount, config.DEPOSIT_PERCENTAGE)
