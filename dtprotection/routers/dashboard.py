"""
Admin dashboard analytics and exports
"""
import csv
import io
import logging
import math
from collections import defaultdict
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_admin
from ..billing import round_cents
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
    dependencies=[Depends(get_current_admin)],
)

SORT_FIELDS = {
    "createdAt": models.Booking.created_at,
    "date": models.Booking.date,
    "clientName": models.Booking.client_name,
    "status": models.Booking.status,
    "serviceType": models.Booking.service_type,
}

EXPORT_HEADERS = [
    "Booking ID",
    "Client Name",
    "Email",
    "Phone",
    "Service Type",
    "Event Date",
    "Start Time",
    "End Time",
    "Number of Guards",
    "Venue",
    "Status",
    "Total Amount",
    "Deposit Amount",
    "Paid Amount",
    "Payment Status",
    "Created At",
]


def _rate(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _deposit_paid(payment: Optional[models.Payment]) -> bool:
    return bool(payment and payment.deposit_amount and payment.paid_amount >= payment.deposit_amount)


def _fully_paid(payment: Optional[models.Payment]) -> bool:
    return bool(payment and (payment.status == "paid" or (payment.total_amount and payment.remaining == 0)))


def _booking_total(booking: models.Booking) -> float:
    return booking.payment.total_amount if booking.payment else 0.0


def _period_key(created, period: str) -> str:
    if period == "weekly":
        year, week, _ = created.isocalendar()
        return f"{year}-W{week:02d}"
    return f"{created.year}-{created.month:02d}"


def _service_rows(bookings) -> list:
    grouped = defaultdict(lambda: {"count": 0, "revenue": 0.0})
    for booking in bookings:
        row = grouped[booking.service_type]
        row["count"] += 1
        row["revenue"] += _booking_total(booking)
    return [
        {"service_type": service, "count": row["count"], "revenue": round_cents(row["revenue"])}
        for service, row in grouped.items()
    ]


@router.get("/overview", response_model=schemas.DashboardOverview)
def overview(db: Session = Depends(get_db)):
    """Counts, status distribution and collection rates"""
    bookings = db.query(models.Booking).all()

    status_counts = db.query(models.Booking.status, func.count(models.Booking.id)).group_by(models.Booking.status).all()
    revenue = db.query(
        models.Invoice.status, func.sum(models.Invoice.amount), func.count(models.Invoice.id)
    ).group_by(models.Invoice.status).all()

    return {
        "total_bookings": len(bookings),
        "total_invoices": db.query(models.Invoice).count(),
        "total_admins": db.query(models.Admin).count(),
        "booking_statuses": [{"status": s, "count": c} for s, c in status_counts],
        "revenue_by_status": [
            {"status": s, "total": round_cents(total or 0), "count": c} for s, total, c in revenue
        ],
        "deposit_collection_rate": _rate(sum(1 for b in bookings if _deposit_paid(b.payment)), len(bookings)),
        "final_payment_rate": _rate(sum(1 for b in bookings if _fully_paid(b.payment)), len(bookings)),
    }


@router.get("/analytics/revenue", response_model=schemas.RevenueAnalytics)
def revenue_analytics(
    period: Literal["monthly", "weekly"] = "monthly",
    db: Session = Depends(get_db)
):
    """Quoted revenue per month or ISO week, and per service type"""
    bookings = db.query(models.Booking).order_by(models.Booking.created_at).all()

    per_period = {}
    for booking in bookings:
        key = _period_key(booking.created_at, period)
        row = per_period.setdefault(key, {"period": key, "revenue": 0.0, "count": 0})
        row["revenue"] += _booking_total(booking)
        row["count"] += 1
    for row in per_period.values():
        row["revenue"] = round_cents(row["revenue"])

    return {
        "period": period,
        "revenue_by_period": list(per_period.values()),
        "service_distribution": _service_rows(bookings),
    }


@router.get("/analytics/performance", response_model=schemas.PerformanceAnalytics)
def performance_analytics(db: Session = Depends(get_db)):
    bookings = db.query(models.Booking).all()
    total_revenue = round_cents(sum(_booking_total(b) for b in bookings))
    deposits_paid = sum(1 for b in bookings if _deposit_paid(b.payment))
    final_paid = sum(1 for b in bookings if _fully_paid(b.payment))

    services = _service_rows(bookings)
    for row in services:
        row["average_amount"] = round_cents(row["revenue"] / row["count"])
    services.sort(key=lambda row: row["revenue"], reverse=True)

    return {
        "service_performance": services,
        "total_bookings": len(bookings),
        "deposits_paid": deposits_paid,
        "final_payments_paid": final_paid,
        "total_revenue": total_revenue,
        "deposit_rate": _rate(deposits_paid, len(bookings)),
        "final_payment_rate": _rate(final_paid, len(bookings)),
        "average_booking_value": round_cents(total_revenue / len(bookings)) if bookings else 0.0,
    }


@router.get("/bookings", response_model=schemas.DashboardBookings)
def dashboard_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db)
):
    """Paginated booking list with search over name, email and phone"""
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid sort field")

    query = db.query(models.Booking)
    if status_filter:
        query = query.filter(models.Booking.status == status_filter)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(models.Booking.client_name).like(pattern),
            func.lower(models.Booking.email).like(pattern),
            func.lower(models.Booking.phone).like(pattern),
        ))

    total = query.count()
    order = column.desc() if sort_order == "desc" else column.asc()
    bookings = query.order_by(order).offset((page - 1) * limit).limit(limit).all()

    return {
        "bookings": bookings,
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.get("/invoices", response_model=schemas.DashboardInvoices)
def dashboard_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    overdue: bool = False,
    db: Session = Depends(get_db)
):
    """Paginated invoices; ``overdue`` keeps unpaid invoices past their due date"""
    query = db.query(models.Invoice)
    if status_filter:
        query = query.filter(models.Invoice.status == status_filter)
    if overdue:
        query = query.filter(
            models.Invoice.due_date < date.today(),
            models.Invoice.status.notin_(("paid", "cancelled")),
        )

    matching = query.all()
    total = len(matching)
    invoices = query.order_by(models.Invoice.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    summary = {
        "total": round_cents(sum(i.amount for i in matching)),
        "pending": round_cents(sum(i.amount for i in matching if i.status in ("draft", "sent", "overdue"))),
        "paid": round_cents(sum(i.amount for i in matching if i.status == "paid")),
    }

    return {
        "invoices": invoices,
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
        "summary": summary,
    }


@router.get("/export/bookings")
def export_bookings(
    export_format: Literal["csv", "json"] = Query("csv", alias="format"),
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db)
):
    """Download bookings as a CSV attachment or JSON"""
    query = db.query(models.Booking)
    if status_filter:
        query = query.filter(models.Booking.status == status_filter)
    if start_date:
        query = query.filter(func.date(models.Booking.created_at) >= start_date)
    if end_date:
        query = query.filter(func.date(models.Booking.created_at) <= end_date)
    bookings = query.order_by(models.Booking.created_at.desc()).all()

    logger.info(f"Exporting {len(bookings)} bookings as {export_format}")

    if export_format == "json":
        return {"bookings": [schemas.BookingResponse.model_validate(b) for b in bookings]}

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(EXPORT_HEADERS)
    for b in bookings:
        payment = b.payment
        writer.writerow([
            b.id,
            b.client_name,
            b.email,
            b.phone,
            b.service_type,
            b.date.isoformat(),
            b.start_time or "",
            b.end_time or "",
            b.number_of_guards or "",
            b.venue_address or "",
            b.status,
            f"{payment.total_amount:.2f}" if payment else "",
            f"{payment.deposit_amount:.2f}" if payment else "",
            f"{payment.paid_amount:.2f}" if payment else "",
            payment.status if payment else "",
            b.created_at.isoformat(),
        ])

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=bookings-export.csv"},
    )
