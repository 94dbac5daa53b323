"""
Payment and invoice arithmetic shared by the API and the portal client.

Everything here is pure: amounts in, numbers or strings out. Amounts are
US dollars held as floats and rounded to cents on output.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

DEFAULT_DEPOSIT_PERCENTAGE = 0.25
DEFAULT_SHIFT_HOURS = 8


@dataclass
class PaymentSummary:
    total_revenue: float
    pending_count: int
    overdue_count: int
    active_invoice_count: int


def round_cents(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def remaining_balance(total: float, paid: float) -> float:
    """Outstanding amount, never negative (overpayments show as 0)."""
    return max(round_cents(total - paid), 0.0)


def format_currency(amount: float) -> str:
    """Format as en-US dollars, e.g. 1500 -> "$1,500.00"."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def summarize_payments(payments: Iterable, invoices: Iterable) -> PaymentSummary:
    """Aggregate the admin payments view in one pass over each list.

    ``payments`` items need ``paid_amount`` and ``status``; ``invoices``
    items need ``status``.
    """
    total_revenue = 0.0
    pending_count = 0
    overdue_count = 0
    for payment in payments:
        if payment.paid_amount and payment.paid_amount > 0:
            total_revenue += payment.paid_amount
        if payment.status == "pending":
            pending_count += 1
        elif payment.status == "overdue":
            overdue_count += 1

    active_invoice_count = sum(1 for invoice in invoices if invoice.status == "sent")

    return PaymentSummary(
        total_revenue=round_cents(total_revenue),
        pending_count=pending_count,
        overdue_count=overdue_count,
        active_invoice_count=active_invoice_count,
    )


def minimum_deposit(total: float, percentage: float = DEFAULT_DEPOSIT_PERCENTAGE) -> float:
    return round_cents(total * percentage)


def validate_deposit(total: float, deposit: float, percentage: float = DEFAULT_DEPOSIT_PERCENTAGE) -> None:
    """Raise ValueError unless the deposit covers the required share of a positive total."""
    if total <= 0:
        raise ValueError("Total amount must be greater than zero")
    if deposit < minimum_deposit(total, percentage):
        raise ValueError(f"Deposit must be at least {int(percentage * 100)}% of total amount")


def payment_schedule(
    total: float,
    deposit_percentage: float = DEFAULT_DEPOSIT_PERCENTAGE,
    today: Optional[date] = None,
) -> dict:
    """Split a total into a deposit due in a week and a final payment due in 30 days."""
    today = today or date.today()
    deposit = round_cents(total * deposit_percentage)
    final = round_cents(total - deposit)
    return {
        "total_amount": round_cents(total),
        "deposit_amount": deposit,
        "final_payment_amount": final,
        "deposit_percentage": deposit_percentage,
        "payment_schedule": [
            {"type": "deposit", "amount": deposit, "due_date": today + timedelta(days=7)},
            {"type": "final", "amount": final, "due_date": today + timedelta(days=30)},
        ],
    }


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def shift_hours(start_time: Optional[str], end_time: Optional[str]) -> float:
    """Length of an HH:MM window in hours; wraps past midnight, at least one hour."""
    if not start_time or not end_time:
        return float(DEFAULT_SHIFT_HOURS)
    minutes = _minutes(end_time) - _minutes(start_time)
    if minutes <= 0:
        minutes += 24 * 60
    return max(minutes / 60, 1.0)


def quote_booking(
    number_of_guards: int,
    start_time: Optional[str],
    end_time: Optional[str],
    hourly_rate: float,
    deposit_percentage: float = DEFAULT_DEPOSIT_PERCENTAGE,
) -> tuple[float, float]:
    """Return ``(total, deposit)`` for a guard booking."""
    total = round_cents(number_of_guards * shift_hours(start_time, end_time) * hourly_rate)
    return total, round_cents(total * deposit_percentage)


def days_until(event_date: date, today: Optional[date] = None) -> int:
    if isinstance(event_date, datetime):
        event_date = event_date.date()
    today = today or date.today()
    return (event_date - today).days


def reminder_urgency(days: int) -> str:
    if days <= 7:
        return "high"
    if days <= 14:
        return "medium"
    return "low"


def next_invoice_number(count: int) -> str:
    return f"INV-{count + 1:06d}"
