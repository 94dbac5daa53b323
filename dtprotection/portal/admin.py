"""
Admin portal client

Python side of the staff portal: log in, read the payments table and its
summary, create and send invoices, change booking status.
"""
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from ..billing import PaymentSummary, format_currency, remaining_balance, summarize_payments
from .results import DECODE, Err, FetchError, Ok, Result, request_json
from .session import PortalSession

LOGIN_PATH = "/admin/login"
DASHBOARD_PATH = "/admin/dashboard"
TABLE_ROWS = 10


@dataclass
class PaymentRow:
    id: str
    booking_id: str
    client_name: str
    total_amount: float
    deposit_amount: float
    paid_amount: float
    status: str
    method: str
    due_date: str

    @property
    def remaining(self) -> float:
        return remaining_balance(self.total_amount, self.paid_amount)

    @classmethod
    def from_json(cls, data: dict) -> "PaymentRow":
        return cls(
            id=data["id"],
            booking_id=data["bookingId"],
            client_name=data["clientName"],
            total_amount=float(data["totalAmount"]),
            deposit_amount=float(data["depositAmount"]),
            paid_amount=float(data["paidAmount"]),
            status=data["status"],
            method=data["method"],
            due_date=data["dueDate"],
        )


@dataclass
class InvoiceRow:
    id: str
    invoice_number: str
    booking_id: str
    amount: float
    deposit_amount: float
    status: str
    due_date: str
    paid_date: Optional[str] = None
    paypal_invoice_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> "InvoiceRow":
        return cls(
            id=data["id"],
            invoice_number=data["invoiceNumber"],
            booking_id=data["bookingId"],
            amount=float(data["amount"]),
            deposit_amount=float(data["depositAmount"]),
            status=data["status"],
            due_date=data["dueDate"],
            paid_date=data.get("paidDate"),
            paypal_invoice_id=data.get("paypalInvoiceId"),
        )


@dataclass
class PaymentsView:
    payments: List[PaymentRow]
    invoices: List[InvoiceRow]
    summary: PaymentSummary
    formatted_revenue: str = field(default="")

    @property
    def table_rows(self) -> List[PaymentRow]:
        """Rows shown in the payments table"""
        return self.payments[:TABLE_ROWS]


class AdminPortal:
    def __init__(self, http: httpx.Client, session: Optional[PortalSession] = None):
        self.http = http
        self.session = session or PortalSession("admin")

    def _call(self, method: str, path: str, **kwargs) -> Result:
        return request_json(self.http, method, path, token=self.session.token, **kwargs)

    def login(self, username: str, password: str) -> Result:
        """On success stores the token once and returns the page to open next"""
        result = request_json(self.http, "POST", "/api/admin/login", json={"username": username, "password": password})
        if not result.ok:
            return result

        body = result.value or {}
        token = body.get("token")
        if not token:
            return Err(FetchError(DECODE, "Login response did not contain a token"))

        self.session.save(token, body.get("admin"))
        return Ok(DASHBOARD_PATH)

    def logout(self) -> str:
        self.session.clear()
        return LOGIN_PATH

    def payments_view(self) -> Result:
        """All payments with their aggregates and all invoices; the table shows ``table_rows``"""
        payments = self._call("GET", "/api/admin/payments")
        if not payments.ok:
            return payments
        invoices = self._call("GET", "/api/admin/invoices")
        if not invoices.ok:
            return invoices

        try:
            rows = [PaymentRow.from_json(p) for p in payments.value["payments"]]
            invoice_rows = [InvoiceRow.from_json(i) for i in invoices.value["invoices"]]
        except (KeyError, TypeError, ValueError) as e:
            return Err(FetchError(DECODE, f"Unexpected payments payload: {e}"))

        summary = summarize_payments(rows, invoice_rows)
        return Ok(PaymentsView(
            payments=rows,
            invoices=invoice_rows,
            summary=summary,
            formatted_revenue=format_currency(summary.total_revenue),
        ))

    def create_invoice(self, form: dict, idempotency_key: Optional[str] = None) -> Result:
        """Submit the invoice form

        Reuse the same ``idempotency_key`` when retrying one submission; the
        server then returns the first invoice instead of creating another.
        """
        key = idempotency_key or uuid.uuid4().hex
        result = self._call(
            "POST",
            "/api/payments/create-invoice",
            json=form,
            headers={"Idempotency-Key": key},
        )
        if not result.ok:
            return result
        try:
            return Ok(InvoiceRow.from_json(result.value))
        except (KeyError, TypeError, ValueError) as e:
            return Err(FetchError(DECODE, f"Unexpected invoice payload: {e}"))

    def send_invoice(self, invoice_id: str) -> Result:
        result = self._call("POST", f"/api/payments/send-invoice/{invoice_id}")
        if not result.ok:
            return result
        try:
            return Ok(InvoiceRow.from_json(result.value["invoice"]))
        except (KeyError, TypeError, ValueError) as e:
            return Err(FetchError(DECODE, f"Unexpected invoice payload: {e}"))

    def update_booking_status(self, booking_id: str, status: str, admin_notes: Optional[str] = None) -> Result:
        payload = {"status": status}
        if admin_notes:
            payload["adminNotes"] = admin_notes
        return self._call("PATCH", f"/api/bookings/{booking_id}/status", json=payload)
