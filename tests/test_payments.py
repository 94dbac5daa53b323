from datetime import date, timedelta
from unittest.mock import AsyncMock, PropertyMock, patch

import httpx

from dtprotection import models
from dtprotection.paypal_service import PayPalError, PayPalService, paypal_service

from .utils import APITestCase


class CreateInvoiceTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking()

    def invoice_form(self, **overrides):
        form = {"bookingId": self.booking.id, "totalAmount": 1000, "depositAmount": 250}
        form.update(overrides)
        return form

    def test_create_draft_invoice(self):
        response = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["invoiceNumber"], "INV-000001")
        self.assertEqual(data["status"], "draft")
        self.assertEqual(data["amount"], 1000)
        self.assertEqual(data["depositAmount"], 250)
        self.assertEqual(data["dueDate"], (date.today() + timedelta(days=30)).isoformat())
        self.assertIsNone(data["paypalInvoiceId"])

    def test_amounts_sent_as_strings(self):
        form = self.invoice_form(totalAmount="1500.50", depositAmount="400")
        response = self.client.post("/api/payments/create-invoice", json=form, headers=self.headers)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["amount"], 1500.5)

    def test_non_numeric_amount(self):
        form = self.invoice_form(totalAmount="lots")
        response = self.client.post("/api/payments/create-invoice", json=form, headers=self.headers)
        self.assertEqual(response.status_code, 422)

    def test_default_deposit_is_minimum(self):
        form = self.invoice_form()
        del form["depositAmount"]
        response = self.client.post("/api/payments/create-invoice", json=form, headers=self.headers)
        self.assertEqual(response.json()["depositAmount"], 250)

    def test_deposit_below_minimum(self):
        response = self.client.post(
            "/api/payments/create-invoice", json=self.invoice_form(depositAmount=100), headers=self.headers
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Deposit must be at least 25% of total amount")

    def test_deposit_above_total(self):
        response = self.client.post(
            "/api/payments/create-invoice", json=self.invoice_form(depositAmount=1200), headers=self.headers
        )
        self.assertEqual(response.status_code, 400)

    def test_unknown_booking(self):
        response = self.client.post(
            "/api/payments/create-invoice", json=self.invoice_form(bookingId="missing1"), headers=self.headers
        )
        self.assertEqual(response.status_code, 404)

    def test_requires_admin(self):
        response = self.client.post("/api/payments/create-invoice", json=self.invoice_form())
        self.assertEqual(response.status_code, 401)

    def test_numbers_increment(self):
        self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)
        second = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)
        self.assertEqual(second.json()["invoiceNumber"], "INV-000002")

    def test_generated_number_skips_taken_numbers(self):
        self.create_invoice(self.booking, number="INV-000002")
        first = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)
        self.assertEqual(first.json()["invoiceNumber"], "INV-000003")

    def test_duplicate_invoice_number(self):
        self.create_invoice(self.booking, number="DT-2026-01")
        response = self.client.post(
            "/api/payments/create-invoice", json=self.invoice_form(invoiceNumber="DT-2026-01"), headers=self.headers
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invoice number already exists")

    def test_idempotency_key_prevents_duplicate_invoices(self):
        headers = dict(self.headers, **{"Idempotency-Key": "form-submit-1"})

        first = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=headers)
        second = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=headers)

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(first.json()["id"], second.json()["id"])
        self.assertEqual(self.db.query(models.Invoice).count(), 1)

    def test_different_keys_create_separate_invoices(self):
        for key in ("a", "b"):
            headers = dict(self.headers, **{"Idempotency-Key": key})
            self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=headers)
        self.assertEqual(self.db.query(models.Invoice).count(), 2)

    @patch.object(PayPalService, "enabled", new_callable=PropertyMock, return_value=True)
    def test_mirrored_to_paypal(self, mock_enabled):
        with patch.object(paypal_service, "create_invoice", new=AsyncMock(return_value="INV2-ABCD")) as mock_create:
            response = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["paypalInvoiceId"], "INV2-ABCD")
        self.assertEqual(mock_create.await_args.args[2], "Event Security")

    @patch.object(PayPalService, "enabled", new_callable=PropertyMock, return_value=True)
    def test_paypal_failure_keeps_local_invoice(self, mock_enabled):
        with patch.object(paypal_service, "create_invoice", new=AsyncMock(side_effect=PayPalError("down"))):
            response = self.client.post("/api/payments/create-invoice", json=self.invoice_form(), headers=self.headers)

        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["paypalInvoiceId"])


@patch("dtprotection.routers.payments.notify_invoice_sent")
class SendInvoiceTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking()

    def test_send_draft(self, mock_notify):
        invoice = self.create_invoice(self.booking)

        response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Invoice sent successfully")
        self.assertEqual(response.json()["invoice"]["status"], "sent")
        mock_notify.assert_called_once_with(invoice.id)

    def test_resend_allowed(self, mock_notify):
        invoice = self.create_invoice(self.booking, status="sent")
        response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)

    def test_paid_invoice_cannot_be_sent(self, mock_notify):
        invoice = self.create_invoice(self.booking, status="paid")
        response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invoice is already paid")
        mock_notify.assert_not_called()

    def test_cancelled_invoice_cannot_be_sent(self, mock_notify):
        invoice = self.create_invoice(self.booking, status="cancelled")
        response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_unknown_invoice(self, mock_notify):
        response = self.client.post("/api/payments/send-invoice/missing", headers=self.headers)
        self.assertEqual(response.status_code, 404)

    def test_sent_through_paypal(self, mock_notify):
        invoice = self.create_invoice(self.booking, paypal_invoice_id="INV2-ABCD")
        with patch.object(paypal_service, "send_invoice", new=AsyncMock(return_value={})) as mock_send:
            response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        mock_send.assert_awaited_once_with("INV2-ABCD")

    def test_paypal_send_failure(self, mock_notify):
        invoice = self.create_invoice(self.booking, paypal_invoice_id="INV2-ABCD")
        with patch.object(paypal_service, "send_invoice", new=AsyncMock(side_effect=PayPalError("down"))):
            response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)

        self.assertEqual(response.status_code, 502)
        self.db.expire_all()
        self.assertEqual(self.db.get(models.Invoice, invoice.id).status, "draft")

    def test_unreadable_paypal_reply(self, mock_notify):
        invoice = self.create_invoice(self.booking, paypal_invoice_id="INV2-ABCD")
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>busy</html>"))
        with patch.object(paypal_service, "transport", transport):
            response = self.client.post(f"/api/payments/send-invoice/{invoice.id}", headers=self.headers)

        self.assertEqual(response.status_code, 502)
        mock_notify.assert_not_called()


class WebhookTest(APITestCase):
    def paid_event(self, paypal_id="INV2-ABCD", value="1000.00"):
        return {
            "event_type": "INVOICING.INVOICE.PAID",
            "resource": {"invoice": {"id": paypal_id, "amount": {"currency_code": "USD", "value": value}}},
        }

    def test_invoice_paid_reconciles_booking_payment(self):
        booking = self.create_booking(total=1000, paid=250, payment_status="partial")
        invoice = self.create_invoice(booking, amount=1000, status="sent", paypal_invoice_id="INV2-ABCD")

        response = self.client.post("/api/payments/webhook", json=self.paid_event())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["type"], "invoice_paid")
        self.db.expire_all()
        invoice = self.db.get(models.Invoice, invoice.id)
        self.assertEqual(invoice.status, "paid")
        self.assertIsNotNone(invoice.paid_date)
        self.assertEqual(invoice.booking.payment.status, "paid")
        self.assertEqual(invoice.booking.payment.paid_amount, 1000)

    def test_unmatched_invoice_is_acknowledged(self):
        response = self.client.post("/api/payments/webhook", json=self.paid_event(paypal_id="INV2-NOPE"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["received"])

    def test_capture_completed(self):
        event = {"event_type": "PAYMENT.CAPTURE.COMPLETED", "resource": {"id": "CAP-1", "amount": {"value": "250.00"}}}
        response = self.client.post("/api/payments/webhook", json=event)
        self.assertEqual(response.json()["type"], "payment_completed")

    def test_unknown_event(self):
        response = self.client.post("/api/payments/webhook", json={"event_type": "CUSTOMER.DISPUTE.CREATED"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["type"], "unknown")

    def test_invalid_payload(self):
        response = self.client.post(
            "/api/payments/webhook", content=b"not json", headers={"Content-Type": "application/json"}
        )
        self.assertEqual(response.status_code, 400)

    def test_failed_signature(self):
        with patch.object(paypal_service, "verify_webhook", new=AsyncMock(return_value=False)):
            response = self.client.post("/api/payments/webhook", json=self.paid_event())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid webhook signature")


class PaymentScheduleTest(APITestCase):
    def test_schedule(self):
        response = self.client.get("/api/payments/schedule", params={"totalAmount": 1000})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["depositAmount"], 250)
        self.assertEqual(data["finalPaymentAmount"], 750)
        self.assertEqual([p["type"] for p in data["paymentSchedule"]], ["deposit", "final"])
        self.assertEqual(data["paymentSchedule"][0]["dueDate"], (date.today() + timedelta(days=7)).isoformat())

    def test_total_must_be_positive(self):
        response = self.client.get("/api/payments/schedule", params={"totalAmount": 0})
        self.assertEqual(response.status_code, 422)
