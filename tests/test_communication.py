from unittest.mock import AsyncMock, patch

from dtprotection import email_service, models
from dtprotection.sms_service import sms_service

from .utils import APITestCase


class EmailCommunicationTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking()

    def post(self, path, payload):
        return self.client.post(f"/api/communication/email/{path}", json=payload, headers=self.headers)

    def test_requires_admin(self):
        response = self.client.post("/api/communication/email/booking-confirmation", json={"bookingId": self.booking.id})
        self.assertEqual(response.status_code, 401)

    @patch.object(email_service, "send_booking_confirmation", new_callable=AsyncMock, return_value=True)
    def test_booking_confirmation(self, mock_send):
        response = self.post("booking-confirmation", {"bookingId": self.booking.id})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Booking confirmation email sent successfully")
        self.assertEqual(mock_send.await_args.args[0].id, self.booking.id)

    @patch.object(email_service, "send_booking_confirmation", new_callable=AsyncMock, return_value=False)
    def test_send_failure(self, mock_send):
        response = self.post("booking-confirmation", {"bookingId": self.booking.id})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Failed to send booking confirmation email")

    def test_unknown_booking(self):
        response = self.post("booking-confirmation", {"bookingId": "missing"})
        self.assertEqual(response.status_code, 404)

    @patch.object(email_service, "send_payment_reminder", new_callable=AsyncMock, return_value=True)
    def test_payment_reminder_with_invoice(self, mock_send):
        invoice = self.create_invoice(self.booking)

        response = self.post("payment-reminder", {"bookingId": self.booking.id, "invoiceId": invoice.id})

        self.assertEqual(response.status_code, 200)
        booking, sent_invoice = mock_send.await_args.args
        self.assertEqual(sent_invoice.id, invoice.id)

    def test_invoice_notification_unknown_invoice(self):
        response = self.post("invoice-notification", {"bookingId": self.booking.id, "invoiceId": "missing"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Invoice not found")

    def test_status_update_rendered_and_suppressed(self):
        response = self.post("status-update", {"bookingId": self.booking.id, "status": "approved"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Status update email sent successfully")

    def test_status_update_rejects_unknown_status(self):
        response = self.post("status-update", {"bookingId": self.booking.id, "status": "archived"})
        self.assertEqual(response.status_code, 422)

    @patch.object(email_service, "send_plain_email", new_callable=AsyncMock, return_value=True)
    def test_custom_plain(self, mock_send):
        response = self.post("custom", {
            "to": "jane@example.com",
            "toName": "Jane",
            "subject": "Your guards",
            "message": "They will arrive at 17:30.",
        })

        self.assertEqual(response.status_code, 200)
        mock_send.assert_awaited_once_with("jane@example.com", "Your guards", "Dear Jane,\n\nThey will arrive at 17:30.")

    @patch.object(email_service, "send_email", new_callable=AsyncMock, return_value=True)
    def test_custom_html(self, mock_send):
        self.post("custom", {"to": "jane@example.com", "subject": "Hi", "message": "plain", "html": "<p>Hi</p>"})
        mock_send.assert_awaited_once_with("jane@example.com", "Hi", "<p>Hi</p>")

    def test_test_connection(self):
        response = self.client.get("/api/communication/email/test-connection", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Email service connection successful")

    @patch.object(email_service, "verify_connection", new_callable=AsyncMock, return_value=False)
    def test_test_connection_failure(self, mock_verify):
        response = self.client.get("/api/communication/email/test-connection", headers=self.headers)
        self.assertEqual(response.status_code, 500)


class SmsCommunicationTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking()

    def post(self, path, payload):
        return self.client.post(f"/api/communication/sms/{path}", json=payload, headers=self.headers)

    @patch.object(sms_service, "send_booking_confirmation", new_callable=AsyncMock, return_value=True)
    def test_booking_confirmation(self, mock_send):
        response = self.post("booking-confirmation", {"bookingId": self.booking.id})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Booking confirmation SMS sent successfully")

    @patch.object(sms_service, "send_urgent_reminder", new_callable=AsyncMock, return_value=False)
    def test_urgent_reminder_failure(self, mock_send):
        response = self.post("urgent-reminder", {"bookingId": self.booking.id})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Failed to send urgent reminder SMS")

    @patch.object(sms_service, "send_status_update", new_callable=AsyncMock, return_value=True)
    def test_status_update(self, mock_send):
        self.post("status-update", {"bookingId": self.booking.id, "status": "completed"})
        self.assertEqual(mock_send.await_args.args[1], "completed")

    @patch.object(sms_service, "send_sms", new_callable=AsyncMock, return_value=True)
    def test_custom_sms_normalizes_number(self, mock_send):
        response = self.post("custom", {"to": "(555) 123-4567", "message": "Running late", "priority": "high"})

        self.assertEqual(response.status_code, 200)
        mock_send.assert_awaited_once_with("+15551234567", "Running late", priority="high")

    @patch.object(sms_service, "send_sms", new_callable=AsyncMock, return_value=True)
    def test_custom_sms_invalid_number(self, mock_send):
        response = self.post("custom", {"to": "12345", "message": "Hello"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Valid phone number is required")
        mock_send.assert_not_awaited()

    def test_test_connection_without_credentials(self):
        response = self.client.get("/api/communication/sms/test-connection", headers=self.headers)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "SMS service connection failed")


class PreferencesTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking()

    def test_get_preferences(self):
        response = self.client.get(f"/api/communication/preferences/{self.booking.id}", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["preferences"], {
            "emailNotifications": True,
            "smsNotifications": False,
            "preferredContact": "email",
        })

    def test_patch_preferences(self):
        response = self.client.patch(
            f"/api/communication/preferences/{self.booking.id}",
            json={"smsNotifications": True, "preferredContact": "both"},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["preferences"]["smsNotifications"])
        self.assertTrue(response.json()["preferences"]["emailNotifications"])
        self.db.expire_all()
        self.assertEqual(self.db.get(models.Booking, self.booking.id).preferred_contact, "both")

    def test_invalid_contact_channel(self):
        response = self.client.patch(
            f"/api/communication/preferences/{self.booking.id}",
            json={"preferredContact": "pigeon"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_booking(self):
        response = self.client.get("/api/communication/preferences/missing", headers=self.headers)
        self.assertEqual(response.status_code, 404)
