import csv
import io
from datetime import date, datetime, timedelta

from dtprotection.routers.dashboard import EXPORT_HEADERS

from .utils import APITestCase


class DashboardAnalyticsTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()

    def test_requires_admin(self):
        response = self.client.get("/api/dashboard/overview")
        self.assertEqual(response.status_code, 401)

    def test_overview(self):
        deposit_paid = self.create_booking(total=1000, deposit=250, paid=250, payment_status="partial", status="approved")
        self.create_booking(total=400, deposit=100, paid=400, payment_status="paid", status="completed")
        self.create_booking(total=600, deposit=150, paid=0)
        self.create_booking(total=800, deposit=200, paid=0)
        self.create_invoice(deposit_paid, number="INV-000001", amount=1000, status="paid")
        self.create_invoice(deposit_paid, number="INV-000002", amount=500, status="sent")

        response = self.client.get("/api/dashboard/overview", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["totalBookings"], 4)
        self.assertEqual(data["totalInvoices"], 2)
        self.assertEqual(data["totalAdmins"], 1)
        statuses = {row["status"]: row["count"] for row in data["bookingStatuses"]}
        self.assertEqual(statuses, {"approved": 1, "completed": 1, "pending": 2})
        revenue = {row["status"]: row["total"] for row in data["revenueByStatus"]}
        self.assertEqual(revenue, {"paid": 1000, "sent": 500})
        self.assertEqual(data["depositCollectionRate"], 50)
        self.assertEqual(data["finalPaymentRate"], 25)

    def test_overview_empty(self):
        data = self.client.get("/api/dashboard/overview", headers=self.headers).json()
        self.assertEqual(data["totalBookings"], 0)
        self.assertEqual(data["depositCollectionRate"], 0)

    def test_monthly_revenue(self):
        self.create_booking(total=1000, service_type="event_security")
        self.create_booking(total=500, service_type="personal_protection")

        response = self.client.get("/api/dashboard/analytics/revenue", headers=self.headers)

        data = response.json()
        self.assertEqual(data["period"], "monthly")
        self.assertEqual(len(data["revenueByPeriod"]), 1)
        row = data["revenueByPeriod"][0]
        self.assertEqual(row["period"], datetime.utcnow().strftime("%Y-%m"))
        self.assertEqual(row["revenue"], 1500)
        self.assertEqual(row["count"], 2)
        services = {s["serviceType"]: s["revenue"] for s in data["serviceDistribution"]}
        self.assertEqual(services, {"event_security": 1000, "personal_protection": 500})

    def test_weekly_revenue(self):
        self.create_booking()
        data = self.client.get(
            "/api/dashboard/analytics/revenue", params={"period": "weekly"}, headers=self.headers
        ).json()
        self.assertRegex(data["revenueByPeriod"][0]["period"], r"^\d{4}-W\d{2}$")

    def test_invalid_period(self):
        response = self.client.get(
            "/api/dashboard/analytics/revenue", params={"period": "daily"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 422)

    def test_performance(self):
        self.create_booking(total=1000, deposit=250, paid=1000, payment_status="paid")
        self.create_booking(total=500, deposit=125, paid=0, service_type="asset_protection")

        data = self.client.get("/api/dashboard/analytics/performance", headers=self.headers).json()

        self.assertEqual(data["totalBookings"], 2)
        self.assertEqual(data["depositsPaid"], 1)
        self.assertEqual(data["finalPaymentsPaid"], 1)
        self.assertEqual(data["totalRevenue"], 1500)
        self.assertEqual(data["depositRate"], 50)
        self.assertEqual(data["averageBookingValue"], 750)
        self.assertEqual(data["servicePerformance"][0]["serviceType"], "event_security")
        self.assertEqual(data["servicePerformance"][0]["averageAmount"], 1000)


class DashboardListsTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()

    def test_search_bookings(self):
        self.create_booking(client_name="Alice Walker", email="alice@example.com")
        self.create_booking(client_name="Bob Stone", email="bob@example.com", phone="(555) 987-6543")

        response = self.client.get("/api/dashboard/bookings", params={"search": "ALICE"}, headers=self.headers)
        self.assertEqual([b["clientName"] for b in response.json()["bookings"]], ["Alice Walker"])

        response = self.client.get("/api/dashboard/bookings", params={"search": "987"}, headers=self.headers)
        self.assertEqual([b["clientName"] for b in response.json()["bookings"]], ["Bob Stone"])

    def test_sort_bookings(self):
        self.create_booking(client_name="Zed")
        self.create_booking(client_name="Amy")

        response = self.client.get(
            "/api/dashboard/bookings", params={"sortBy": "clientName", "sortOrder": "asc"}, headers=self.headers
        )
        self.assertEqual([b["clientName"] for b in response.json()["bookings"]], ["Amy", "Zed"])

    def test_invalid_sort_field(self):
        response = self.client.get("/api/dashboard/bookings", params={"sortBy": "password"}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid sort field")

    def test_bookings_pagination(self):
        for _ in range(3):
            self.create_booking()
        data = self.client.get("/api/dashboard/bookings", params={"limit": 2}, headers=self.headers).json()
        self.assertEqual(len(data["bookings"]), 2)
        self.assertEqual(data["pagination"]["pages"], 2)

    def test_overdue_invoices(self):
        booking = self.create_booking()
        past = date.today() - timedelta(days=1)
        late = self.create_invoice(booking, number="INV-000001", amount=300, status="sent", due_date=past)
        self.create_invoice(booking, number="INV-000002", amount=200, status="paid", due_date=past)
        self.create_invoice(booking, number="INV-000003", amount=100, status="draft")

        response = self.client.get("/api/dashboard/invoices", params={"overdue": "true"}, headers=self.headers)

        data = response.json()
        self.assertEqual([i["id"] for i in data["invoices"]], [late.id])
        self.assertEqual(data["summary"], {"total": 300, "pending": 300, "paid": 0})

    def test_invoice_summary(self):
        booking = self.create_booking()
        self.create_invoice(booking, number="INV-000001", amount=300, status="sent")
        self.create_invoice(booking, number="INV-000002", amount=200, status="paid")

        data = self.client.get("/api/dashboard/invoices", headers=self.headers).json()
        self.assertEqual(data["summary"], {"total": 500, "pending": 300, "paid": 200})
        self.assertEqual(data["pagination"]["total"], 2)


class ExportTest(APITestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.booking = self.create_booking(client_name='Jane "JJ" Smith', total=1000, deposit=250, paid=250)

    def test_csv_export(self):
        response = self.client.get("/api/dashboard/export/bookings", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertEqual(response.headers["content-disposition"], "attachment; filename=bookings-export.csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        self.assertEqual(rows[0], EXPORT_HEADERS)
        self.assertEqual(rows[1][0], self.booking.id)
        self.assertEqual(rows[1][1], 'Jane "JJ" Smith')
        self.assertEqual(rows[1][11:14], ["1000.00", "250.00", "250.00"])

    def test_json_export(self):
        response = self.client.get("/api/dashboard/export/bookings", params={"format": "json"}, headers=self.headers)

        bookings = response.json()["bookings"]
        self.assertEqual(len(bookings), 1)
        self.assertEqual(bookings[0]["id"], self.booking.id)

    def test_status_filter(self):
        response = self.client.get(
            "/api/dashboard/export/bookings", params={"format": "json", "status": "approved"}, headers=self.headers
        )
        self.assertEqual(response.json()["bookings"], [])
