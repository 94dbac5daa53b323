import unittest
from datetime import date, timedelta

from fastapi.testclient import TestClient

from dtprotection import models
from dtprotection.auth import create_admin_token, create_client_token, get_password_hash
from dtprotection.database import Base, SessionLocal, engine
from dtprotection.main import app

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)


def future(days: int = 14) -> date:
    return date.today() + timedelta(days=days)


def booking_payload(**overrides) -> dict:
    payload = {
        "clientName": "Jane Smith",
        "email": "jane@example.com",
        "phone": "(555) 123-4567",
        "serviceType": "event_security",
        "date": future().isoformat(),
        "startTime": "18:00",
        "endTime": "23:00",
        "venueAddress": "1 Main St, Los Angeles, CA",
        "numberOfGuards": 2,
        "specialRequirements": "Black suits",
    }
    payload.update(overrides)
    return payload


class APITestCase(unittest.TestCase):
    """Fresh in-memory database and a TestClient per test"""

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.client = TestClient(app)
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()

    def create_admin(self, username="admin", email="admin@dtprotection.com", role="super_admin", is_active=True):
        admin = models.Admin(
            username=username,
            email=email,
            password_hash=PASSWORD_HASH,
            role=role,
            is_active=is_active,
        )
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        return admin

    def admin_headers(self, admin=None) -> dict:
        admin = admin or self.create_admin()
        return {"Authorization": f"Bearer {create_admin_token(admin)}"}

    def client_headers(self, booking) -> dict:
        return {"Authorization": f"Bearer {create_client_token(booking)}"}

    def create_booking(self, total=1000.0, deposit=250.0, paid=0.0, payment_status="pending", **fields):
        values = {
            "client_name": "Jane Smith",
            "email": "jane@example.com",
            "phone": "(555) 123-4567",
            "service_type": "event_security",
            "date": future(),
            "start_time": "18:00",
            "end_time": "23:00",
            "venue_address": "1 Main St",
            "number_of_guards": 2,
        }
        values.update(fields)
        booking = models.Booking(**values)
        booking.payment = models.Payment(
            total_amount=total, deposit_amount=deposit, paid_amount=paid, status=payment_status
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def create_invoice(self, booking, number="INV-000001", amount=1000.0, status="draft", due_date=None, **fields):
        invoice = models.Invoice(
            booking_id=booking.id,
            invoice_number=number,
            amount=amount,
            deposit_amount=fields.pop("deposit_amount", amount * 0.25),
            status=status,
            due_date=due_date or future(30),
            **fields,
        )
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
