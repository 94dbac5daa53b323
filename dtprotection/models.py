"""
Database models for the booking and billing system
"""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .billing import remaining_balance
from .database import Base

SERVICE_TYPES = {
    "personal_protection": (
        "Personal Protection",
        "Close protection officers for executives, public figures and private clients.",
    ),
    "event_security": (
        "Event Security",
        "Crowd management, access control and on-site response for private and public events.",
    ),
    "risk_assessment": (
        "Risk Assessment & Mitigation",
        "Threat analysis of people, venues and itineraries with a written mitigation plan.",
    ),
    "corporate_security": (
        "Corporate Security",
        "Office and campus security programs, reception cover and incident response.",
    ),
    "bar_club_venue_security": (
        "Bar, Club, And Venue Security",
        "Licensed door staff, ID checks and conflict de-escalation for nightlife venues.",
    ),
    "asset_protection": (
        "Asset Protection",
        "Guarding of high-value property, inventory and sites.",
    ),
    "transportation_security": (
        "Transportation Security",
        "Secure drivers, route planning and escort for people and valuables in transit.",
    ),
    "on_site_protection": (
        "On-Site Protection",
        "Uniformed or plain-clothes guards posted at residences, construction sites and businesses.",
    ),
}

BOOKING_STATUSES = ("pending", "approved", "rejected", "completed", "cancelled")
ACTIVE_BOOKING_STATUSES = ("pending", "approved")
PAYMENT_STATUSES = ("pending", "partial", "paid", "overdue")
PAYMENT_METHODS = ("paypal", "cash", "other")
INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "cancelled")
ADMIN_ROLES = ("admin", "super_admin")
CONTACT_CHANNELS = ("email", "phone", "both")


def generate_id() -> str:
    """Random 32-char hex identifier"""
    return uuid.uuid4().hex


class Admin(Base):
    """Staff account for the admin portal"""
    __tablename__ = "admins"

    id = Column(String(32), primary_key=True, default=generate_id)
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="admin")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Booking(Base):
    """Client request for a security service"""
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=generate_id)
    client_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(30), nullable=False)
    service_type = Column(String(50), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    venue_address = Column(String(255), nullable=True)
    number_of_guards = Column(Integer, nullable=True)
    special_requirements = Column(Text, nullable=True)

    # pending - submitted, awaiting review
    # approved - accepted by staff
    # rejected - declined by staff
    # completed - service delivered
    # cancelled - withdrawn
    status = Column(String(20), nullable=False, default="pending", index=True)
    admin_notes = Column(Text, nullable=True)

    email_notifications = Column(Boolean, nullable=False, default=True)
    sms_notifications = Column(Boolean, nullable=False, default=False)
    preferred_contact = Column(String(10), nullable=False, default="email")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    payment = relationship("Payment", back_populates="booking", uselist=False, cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="booking")

    @property
    def communication_preferences(self) -> dict:
        return {
            "email_notifications": self.email_notifications,
            "sms_notifications": self.sms_notifications,
            "preferred_contact": self.preferred_contact,
        }


class Payment(Base):
    """Running record of amounts owed and paid against a booking.

    ``status`` is set independently of the amounts.
    """
    __tablename__ = "payments"

    id = Column(String(32), primary_key=True, default=generate_id)
    booking_id = Column(String(32), ForeignKey("bookings.id"), nullable=False, unique=True)
    total_amount = Column(Float, nullable=False, default=0)
    deposit_amount = Column(Float, nullable=False, default=0)
    paid_amount = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")
    method = Column(String(20), nullable=False, default="paypal")
    paid_date = Column(DateTime, nullable=True)
    paypal_payment_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship("Booking", back_populates="payment")

    @property
    def remaining(self) -> float:
        return remaining_balance(self.total_amount or 0, self.paid_amount or 0)


class Invoice(Base):
    """Billing document sent to a client"""
    __tablename__ = "invoices"

    id = Column(String(32), primary_key=True, default=generate_id)
    booking_id = Column(String(32), ForeignKey("bookings.id"), nullable=False, index=True)
    invoice_number = Column(String(30), nullable=False, unique=True, index=True)
    amount = Column(Float, nullable=False)
    deposit_amount = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft", index=True)
    due_date = Column(Date, nullable=False)
    paid_date = Column(DateTime, nullable=True)
    payment_method = Column(String(20), nullable=False, default="paypal")
    paypal_invoice_id = Column(String(64), nullable=True, index=True)
    paypal_payment_id = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    idempotency_key = Column(String(100), nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship("Booking", back_populates="invoices")
