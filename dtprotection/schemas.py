from pydantic import BaseModel, EmailStr, Field, validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime, timedelta
from typing import Optional, List, Literal

from . import config
from .models import SERVICE_TYPES, ADMIN_ROLES
from .validators import is_valid_time


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(APIModel):
    message: str


class ServiceInfo(APIModel):
    value: str
    title: str
    description: str


# Bookings

class CommunicationPreferences(APIModel):
    email_notifications: bool = True
    sms_notifications: bool = False
    preferred_contact: Literal["email", "phone", "both"] = "email"


class BookingCreate(APIModel):
    client_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=7, max_length=30)
    service_type: str
    date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue_address: str = Field(..., min_length=1, max_length=255)
    number_of_guards: int = Field(1, ge=1, le=100)
    special_requirements: Optional[str] = Field(None, max_length=2000)
    communication_preferences: Optional[CommunicationPreferences] = None

    @validator('client_name', 'phone', 'venue_address')
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Field is required')
        return v

    @validator('service_type')
    def known_service(cls, v):
        if v not in SERVICE_TYPES:
            raise ValueError(f'Unknown service type: {v}')
        return v

    @validator('date')
    def date_far_enough_ahead(cls, v):
        if v < date.today() + timedelta(days=config.MIN_BOOKING_LEAD_DAYS):
            raise ValueError(f'Event date must be at least {config.MIN_BOOKING_LEAD_DAYS} days in the future')
        return v

    @validator('start_time', 'end_time')
    def time_format(cls, v):
        if v is not None and not is_valid_time(v):
            raise ValueError('Time must be in HH:MM format')
        return v


class PaymentResponse(APIModel):
    total_amount: float
    deposit_amount: float
    paid_amount: float
    remaining: float
    status: str
    method: str
    paid_date: Optional[datetime] = None
    paypal_payment_id: Optional[str] = None


class BookingResponse(APIModel):
    id: str
    client_name: str
    email: str
    phone: str
    service_type: str
    date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue_address: Optional[str] = None
    number_of_guards: Optional[int] = None
    special_requirements: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    communication_preferences: CommunicationPreferences
    payment: Optional[PaymentResponse] = None
    created_at: datetime
    updated_at: datetime


class BookingStatusUpdate(APIModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


# Payments & invoices

class PaymentRow(APIModel):
    """Row of the admin payments table"""
    id: str
    booking_id: str
    client_name: str
    email: str
    total_amount: float
    deposit_amount: float
    paid_amount: float
    remaining: float
    status: str
    method: str
    due_date: date
    created_at: datetime


class PaymentsListResponse(APIModel):
    payments: List[PaymentRow]


class PaymentSummaryResponse(APIModel):
    total_revenue: float
    formatted_revenue: str
    pending_count: int
    overdue_count: int
    active_invoice_count: int


class PaymentUpdate(APIModel):
    total_amount: Optional[float] = Field(None, ge=0)
    deposit_amount: Optional[float] = Field(None, ge=0)
    paid_amount: Optional[float] = Field(None, ge=0)
    status: Optional[Literal["pending", "partial", "paid", "overdue"]] = None
    method: Optional[Literal["paypal", "cash", "other"]] = None
    paid_date: Optional[datetime] = None


class InvoiceCreate(APIModel):
    booking_id: str = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    deposit_amount: float = Field(0, ge=0)
    service_type: Optional[str] = None
    due_date: Optional[date] = None
    invoice_number: Optional[str] = Field(None, max_length=30)
    payment_method: Literal["paypal", "cash", "other"] = "paypal"
    notes: Optional[str] = None
    date: Optional[str] = None


class InvoiceResponse(APIModel):
    id: str
    invoice_number: str
    booking_id: str
    amount: float
    deposit_amount: float
    status: str
    due_date: date
    paid_date: Optional[datetime] = None
    payment_method: str
    paypal_invoice_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class InvoicesListResponse(APIModel):
    invoices: List[InvoiceResponse]


class InvoiceActionResponse(APIModel):
    message: str
    invoice: InvoiceResponse


class ScheduleItem(APIModel):
    type: str
    amount: float
    due_date: date


class PaymentScheduleResponse(APIModel):
    total_amount: float
    deposit_amount: float
    final_payment_amount: float
    deposit_percentage: float
    payment_schedule: List[ScheduleItem]


class WebhookResponse(APIModel):
    received: bool = True
    type: str
    message: str


# Admin

class AdminLoginRequest(APIModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminPublic(APIModel):
    id: str
    username: str
    email: str
    role: str
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AdminLoginResponse(APIModel):
    message: str = "Login successful"
    token: str
    admin: AdminPublic


class AdminVerifyResponse(APIModel):
    message: str = "Token valid"
    admin: AdminPublic


class AdminCreate(APIModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: str = "admin"

    @validator('role')
    def known_role(cls, v):
        if v not in ADMIN_ROLES:
            raise ValueError('Invalid role')
        return v


class AdminCreateResponse(APIModel):
    message: str = "Admin created successfully"
    admin: AdminPublic


class AdminStatusUpdate(APIModel):
    is_active: bool


class AdminStatusResponse(APIModel):
    message: str = "Admin status updated successfully"
    admin: AdminPublic


class PasswordChange(APIModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class RecentRequest(APIModel):
    id: str
    client_name: str
    date: date
    status: str
    amount: float
    paid_amount: float


class AdminDashboardResponse(APIModel):
    total_requests: int
    pending_requests: int
    approved_requests: int
    total_revenue: float
    recent_requests: List[RecentRequest]


class AdminBookingsResponse(APIModel):
    bookings: List[BookingResponse]


# Client portal

class ClientLoginRequest(APIModel):
    email: Optional[str] = None
    booking_id: Optional[str] = None


class ClientInfo(APIModel):
    id: str
    name: str
    email: str


class ClientLoginResponse(APIModel):
    success: bool = True
    token: str
    client: ClientInfo


class ClientPreferences(BaseModel):
    email: bool
    sms: bool


class ClientProfile(APIModel):
    id: str
    name: str
    email: str
    phone: str
    active_bookings: int
    total_bookings: int
    total_spent: float
    communication_preferences: ClientPreferences
    last_login: datetime


class ClientPreferencesUpdate(APIModel):
    communication_preferences: Optional[dict] = None


class ClientPreferencesResponse(APIModel):
    success: bool = True
    communication_preferences: ClientPreferences


class Pagination(APIModel):
    page: int
    limit: int
    total: int
    pages: int


class ClientBookingsResponse(APIModel):
    bookings: List[BookingResponse]
    pagination: Pagination


class ClientInvoicesResponse(APIModel):
    invoices: List[InvoiceResponse]
    pagination: Pagination


class BookingStats(APIModel):
    total: int
    approved: int
    pending: int
    completed: int
    cancelled: int
    rejected: int
    upcoming: int


class InvoiceStats(APIModel):
    total_invoices: int
    paid_invoices: int
    pending_invoices: int
    overdue_invoices: int
    total_paid: float
    total_pending: float


class ClientStatistics(APIModel):
    booking_stats: BookingStats
    payment_stats: InvoiceStats


# Communication

class BookingNotificationRequest(APIModel):
    booking_id: str = Field(..., min_length=1)
    invoice_id: Optional[str] = None


class InvoiceNotificationRequest(APIModel):
    booking_id: str = Field(..., min_length=1)
    invoice_id: str = Field(..., min_length=1)


class StatusNotificationRequest(APIModel):
    booking_id: str = Field(..., min_length=1)
    status: Literal["approved", "rejected", "completed", "cancelled"]


class CustomEmailRequest(APIModel):
    to: EmailStr
    to_name: Optional[str] = None
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    html: Optional[str] = None


class CustomSmsRequest(APIModel):
    to: str
    message: str = Field(..., min_length=1)
    priority: Literal["low", "normal", "high"] = "normal"


class PreferencesPatch(APIModel):
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    preferred_contact: Optional[Literal["email", "phone", "both"]] = None


class PreferencesResponse(APIModel):
    preferences: CommunicationPreferences


# Dashboard

class StatusCount(APIModel):
    status: str
    count: int


class StatusRevenue(APIModel):
    status: str
    total: float
    count: int


class DashboardOverview(APIModel):
    total_bookings: int
    total_invoices: int
    total_admins: int
    booking_statuses: List[StatusCount]
    revenue_by_status: List[StatusRevenue]
    deposit_collection_rate: int
    final_payment_rate: int


class PeriodRevenue(APIModel):
    period: str
    revenue: float
    count: int


class ServiceRevenue(APIModel):
    service_type: str
    count: int
    revenue: float


class RevenueAnalytics(APIModel):
    period: str
    revenue_by_period: List[PeriodRevenue]
    service_distribution: List[ServiceRevenue]


class ServicePerformance(ServiceRevenue):
    average_amount: float


class PerformanceAnalytics(APIModel):
    service_performance: List[ServicePerformance]
    total_bookings: int
    deposits_paid: int
    final_payments_paid: int
    total_revenue: float
    deposit_rate: int
    final_payment_rate: int
    average_booking_value: float


class DashboardBookings(APIModel):
    bookings: List[BookingResponse]
    pagination: Pagination


class InvoiceAmountSummary(APIModel):
    total: float
    pending: float
    paid: float


class DashboardInvoices(APIModel):
    invoices: List[InvoiceResponse]
    pagination: Pagination
    summary: InvoiceAmountSummary
