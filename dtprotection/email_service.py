"""
Client emails: booking confirmation, payment reminder, invoice notification, status update
"""
import logging

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from fastapi_mail.connection import Connection
from fastapi_mail.errors import ConnectionErrors
from jinja2 import Environment

from . import config
from .models import SERVICE_TYPES
from .billing import days_until, format_currency, reminder_urgency, remaining_balance

logger = logging.getLogger(__name__)

# Email configuration
conf = ConnectionConfig(
    MAIL_USERNAME=config.MAIL_USERNAME,
    MAIL_PASSWORD=config.MAIL_PASSWORD,
    MAIL_FROM=config.MAIL_FROM,
    MAIL_PORT=config.MAIL_PORT,
    MAIL_SERVER=config.MAIL_SERVER,
    MAIL_FROM_NAME=config.MAIL_FROM_NAME,
    MAIL_STARTTLS=config.MAIL_STARTTLS,
    MAIL_SSL_TLS=config.MAIL_SSL_TLS,
    USE_CREDENTIALS=bool(config.MAIL_USERNAME),
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=config.MAIL_SUPPRESS_SEND,
)

templates = Environment(autoescape=True)

LAYOUT = templates.from_string("""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background-color: {{ header_color }}; color: white; padding: 20px; text-align: center; }
        .content { padding: 20px; background-color: #f9f9f9; }
        .details { background-color: white; padding: 15px; margin: 15px 0; border-left: 4px solid {{ header_color }}; }
        .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{{ heading }}</h1></div>
        <div class="content">
            <h2>Hello {{ name }},</h2>
            {% for paragraph in intro %}<p>{{ paragraph }}</p>{% endfor %}
            {% for title, rows in sections %}
            <div class="details">
                <h3>{{ title }}</h3>
                <ul>{% for label, value in rows %}<li><strong>{{ label }}:</strong> {{ value }}</li>{% endfor %}</ul>
            </div>
            {% endfor %}
            {% for paragraph in outro %}<p>{{ paragraph }}</p>{% endfor %}
            <p>Best regards,<br>{{ company }}</p>
        </div>
        <div class="footer"><p>{{ company }}</p></div>
    </div>
</body>
</html>
""")


def format_date(value) -> str:
    """US short date, e.g. 3/15/2026"""
    if value is None:
        return "To be confirmed"
    return f"{value.month}/{value.day}/{value.year}"


def service_title(service_type: str) -> str:
    return SERVICE_TYPES.get(service_type, (service_type,))[0]


def render(heading: str, name: str, intro=(), sections=(), outro=(), header_color: str = "#1f2937") -> str:
    return LAYOUT.render(
        heading=heading,
        name=name,
        intro=intro,
        sections=sections,
        outro=outro,
        header_color=header_color,
        company=config.COMPANY_NAME,
    )


async def send_email(to: str, subject: str, html: str) -> bool:
    """Send one HTML email; failures are logged and reported as False"""
    message = MessageSchema(
        subject=subject,
        recipients=[to],
        body=html,
        subtype=MessageType.html
    )

    fm = FastMail(conf)
    try:
        await fm.send_message(message)
    except ConnectionErrors as e:
        logger.error(f"Email to {to} failed: {e}")
        return False

    logger.info(f"Email sent to {to}: {subject}")
    return True


async def send_plain_email(to: str, subject: str, text: str) -> bool:
    message = MessageSchema(
        subject=subject,
        recipients=[to],
        body=text,
        subtype=MessageType.plain
    )

    fm = FastMail(conf)
    try:
        await fm.send_message(message)
    except ConnectionErrors as e:
        logger.error(f"Email to {to} failed: {e}")
        return False

    logger.info(f"Email sent to {to}: {subject}")
    return True


def _payment_rows(payment) -> list:
    if payment is None:
        return [("Payment Status", "pending")]
    return [
        ("Total Amount", format_currency(payment.total_amount)),
        ("Deposit Required", format_currency(payment.deposit_amount)),
        ("Payment Status", payment.status),
    ]


async def send_booking_confirmation(booking) -> bool:
    """Acknowledge a new booking request"""
    service = service_title(booking.service_type)
    html = render(
        heading="Booking Confirmation",
        name=booking.client_name,
        intro=[f"Thank you for choosing {config.COMPANY_NAME}. We have received your booking request."],
        sections=[
            ("Booking Details", [
                ("Booking ID", booking.id),
                ("Service Type", service),
                ("Date", format_date(booking.date)),
                ("Venue", booking.venue_address or "To be confirmed"),
                ("Number of Guards", booking.number_of_guards or "To be confirmed"),
            ]),
            ("Payment Information", _payment_rows(booking.payment)),
        ],
        outro=[
            "Our team will review your request and contact you within 24 hours.",
            "You can track your booking in the client portal using your email and booking ID.",
        ],
    )
    return await send_email(booking.email, f"Booking Confirmation - {service}", html)


async def send_payment_reminder(booking, invoice=None) -> bool:
    """Remind a client of the outstanding balance; urgent inside a week of the event"""
    service = service_title(booking.service_type)
    days = days_until(booking.date)
    urgency = "URGENT" if reminder_urgency(days) == "high" else "Reminder"
    payment = booking.payment
    total = payment.total_amount if payment else 0
    paid = payment.paid_amount if payment else 0

    sections = [
        ("Payment Details", [
            ("Total Amount", format_currency(total)),
            ("Amount Paid", format_currency(paid)),
            ("Remaining Balance", format_currency(remaining_balance(total, paid))),
        ]),
    ]
    if invoice is not None:
        sections.append(("Invoice", [
            ("Invoice Number", invoice.invoice_number),
            ("Due Date", format_date(invoice.due_date)),
        ]))

    html = render(
        heading="Payment Reminder",
        name=booking.client_name,
        intro=[
            f"This is a reminder that your payment for {service} is due.",
            f"Event date: {format_date(booking.date)} ({days} days from today).",
        ],
        sections=sections,
        outro=["Please complete your payment to confirm your booking."],
        header_color="#dc3545" if days <= 7 else "#ffc107",
    )
    return await send_email(booking.email, f"{urgency}: Payment Reminder - {service}", html)


async def send_invoice_notification(booking, invoice) -> bool:
    service = service_title(booking.service_type)
    html = render(
        heading=f"Invoice #{invoice.invoice_number}",
        name=booking.client_name,
        intro=[f"Please find below your invoice for {service}."],
        sections=[
            ("Invoice Details", [
                ("Invoice Number", invoice.invoice_number),
                ("Service", service),
                ("Date", format_date(booking.date)),
                ("Due Date", format_date(invoice.due_date)),
                ("Total Amount", format_currency(invoice.amount)),
                ("Deposit Amount", format_currency(invoice.deposit_amount)),
            ]),
        ],
        outro=["Payment can be made through the link in your PayPal invoice or by contacting our office."],
    )
    return await send_email(
        booking.email, f"Invoice #{invoice.invoice_number} - {service}", html
    )


STATUS_MESSAGES = {
    "approved": "Great news! Your booking has been approved. An invoice for the deposit will follow.",
    "rejected": "Unfortunately we are unable to accept your booking. Please contact us for alternatives.",
    "completed": "Your service has been completed. Thank you for choosing us.",
    "cancelled": "Your booking has been cancelled. Contact us if this is unexpected.",
    "pending": "Your booking is pending review.",
}


async def send_status_update(booking, status: str) -> bool:
    service = service_title(booking.service_type)
    html = render(
        heading="Booking Status Update",
        name=booking.client_name,
        intro=[STATUS_MESSAGES.get(status, f"Your booking status is now {status}.")],
        sections=[
            ("Booking Details", [
                ("Booking ID", booking.id),
                ("Service Type", service),
                ("Date", format_date(booking.date)),
                ("Status", status),
            ]),
        ],
    )
    return await send_email(booking.email, f"Booking {status.title()} - {service}", html)


async def verify_connection() -> bool:
    """Open and close an SMTP session with the configured credentials"""
    if conf.SUPPRESS_SEND:
        return True
    try:
        async with Connection(conf):
            pass
    except ConnectionErrors as e:
        logger.error(f"SMTP connection failed: {e}")
        return False
    return True
