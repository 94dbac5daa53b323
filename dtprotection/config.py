"""
Application settings loaded from the environment (.env supported)
"""
import os
import warnings

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dtprotection.db")

# JWT
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "insecure-dev-key-change-in-production"
ALGORITHM = os.getenv("ALGORITHM", "HS256")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))
CLIENT_TOKEN_EXPIRE_DAYS = int(os.getenv("CLIENT_TOKEN_EXPIRE_DAYS", "7"))

# Booking rules
GUARD_HOURLY_RATE = float(os.getenv("GUARD_HOURLY_RATE", "50"))
MIN_BOOKING_LEAD_DAYS = int(os.getenv("MIN_BOOKING_LEAD_DAYS", "7"))
DEPOSIT_PERCENTAGE = float(os.getenv("DEPOSIT_PERCENTAGE", "0.25"))
INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", "30"))

COMPANY_NAME = os.getenv("COMPANY_NAME", "DT Protection Services")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Email (SMTP through fastapi-mail)
MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", "admin@dtprotection.com")
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", COMPANY_NAME)
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.mailgun.org")
MAIL_STARTTLS = os.getenv("MAIL_STARTTLS", "true").lower() == "true"
MAIL_SSL_TLS = os.getenv("MAIL_SSL_TLS", "false").lower() == "true"
MAIL_SUPPRESS_SEND = os.getenv("MAIL_SUPPRESS_SEND", "false").lower() == "true"

# SMS
SMS_PROVIDER = os.getenv("SMS_PROVIDER", "twilio")  # twilio or vonage
SMS_API_KEY = os.getenv("SMS_API_KEY", "")
SMS_API_SECRET = os.getenv("SMS_API_SECRET", "")
SMS_FROM_NUMBER = os.getenv("SMS_FROM_NUMBER", "")
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")

# PayPal invoicing
PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET", "")
PAYPAL_ENVIRONMENT = os.getenv("PAYPAL_ENVIRONMENT", "sandbox")  # sandbox or live
PAYPAL_WEBHOOK_ID = os.getenv("PAYPAL_WEBHOOK_ID", "")
if PAYPAL_ENVIRONMENT == "live":
    PAYPAL_API_URL = "https://api-m.paypal.com"
else:
    PAYPAL_API_URL = "https://api-m.sandbox.paypal.com"

# Telegram staff notifications
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_ADMIN_CHAT_IDS = os.getenv("TELEGRAM_ADMIN_CHAT_IDS", "")
