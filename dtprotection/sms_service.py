"""
SMS notifications through Twilio or Vonage
"""
import logging
from typing import Optional

import httpx

from . import config
from .billing import days_until, remaining_balance
from .email_service import format_date, service_title

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES = {
    "booking_confirmation": (
        "Hi {name}, your {service} booking for {date} has been received. "
        "Total: ${total}, Deposit: ${deposit}. Reply STOP to unsubscribe."
    ),
    "payment_reminder": (
        "Hi {name}, payment reminder for {service} on {date}. Remaining: ${remaining}. "
        "Days until event: {days}. Reply STOP to unsubscribe."
    ),
    "status_update": (
        "Hi {name}, your {service} booking status has been updated to {status}. Reply STOP to unsubscribe."
    ),
    "urgent_reminder": (
        "URGENT: Hi {name}, payment due for {service} on {date}. Only {days} days left. "
        "Call us immediately. Reply STOP to unsubscribe."
    ),
}


def fill(template: str, **values) -> str:
    """Substitute ``{key}`` placeholders, leaving unknown ones untouched"""
    for key, value in values.items():
        template = template.replace("{" + key + "}", str(value))
    return template


def _amount(value: float) -> str:
    return f"{value:,.2f}"


class SMSService:
    """Send SMS messages to clients"""

    def __init__(
        self,
        provider: str = config.SMS_PROVIDER,
        api_key: str = config.SMS_API_KEY,
        api_secret: str = config.SMS_API_SECRET,
        from_number: str = config.SMS_FROM_NUMBER,
        account_sid: Optional[str] = config.TWILIO_ACCOUNT_SID,
    ):
        self.provider = provider
        self.api_key = api_key
        self.api_secret = api_secret
        self.from_number = from_number
        self.account_sid = account_sid
        self.templates = dict(DEFAULT_TEMPLATES)

        if not self.api_key or not self.from_number:
            logger.warning("SMS provider credentials not set, SMS sending will fail")

    def set_templates(self, **templates: str) -> None:
        self.templates.update(templates)

    async def send_sms(self, to: str, message: str, priority: str = "normal") -> bool:
        """Send one SMS; provider errors are logged and reported as False"""
        try:
            if self.provider == "twilio":
                ok = await self._send_via_twilio(to, message)
            elif self.provider == "vonage":
                ok = await self._send_via_vonage(to, message)
            else:
                logger.error(f"Unsupported SMS provider: {self.provider}")
                return False
        except httpx.HTTPError as e:
            logger.error(f"SMS to {to} failed: {e}")
            return False

        if ok:
            logger.info(f"SMS sent to {to} (priority={priority})")
        else:
            logger.warning(f"SMS provider rejected message to {to}")
        return ok

    async def _send_via_twilio(self, to: str, message: str) -> bool:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}/Messages.json",
                auth=(self.api_key, self.api_secret),
                data={"To": to, "From": self.from_number, "Body": message},
            )
        return response.status_code in (200, 201)

    async def _send_via_vonage(self, to: str, message: str) -> bool:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                "https://rest.nexmo.com/sms/json",
                data={
                    "api_key": self.api_key,
                    "api_secret": self.api_secret,
                    "to": to,
                    "from": self.from_number,
                    "text": message,
                },
            )
        return response.status_code == 200

    async def send_booking_confirmation(self, booking) -> bool:
        payment = booking.payment
        message = fill(
            self.templates["booking_confirmation"],
            name=booking.client_name,
            service=service_title(booking.service_type),
            date=format_date(booking.date),
            total=_amount(payment.total_amount if payment else 0),
            deposit=_amount(payment.deposit_amount if payment else 0),
        )
        return await self.send_sms(booking.phone, message)

    async def send_payment_reminder(self, booking, invoice=None) -> bool:
        """Switches to the urgent template three days before the event"""
        days = days_until(booking.date)
        payment = booking.payment
        remaining = remaining_balance(payment.total_amount, payment.paid_amount) if payment else 0
        urgent = days <= 3
        template = self.templates["urgent_reminder" if urgent else "payment_reminder"]

        message = fill(
            template,
            name=booking.client_name,
            service=service_title(booking.service_type),
            date=format_date(booking.date),
            remaining=_amount(remaining),
            days=days,
        )
        return await self.send_sms(booking.phone, message, priority="high" if urgent else "normal")

    async def send_status_update(self, booking, status: str) -> bool:
        message = fill(
            self.templates["status_update"],
            name=booking.client_name,
            service=service_title(booking.service_type),
            status=status,
        )
        return await self.send_sms(booking.phone, message)

    async def send_urgent_reminder(self, booking) -> bool:
        message = fill(
            self.templates["urgent_reminder"],
            name=booking.client_name,
            service=service_title(booking.service_type),
            date=format_date(booking.date),
            days=days_until(booking.date),
        )
        return await self.send_sms(booking.phone, message, priority="high")

    async def verify_connection(self) -> bool:
        """Credentials are present and the provider answers an authenticated request"""
        if not self.api_key or not self.api_secret:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                if self.provider == "twilio":
                    response = await client.get(
                        f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}.json",
                        auth=(self.api_key, self.api_secret),
                    )
                else:
                    response = await client.get(
                        "https://rest.nexmo.com/account/get-balance",
                        params={"api_key": self.api_key, "api_secret": self.api_secret},
                    )
        except httpx.HTTPError as e:
            logger.error(f"SMS provider connection failed: {e}")
            return False
        return response.status_code == 200


# Global instance
sms_service = SMSService()
