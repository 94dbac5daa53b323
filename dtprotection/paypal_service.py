"""
PayPal Invoicing integration
Mirrors local invoices to PayPal and interprets PayPal webhooks
"""
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx

from . import config
from .billing import round_cents

logger = logging.getLogger(__name__)


class PayPalError(Exception):
    """PayPal API call failed"""


@dataclass
class WebhookResult:
    type: str
    message: str
    resource_id: Optional[str] = None
    amount: Optional[float] = None


class PayPalService:
    def __init__(
        self,
        client_id: str = config.PAYPAL_CLIENT_ID,
        client_secret: str = config.PAYPAL_CLIENT_SECRET,
        api_url: str = config.PAYPAL_API_URL,
        webhook_id: str = config.PAYPAL_WEBHOOK_ID,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_url = api_url
        self.webhook_id = webhook_id
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def _access_token(self, http_client: httpx.AsyncClient) -> str:
        response = await http_client.post(
            f"{self.api_url}/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
        )
        if response.status_code != 200:
            raise PayPalError(f"PayPal authentication failed ({response.status_code})")
        try:
            return response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise PayPalError("PayPal authentication returned no access token") from e

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as http_client:
                token = await self._access_token(http_client)
                response = await http_client.request(
                    method,
                    f"{self.api_url}{path}",
                    json=json,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                        "Prefer": "return=representation",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"PayPal request {method} {path} failed: {e}")
            raise PayPalError(f"PayPal request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"PayPal {method} {path} returned {response.status_code}: {response.text}")
            raise PayPalError(f"PayPal returned {response.status_code}")

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"PayPal {method} {path} returned invalid JSON")
            raise PayPalError("PayPal returned an invalid response") from e

    def build_invoice(self, booking, invoice, service_name: str) -> dict:
        """PayPal v2 invoice payload allowing a partial (deposit) payment"""
        given_name, _, surname = booking.client_name.partition(" ")
        payload = {
            "detail": {
                "invoice_number": invoice.invoice_number,
                "currency_code": "USD",
                "note": f"Invoice for {service_name} service",
                "terms_and_conditions": f"Payment due within {config.INVOICE_DUE_DAYS} days",
                "payment_term": {"due_date": invoice.due_date.isoformat()},
            },
            "invoicer": {
                "business_name": config.COMPANY_NAME,
                "email_address": config.MAIL_FROM,
            },
            "primary_recipients": [
                {
                    "billing_info": {
                        "name": {"given_name": given_name, "surname": surname},
                        "email_address": booking.email,
                    }
                }
            ],
            "items": [
                {
                    "name": service_name,
                    "quantity": "1",
                    "unit_amount": {"currency_code": "USD", "value": f"{round_cents(invoice.amount):.2f}"},
                }
            ],
        }
        if invoice.deposit_amount:
            payload["configuration"] = {
                "partial_payment": {
                    "allow_partial_payment": True,
                    "minimum_amount_due": {
                        "currency_code": "USD",
                        "value": f"{round_cents(invoice.deposit_amount):.2f}",
                    },
                }
            }
        return payload

    async def create_invoice(self, booking, invoice, service_name: str) -> str:
        """Create a draft PayPal invoice and return its id"""
        result = await self._request("POST", "/v2/invoicing/invoices", self.build_invoice(booking, invoice, service_name))
        paypal_id = result.get("id")
        if not paypal_id:
            # Without Prefer honoured PayPal answers with a link to the new resource
            href = result.get("href", "")
            paypal_id = href.rsplit("/", 1)[-1] if href else None
        if not paypal_id:
            raise PayPalError("PayPal did not return an invoice id")
        logger.info(f"PayPal invoice {paypal_id} created for {invoice.invoice_number}")
        return paypal_id

    async def send_invoice(self, paypal_invoice_id: str) -> Dict[str, Any]:
        result = await self._request(
            "POST", f"/v2/invoicing/invoices/{paypal_invoice_id}/send", {"send_to_invoicer": True}
        )
        logger.info(f"PayPal invoice {paypal_invoice_id} sent")
        return result

    async def get_invoice(self, paypal_invoice_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v2/invoicing/invoices/{paypal_invoice_id}")

    async def verify_webhook(self, headers, event: dict) -> bool:
        """Check a webhook signature with PayPal; unverifiable when no webhook id is configured"""
        if not self.webhook_id:
            return True
        result = await self._request(
            "POST",
            "/v1/notifications/verify-webhook-signature",
            {
                "auth_algo": headers.get("paypal-auth-algo"),
                "cert_url": headers.get("paypal-cert-url"),
                "transmission_id": headers.get("paypal-transmission-id"),
                "transmission_sig": headers.get("paypal-transmission-sig"),
                "transmission_time": headers.get("paypal-transmission-time"),
                "webhook_id": self.webhook_id,
                "webhook_event": event,
            },
        )
        return result.get("verification_status") == "SUCCESS"

    @staticmethod
    def parse_webhook(event: dict) -> WebhookResult:
        event_type = event.get("event_type")
        resource = event.get("resource") or {}

        if event_type == "PAYMENT.CAPTURE.COMPLETED":
            return WebhookResult(
                type="payment_completed",
                message="Payment completed successfully",
                resource_id=resource.get("id"),
                amount=_money(resource.get("amount")),
            )
        if event_type == "INVOICING.INVOICE.PAID":
            invoice = resource.get("invoice", resource)
            amount = invoice.get("amount") or {}
            return WebhookResult(
                type="invoice_paid",
                message="Invoice paid successfully",
                resource_id=invoice.get("id"),
                amount=_money(amount.get("breakdown", {}).get("item_total") or amount),
            )
        return WebhookResult(type="unknown", message=f"Unhandled event type: {event_type}")


def _money(value: Optional[dict]) -> Optional[float]:
    if not value or "value" not in value:
        return None
    return float(value["value"])


# Global instance
paypal_service = PayPalService()
