"""
Client portal client
"""
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from ..validators import is_valid_booking_id, is_valid_email
from .results import DECODE, NETWORK, VALIDATION, Err, FetchError, Ok, Result, request_json
from .session import PortalSession

LOGIN_PATH = "/client/login"
HOME_PATH = "/client"


@dataclass
class GateDecision:
    """Outcome of opening a protected portal page"""
    allowed: bool
    redirect: Optional[str] = None
    profile: Optional[dict] = None
    error: Optional[FetchError] = None


def validate_login(email: str, booking_id: str) -> Dict[str, str]:
    """Field errors for the login form, empty when it can be submitted"""
    errors = {}
    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    if not booking_id:
        errors["bookingId"] = "Booking ID is required"
    elif not is_valid_booking_id(booking_id):
        errors["bookingId"] = "Please enter a valid booking ID"
    return errors


class ClientPortal:
    def __init__(self, http: httpx.Client, session: Optional[PortalSession] = None):
        self.http = http
        self.session = session or PortalSession("client")

    def _call(self, method: str, path: str, **kwargs) -> Result:
        return request_json(self.http, method, path, token=self.session.token, **kwargs)

    def login(self, email: str, booking_id: str) -> Result:
        """Store the token and client blob once, then go to the portal home"""
        email = email.strip()
        booking_id = booking_id.strip()
        errors = validate_login(email, booking_id)
        if errors:
            return Err(FetchError(VALIDATION, next(iter(errors.values()))))

        result = request_json(
            self.http, "POST", "/api/client/login", json={"email": email, "bookingId": booking_id}
        )
        if not result.ok:
            return result

        body = result.value or {}
        if not body.get("token"):
            return Err(FetchError(DECODE, "Login response did not contain a token"))

        self.session.save(body["token"], body.get("client"))
        return Ok(HOME_PATH)

    def logout(self) -> str:
        self.session.clear()
        return LOGIN_PATH

    def gate(self) -> GateDecision:
        """Check a protected page may render

        Without a token the visitor goes to the login page. With one the
        profile is fetched once; a rejected token is forgotten.
        """
        if not self.session.is_authenticated:
            return GateDecision(allowed=False, redirect=LOGIN_PATH)

        result = self._call("GET", "/api/client/profile")
        if not result.ok:
            if result.error.kind != NETWORK:
                self.session.clear_token()
            return GateDecision(allowed=False, redirect=LOGIN_PATH, error=result.error)

        self.session.cache_profile(result.value)
        return GateDecision(allowed=True, profile=result.value)

    def bookings(self, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Result:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return self._call("GET", "/api/client/bookings", params=params)

    def invoices(self, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Result:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return self._call("GET", "/api/client/invoices", params=params)

    def statistics(self) -> Result:
        return self._call("GET", "/api/client/statistics")

    def update_preferences(self, email: bool, sms: bool) -> Result:
        return self._call(
            "PUT", "/api/client/preferences", json={"communicationPreferences": {"email": email, "sms": sms}}
        )

    def submit_booking(self, form: dict) -> Result:
        """Public booking form; returns the created booking"""
        return request_json(self.http, "POST", "/api/bookings", json=form)
