"""
Python clients for the admin and client portals
"""
from .admin import AdminPortal, PaymentsView
from .client import ClientPortal, GateDecision, validate_login
from .results import Err, FetchError, Ok
from .session import FileTokenStore, MemoryTokenStore, PortalSession

__all__ = [
    "AdminPortal",
    "ClientPortal",
    "Err",
    "FetchError",
    "FileTokenStore",
    "GateDecision",
    "MemoryTokenStore",
    "Ok",
    "PaymentsView",
    "PortalSession",
    "validate_login",
]
