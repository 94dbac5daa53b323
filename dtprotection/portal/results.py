"""
Typed results for portal API calls

Every call returns ``Ok(value)`` or ``Err(FetchError)``; nothing is logged
and dropped on the way.
"""
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

NETWORK = "network"
HTTP = "http"
DECODE = "decode"
VALIDATION = "validation"


@dataclass(frozen=True)
class FetchError:
    kind: str
    message: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: FetchError

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def _error_message(body: Any, response: httpx.Response) -> str:
    """Server error text as sent: ``detail`` (FastAPI) or ``error``"""
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if key in body:
                value = body[key]
                return value if isinstance(value, str) else str(value)
    return response.reason_phrase or f"HTTP {response.status_code}"


def request_json(
    http: httpx.Client,
    method: str,
    path: str,
    token: Optional[str] = None,
    **kwargs,
) -> Result:
    """Perform one request and decode its JSON body"""
    headers = dict(kwargs.pop("headers", None) or {})
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = http.request(method, path, headers=headers, **kwargs)
    except httpx.HTTPError as e:
        logger.warning(f"{method} {path} failed: {e}")
        return Err(FetchError(NETWORK, str(e) or "Network error"))

    try:
        body = response.json() if response.content else None
    except ValueError:
        if response.is_success:
            return Err(FetchError(DECODE, "Response was not valid JSON", response.status_code))
        body = None

    if not response.is_success:
        return Err(FetchError(HTTP, _error_message(body, response), response.status_code))

    return Ok(body)
