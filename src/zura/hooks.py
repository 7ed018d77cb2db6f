"""
Request/response hooks installed on the client's httpx transport.

- attach_session_headers: stamps Authorization and tenant headers (pre-dispatch)
- normalize_list_payload: unwraps ``{"items": [...]}`` list envelopes (post-dispatch)
- UnauthorizedHandler: tears the session down on any 401 (post-dispatch)
"""

import logging
import re
from typing import Any, Awaitable, Callable

import httpx

from .config import API_PREFIX
from .events import Signal
from .models import Session
from .session import SessionStore

logger = logging.getLogger(__name__)

# Collection resources whose list endpoints may answer with an envelope
LIST_RESOURCES = frozenset({
    "leads",
    "contacts",
    "products",
    "deals",
    "quotes",
    "invoices",
    "salesorders",
    "tasks",
    "meetings",
    "calls",
    "documents",
    "campaigns",
    "activities",
    "forecasts",
    "users",
})

_LIST_PATH_RE = re.compile(
    r"^/?(" + "|".join(sorted(LIST_RESOURCES)) + r")/?(?:[?#]|$)",
    re.IGNORECASE,
)

ENVELOPE_FIELD = "items"


def attach_session_headers(
    headers: httpx.Headers,
    session: Session,
    tenant_header: str = "X-Org-Id",
) -> httpx.Headers:
    """Add bearer and tenant headers unless the caller already set them."""
    bearer = session.bearer
    if bearer and "Authorization" not in headers:
        headers["Authorization"] = f"Bearer {bearer}"
    if session.tenant_id and tenant_header not in headers:
        headers[tenant_header] = session.tenant_id
    return headers


def make_request_hook(
    store: SessionStore,
    tenant_header: str = "X-Org-Id",
) -> Callable[[httpx.Request], Awaitable[None]]:
    """Build the pre-dispatch hook. The store is read per request, never cached."""

    async def on_request(request: httpx.Request) -> None:
        attach_session_headers(request.headers, store.get(), tenant_header)
        logger.debug("-> %s %s", request.method, request.url.path)

    return on_request


def strip_api_prefix(path: str, prefix: str = API_PREFIX) -> str:
    """Turn ``/api/deals/123`` into ``/deals/123``."""
    prefix = prefix.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        return path[len(prefix):] or "/"
    return path


def is_list_path(path: str) -> bool:
    return bool(_LIST_PATH_RE.match(path))


def normalize_list_payload(method: str, path: str, payload: Any) -> Any:
    """
    Present allow-listed list endpoints as a bare list.

    Only GET responses on a recognised collection path (``/leads``, not
    ``/leads/1`` or ``/leads/stats``) are touched, and only when the payload
    is a dict carrying a list under ``items``. Everything else is returned
    as-is.

    Args:
        method: HTTP method of the request
        path: Request path relative to the API prefix
        payload: Decoded JSON body

    Returns:
        The unwrapped list, or ``payload`` unchanged
    """
    if method.upper() != "GET" or not is_list_path(path):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(ENVELOPE_FIELD), list):
        logger.debug("Unwrapped '%s' envelope for %s", ENVELOPE_FIELD, path)
        return payload[ENVELOPE_FIELD]
    return payload


class UnauthorizedHandler:
    """
    Global reaction to authentication failure.

    Registered once as a response hook. Any 401, whatever the operation,
    clears the session store and emits ``signal``. The response itself is left
    untouched so the caller still receives the failure.
    """

    def __init__(self, store: SessionStore, signal: Signal) -> None:
        self.store = store
        self.signal = signal

    def handle(self, response: httpx.Response) -> None:
        if response.status_code != 401:
            return
        logger.warning(
            "Session invalidated by 401 on %s %s",
            response.request.method,
            response.request.url.path,
        )
        self.store.clear()
        self.signal.emit(response)

    async def __call__(self, response: httpx.Response) -> None:
        self.handle(response)
