"""Main client for the Zura API."""

import logging
from typing import Any, Optional

import httpx

from .config import build_base_url, load_config
from .events import Signal
from .exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    MethodNotAllowedError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
    UnprocessableEntityError,
)
from .hooks import UnauthorizedHandler, make_request_hook, normalize_list_payload, strip_api_prefix
from .models import ClientConfig, Session
from .session import FileSessionStore, InMemorySessionStore, SessionStore
from .types import SessionMode

logger = logging.getLogger(__name__)

_STATUS_ERRORS = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    405: MethodNotAllowedError,
    422: UnprocessableEntityError,
    429: RateLimitError,
}


def _decode(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    elif isinstance(payload, str) and payload.strip():
        return payload.strip()[:200]
    return default


def error_for_response(response: httpx.Response) -> ApplicationError | AuthenticationError:
    """Map a non-2xx response onto the client's exception hierarchy."""
    payload = _decode(response)
    status = response.status_code
    exc_type = _STATUS_ERRORS.get(status)
    if exc_type is not None:
        # each subclass supplies its own default message
        return exc_type(_error_message(payload, exc_type().message), payload=payload)
    if status >= 500:
        return ServerError(_error_message(payload, "Server error"), status_code=status, payload=payload)
    return ApplicationError(_error_message(payload, "Request failed"), status_code=status, payload=payload)


def build_params(params: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Drop empty query values; list values repeat the key."""
    if not params:
        return None
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            cleaned[key] = [str(v) for v in value]
        elif isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned or None


class ZuraClient:
    """
    Python client for the Zura CRM API.

    Every request is stamped with the stored credential and tenant id, list
    endpoints are normalized to bare lists, and any 401 tears the session down
    and fires ``session_invalidated``.

    Usage:
        async with ZuraClient(api_root="https://crm.example.com") as client:
            await client.hydration.hydrate()
            if not await client.hydration.require_auth():
                await client.hydration.signin({"email": "a@b.c", "password": "..."})

            leads = await client.leads.list({"status": "new"})
            await client.tasks.update("42", {"done": True})
    """

    def __init__(
        self,
        api_root: Optional[str] = None,
        *,
        use_cookies: Optional[bool] = None,
        timeout: Optional[float] = None,
        store: Optional[SessionStore] = None,
        tenant_header: Optional[str] = None,
        config: Optional[ClientConfig] = None,
    ):
        """
        Initialize the client.

        Args:
            api_root: Backend origin; requests go to ``{api_root}/api``
            use_cookies: Cookie-session mode (True) or bearer-token mode (False)
            timeout: Request timeout in seconds
            store: Session store; defaults to the configured session file
            tenant_header: Header carrying the active organization id
            config: Resolved configuration (default: loaded from environment)
        """
        if config is None:
            config = load_config()
        overrides = {
            k: v
            for k, v in (
                ("api_root", api_root),
                ("use_cookies", use_cookies),
                ("timeout", timeout),
                ("tenant_header", tenant_header),
            )
            if v is not None
        }
        if overrides:
            config = config.model_copy(update=overrides)
        self.config = config

        if store is None:
            if config.session_file:
                store = FileSessionStore(config.session_file, mode=config.mode)
            else:
                store = InMemorySessionStore(mode=config.mode)
        self.store = store

        self.base_url = build_base_url(config.api_root)
        self._api_prefix = httpx.URL(self.base_url).path.rstrip("/")
        self.session_invalidated = Signal("session_invalidated")
        self._unauthorized = UnauthorizedHandler(self.store, self.session_invalidated)
        self._client: Optional[httpx.AsyncClient] = None

        # imported here: these modules reference ZuraClient for typing
        from .auth import AuthAPI
        from .hydration import HydrationController
        from .resources import (
            RESOURCES,
            DealsAPI,
            DocumentsAPI,
            ForecastsAPI,
            ResourceAPI,
            StatsAPI,
            UsersAPI,
        )

        self.auth = AuthAPI(self)
        self.hydration = HydrationController(self)

        self.leads = ResourceAPI(self, "leads", RESOURCES["leads"])
        self.contacts = ResourceAPI(self, "contacts", RESOURCES["contacts"])
        self.deals = DealsAPI(self, "deals", RESOURCES["deals"])
        self.tasks = ResourceAPI(self, "tasks", RESOURCES["tasks"])
        self.meetings = ResourceAPI(self, "meetings", RESOURCES["meetings"])
        self.calls = ResourceAPI(self, "calls", RESOURCES["calls"])
        self.products = ResourceAPI(self, "products", RESOURCES["products"])
        self.quotes = ResourceAPI(self, "quotes", RESOURCES["quotes"])
        self.salesorders = ResourceAPI(self, "salesorders", RESOURCES["salesorders"])
        self.invoices = ResourceAPI(self, "invoices", RESOURCES["invoices"])
        self.campaigns = ResourceAPI(self, "campaigns", RESOURCES["campaigns"])
        self.documents = DocumentsAPI(self, "documents", RESOURCES["documents"])
        self.forecasts = ForecastsAPI(self)
        self.stats = StatsAPI(self)
        self.users = UsersAPI(self)

    async def __aenter__(self) -> "ZuraClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=self.config.timeout,
            event_hooks={
                "request": [make_request_hook(self.store, self.config.tenant_header)],
                "response": [self._unauthorized],
            },
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure client is initialized."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async with context manager.")
        return self._client

    @property
    def session(self) -> Session:
        """Current session, read synchronously from the store."""
        return self.store.get()

    @property
    def mode(self) -> SessionMode:
        return self.store.mode

    @property
    def is_authenticated(self) -> bool:
        return self.store.get().is_authenticated

    def resource(self, name: str, path: Optional[str] = None):
        """Build CRUD helpers for any resource, e.g. ``client.resource("accounts")``."""
        from .resources import ResourceAPI

        return ResourceAPI(self, name, path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        files: Any = None,
        raw: bool = False,
    ) -> Any:
        """
        Make HTTP request with error handling.

        Args:
            method: HTTP method
            path: API path, relative to the API prefix
            json: JSON body
            params: Query parameters (empty values are dropped)
            headers: Extra headers; these win over session headers
            files: Multipart files
            raw: Return the body as bytes instead of decoding it

        Returns:
            Decoded response payload (None for empty bodies)

        Raises:
            TransportError: No response received (network failure, timeout)
            AuthenticationError: Authentication failed (401)
            ApplicationError: Any other non-2xx response
        """
        client = self._ensure_client()
        method = method.upper()

        try:
            response = await client.request(
                method,
                path,
                json=json,
                params=build_params(params),
                headers=headers,
                files=files,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error: {e}") from e

        if response.status_code >= 400:
            error = error_for_response(response)
            logger.debug("<- %s %s failed: %s", method, path, response.status_code)
            raise error

        if raw:
            return response.content

        payload = _decode(response)
        return normalize_list_payload(
            method,
            strip_api_prefix(response.request.url.path, self._api_prefix),
            payload,
        )

    async def get(self, path: str, params: Optional[dict[str, Any]] = None, **kwargs: Any) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
