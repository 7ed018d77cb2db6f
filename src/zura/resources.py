"""CRUD helpers for the CRM's REST resources."""

import logging
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from .exceptions import ApplicationError, RouteMismatchError, ValidationError, is_route_mismatch
from .probing import first_that_works

if TYPE_CHECKING:
    from .client import ZuraClient

logger = logging.getLogger(__name__)

ResourceId = Union[str, int]

# Resource name -> base path
RESOURCES: Mapping[str, str] = MappingProxyType({
    "leads": "/leads",
    "contacts": "/contacts",
    "deals": "/deals",
    "tasks": "/tasks",
    "meetings": "/meetings",
    "calls": "/calls",
    "products": "/products",
    "quotes": "/quotes",
    "salesorders": "/salesorders",
    "invoices": "/invoices",
    "campaigns": "/campaigns",
    "documents": "/documents",
})

# Users routes are mounted inconsistently across backend versions
USERS_CANDIDATES = ("/users/users", "/users")

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def to_items(data: Any) -> list:
    """Coerce a list payload (bare or ``{"items": [...]}``) to a list."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    return []


def _require_id(id: Optional[ResourceId]) -> str:
    if id is None or str(id).strip() == "":
        raise ValidationError("A record id is required")
    return str(id).strip()


async def update_with_fallback(client: "ZuraClient", path: str, data: Any) -> Any:
    """
    PATCH ``path``; if the backend has no PATCH route for it, PUT once instead.

    Only 404 and 405 on the PATCH trigger the retry. Any other failure, and any
    failure of the PUT itself, propagates unchanged.
    """
    try:
        return await client.patch(path, json=data)
    except ApplicationError as e:
        if not is_route_mismatch(e):
            raise
        logger.warning("PATCH %s answered %s, retrying as PUT", path, e.status_code)
    return await client.put(path, json=data)


class ResourceAPI:
    """The five standard operations for one REST resource."""

    def __init__(self, client: "ZuraClient", name: str, path: Optional[str] = None) -> None:
        self._client = client
        self.name = name
        self.path = (path or f"/{name}").rstrip("/")

    def _item_path(self, id: ResourceId) -> str:
        return f"{self.path}/{_require_id(id)}"

    async def list_raw(self, params: Optional[dict[str, Any]] = None) -> Any:
        """List records, returning the payload exactly as normalized by the client."""
        return await self._client.get(self.path, params=params)

    async def list(self, params: Optional[dict[str, Any]] = None) -> list:
        """List records. Always returns a list."""
        return to_items(await self.list_raw(params))

    async def get(self, id: ResourceId) -> Any:
        return await self._client.get(self._item_path(id))

    async def create(self, data: dict[str, Any]) -> Any:
        return await self._client.post(self.path, json=data)

    async def update(self, id: ResourceId, data: dict[str, Any]) -> Any:
        """Partially update a record, falling back to PUT where PATCH is unsupported."""
        return await update_with_fallback(self._client, self._item_path(id), data)

    async def remove(self, id: ResourceId) -> Any:
        return await self._client.delete(self._item_path(id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, {self.path!r})"


class DealsAPI(ResourceAPI):
    """Deals, plus pipeline stages and the kanban board view."""

    async def stages(self) -> Any:
        return await self._client.get(f"{self.path}/stages")

    async def kanban(self, params: Optional[dict[str, Any]] = None) -> Any:
        # kanban payload is grouped by stage, not a flat list
        return await self._client.get(self.path, params={"view": "kanban", **(params or {})})


class DocumentsAPI(ResourceAPI):
    """Documents, plus file upload and download."""

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Any:
        files = {"file": (filename, content, content_type)}
        return await self._client.post(self.path, files=files)

    async def download(self, id: ResourceId) -> bytes:
        return await self._client.get(f"{self._item_path(id)}/download", raw=True)


class ForecastsAPI:
    def __init__(self, client: "ZuraClient") -> None:
        self._client = client

    async def summary(self) -> Any:
        return await self._client.get("/forecasts/summary")


class StatsAPI:
    """Aggregate counters shown on the dashboard."""

    def __init__(self, client: "ZuraClient") -> None:
        self._client = client

    async def leads(self) -> Any:
        return await self._client.get("/leads/stats")

    async def deals(self) -> Any:
        return await self._client.get("/deals/stats")

    async def activities(self) -> Any:
        return await self._client.get("/activities/stats")


class UsersAPI:
    """
    Organization user management.

    The users router may be mounted at ``/users`` or, on some backends, at
    ``/users/users``. The first call detects which one answers with a user
    list and all later calls reuse it.
    """

    def __init__(self, client: "ZuraClient", candidates: tuple[str, ...] = USERS_CANDIDATES) -> None:
        self._client = client
        self.candidates = candidates
        self.base: Optional[str] = None

    async def _fetch(self, path: str) -> list:
        data = await self._client.get(path)
        if isinstance(data, list) or (isinstance(data, dict) and isinstance(data.get("items"), list)):
            return to_items(data)
        raise RouteMismatchError(f"{path} did not answer with a user list", candidates=(path,))

    async def list(self) -> list:
        if self.base is not None:
            return await self._fetch(self.base)
        self.base, users = await first_that_works(self.candidates, self._fetch, operation="user listing")
        logger.debug("Users API detected at %s", self.base)
        return users

    async def _ensure_base(self) -> str:
        if self.base is None:
            await self.list()
        return self.base

    async def invite(self, email: str, role: str = "user") -> Any:
        email = (email or "").strip()
        if not _EMAIL_RE.fullmatch(email):
            raise ValidationError("Enter a valid email address.")
        base = await self._ensure_base()
        return await self._client.post(f"{base}/invite", json={"email": email, "role": role})

    async def update(self, id: ResourceId, data: dict[str, Any]) -> Any:
        base = await self._ensure_base()
        return await update_with_fallback(self._client, f"{base}/{_require_id(id)}", data)

    async def remove(self, id: ResourceId) -> Any:
        base = await self._ensure_base()
        return await self._client.delete(f"{base}/{_require_id(id)}")
