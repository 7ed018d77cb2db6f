"""
Auth API - identify, sign in, sign up, sign out.

Backends disagree on how the auth routes are named, so every operation probes
an ordered list of candidate paths and uses the first one that is mounted.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

import pydantic

from .exceptions import ApplicationError, AuthenticationError, ZuraError
from .models import Identity
from .probing import first_that_works
from .types import COOKIE_SENTINEL, SessionMode

if TYPE_CHECKING:
    from .client import ZuraClient

logger = logging.getLogger(__name__)

ME_PATHS = ("/auth/me",)
SIGNIN_PATHS = ("/auth/signin", "/auth/login")
SIGNUP_PATHS = ("/auth/signup", "/auth/register")
SIGNOUT_PATHS = ("/auth/signout", "/auth/logout")


def _parse_identity(data: dict[str, Any], operation: str) -> Identity:
    try:
        return Identity.model_validate(data)
    except pydantic.ValidationError as e:
        raise ApplicationError(
            f"Unexpected {operation} response: {e.error_count()} invalid field(s)",
            status_code=None,
            payload=data,
        ) from e


class AuthAPI:
    """Authentication operations backed by the client's session store."""

    def __init__(self, client: "ZuraClient") -> None:
        self._client = client

    async def me(self) -> Optional[Identity]:
        """
        Identify the current visitor.

        In token mode without a stored credential this returns None without
        touching the network.

        Returns:
            Identity payload, or None when the visitor is anonymous

        Raises:
            RouteMismatchError: No identity route is mounted
            ZuraError: Any other failure except 401
        """
        session = self._client.session
        if session.mode is SessionMode.TOKEN and not session.is_authenticated:
            return None

        try:
            _, data = await first_that_works(ME_PATHS, self._client.get, operation="identity check")
        except AuthenticationError:
            return None

        if not isinstance(data, dict) or not data:
            return None
        return _parse_identity(data, "identity check")

    async def signin(self, credentials: dict[str, Any]) -> Identity:
        """Sign in and store the returned credential and tenant."""
        return await self._authenticate(SIGNIN_PATHS, credentials, "sign-in")

    async def signup(self, payload: dict[str, Any]) -> Identity:
        """Register and store the returned credential and tenant."""
        return await self._authenticate(SIGNUP_PATHS, payload, "sign-up")

    async def signout(self) -> None:
        """
        Sign out.

        The backend is notified on a best-effort basis; the local session is
        cleared whether or not that call succeeds.
        """
        try:
            await first_that_works(SIGNOUT_PATHS, self._post_empty, operation="sign-out")
        except ZuraError as e:
            logger.warning("Sign-out request failed, clearing local session anyway: %s", e)
        finally:
            self._client.store.clear()
        logger.info("Signed out")

    async def _post_empty(self, path: str) -> Any:
        return await self._client.post(path, json={})

    async def _authenticate(self, paths: tuple[str, ...], body: dict[str, Any], operation: str) -> Identity:
        async def attempt(path: str) -> Any:
            return await self._client.post(path, json=body)

        path, data = await first_that_works(paths, attempt, operation=operation)
        identity = _parse_identity(data, operation) if isinstance(data, dict) else Identity()

        # no token in the response means the backend set a session cookie
        credential = identity.token or COOKIE_SENTINEL
        self._client.store.set(credential, identity.tenant_id)
        logger.info("%s succeeded via %s (tenant=%s)", operation, path, identity.tenant_id)
        return identity
