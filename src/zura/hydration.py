"""Startup identity hydration and the protected-view guard."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

import pydantic

from .exceptions import ZuraError
from .models import Identity
from .types import COOKIE_SENTINEL, HydrationState, SessionMode

if TYPE_CHECKING:
    from .client import ZuraClient

logger = logging.getLogger(__name__)

_TERMINAL = (HydrationState.AUTHENTICATED, HydrationState.ANONYMOUS)


class HydrationController:
    """
    Tracks whether the visitor is signed in.

    State moves UNKNOWN -> PROBING -> AUTHENTICATED | ANONYMOUS. The identity
    probe runs at most once per hydration; concurrent callers await the same
    in-flight task. A session invalidated by a 401 anywhere moves the state to
    ANONYMOUS.
    """

    def __init__(self, client: "ZuraClient") -> None:
        self._client = client
        self.state = HydrationState.UNKNOWN
        self.identity: Optional[Identity] = None
        self._inflight: Optional[asyncio.Task] = None
        client.session_invalidated.connect(self._on_invalidated)

    @property
    def is_loading(self) -> bool:
        return self.state not in _TERMINAL

    @property
    def is_authenticated(self) -> bool:
        return self._client.session.is_authenticated

    async def hydrate(self) -> HydrationState:
        """Resolve the current identity, probing the backend only if needed."""
        if self.state in _TERMINAL:
            return self.state
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._probe())
        # shielded: an abandoned waiter must not cancel the shared probe
        return await asyncio.shield(self._inflight)

    async def refresh(self) -> HydrationState:
        """Forget the last result and hydrate again."""
        self.reset()
        return await self.hydrate()

    def reset(self) -> None:
        """Return to UNKNOWN so the next guard probes again; no-op while a probe is running."""
        if self._inflight is not None:
            logger.debug("Hydration reset skipped: identity check in flight")
            return
        self.state = HydrationState.UNKNOWN

    async def require_auth(self) -> bool:
        """Guard for protected views: waits out loading, then reports sign-in."""
        await self.hydrate()
        return self.is_authenticated

    async def public_only(self) -> bool:
        """Guard for sign-in/sign-up views: True when nobody is signed in."""
        return not await self.require_auth()

    async def _probe(self) -> HydrationState:
        try:
            session = self._client.session
            if session.mode is SessionMode.TOKEN and not session.is_authenticated:
                return self._set_anonymous(clear=False)

            self.state = HydrationState.PROBING
            try:
                identity = await self._client.auth.me()
            except (ZuraError, pydantic.ValidationError) as e:
                logger.warning("Identity check failed: %s", e)
                return self._set_anonymous(clear=True)

            if identity is None or not identity.profile:
                return self._set_anonymous(clear=True)

            credential = session.credential
            if credential is None and session.mode is SessionMode.COOKIE:
                credential = COOKIE_SENTINEL
            self._client.store.set(credential, identity.tenant_id or session.tenant_id)
            return self._set_authenticated(identity)
        finally:
            self._inflight = None

    def _set_authenticated(self, identity: Identity) -> HydrationState:
        self.identity = identity
        self.state = HydrationState.AUTHENTICATED
        logger.info("Session authenticated (tenant=%s)", self._client.session.tenant_id)
        return self.state

    def _set_anonymous(self, clear: bool) -> HydrationState:
        if clear:
            self._client.store.clear()
        self.identity = None
        self.state = HydrationState.ANONYMOUS
        logger.info("Session anonymous")
        return self.state

    def _on_invalidated(self, *args: Any) -> None:
        self.identity = None
        self.state = HydrationState.ANONYMOUS

    # Session-changing operations, kept in step with the hydration state

    async def signin(self, credentials: dict[str, Any]) -> Identity:
        identity = await self._client.auth.signin(credentials)
        self._set_authenticated(identity)
        return identity

    async def signup(self, payload: dict[str, Any]) -> Identity:
        identity = await self._client.auth.signup(payload)
        self._set_authenticated(identity)
        return identity

    async def signout(self) -> None:
        try:
            await self._client.auth.signout()
        finally:
            self.identity = None
            self.state = HydrationState.ANONYMOUS
