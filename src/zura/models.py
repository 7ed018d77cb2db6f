"""Pydantic models for the Zura API client."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import COOKIE_SENTINEL, SessionMode


class Session(BaseModel):
    """Process-wide authentication state."""

    model_config = ConfigDict(frozen=True)

    mode: SessionMode = SessionMode.COOKIE
    credential: Optional[str] = None
    tenant_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.credential is not None

    @property
    def bearer(self) -> Optional[str]:
        """Credential to send as a bearer token, if any.

        The cookie sentinel is a marker only; the cookie carries identity.
        """
        if self.credential is None or self.credential == COOKIE_SENTINEL:
            return None
        return self.credential


class Identity(BaseModel):
    """Identity payload returned by the backend's auth endpoints."""

    model_config = ConfigDict(extra="allow")

    # backends disagree on shapes here; anything that is not a dict reads as absent
    user: Any = None
    org: Any = None
    token: Optional[str] = None

    @field_validator("token", mode="before")
    @classmethod
    def _coerce_token(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        return str(value) if value != "" else None

    @property
    def profile(self) -> dict[str, Any]:
        """The user record, or an empty dict when the backend sent none."""
        return self.user if isinstance(self.user, dict) else {}

    @property
    def tenant_id(self) -> Optional[str]:
        """Organization id from ``org.id``, falling back to ``user.orgId``."""
        for source, key in ((self.org, "id"), (self.user, "orgId")):
            if isinstance(source, dict) and source.get(key):
                return str(source[key])
        return None

    @property
    def role(self) -> Optional[str]:
        role = self.profile.get("role")
        return str(role) if role else None

    def has_role(self, roles: Optional[list[str]] = None) -> bool:
        """Check the user's role against ``roles``; an empty list allows any role."""
        if not self.role:
            return False
        if not roles:
            return True
        return self.role in roles


class ClientConfig(BaseModel):
    """Resolved client configuration."""

    model_config = ConfigDict(frozen=True)

    api_root: Optional[str] = None
    use_cookies: bool = True
    timeout: float = Field(default=25.0, gt=0)
    session_file: Optional[str] = None
    tenant_header: str = "X-Org-Id"

    @property
    def mode(self) -> SessionMode:
        return SessionMode.COOKIE if self.use_cookies else SessionMode.TOKEN
