"""Type definitions and enums for the Zura API client."""

from enum import Enum


class SessionMode(str, Enum):
    """How the backend authenticates a visitor."""

    COOKIE = "cookie"  # Server-managed session cookie
    TOKEN = "token"  # Client-held bearer credential


class HydrationState(str, Enum):
    """Lifecycle of the startup identity check."""

    UNKNOWN = "unknown"
    PROBING = "probing"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


# Placeholder credential for cookie sessions: marks the visitor as signed in
# without a bearer value to send.
COOKIE_SENTINEL = "session"
