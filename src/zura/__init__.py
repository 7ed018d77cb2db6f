"""Zura CRM Python client - authenticated, tenant-aware access to the CRM API."""

from .auth import AuthAPI
from .client import ZuraClient
from .config import load_config
from .events import Signal
from .exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    MethodNotAllowedError,
    NotFoundError,
    RateLimitError,
    RouteMismatchError,
    ServerError,
    TransportError,
    UnprocessableEntityError,
    ValidationError,
    ZuraError,
)
from .hydration import HydrationController
from .models import ClientConfig, Identity, Session
from .resources import RESOURCES, ResourceAPI
from .session import FileSessionStore, InMemorySessionStore, SessionStore
from .types import COOKIE_SENTINEL, HydrationState, SessionMode

__version__ = "0.1.0"

__all__ = [
    # Main client
    "ZuraClient",
    "AuthAPI",
    "HydrationController",
    "ResourceAPI",
    "RESOURCES",
    "load_config",
    "Signal",
    # Session
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
    # Models
    "ClientConfig",
    "Identity",
    "Session",
    # Types
    "SessionMode",
    "HydrationState",
    "COOKIE_SENTINEL",
    # Exceptions
    "ZuraError",
    "TransportError",
    "AuthenticationError",
    "RouteMismatchError",
    "ValidationError",
    "ApplicationError",
    "AuthorizationError",
    "NotFoundError",
    "MethodNotAllowedError",
    "UnprocessableEntityError",
    "RateLimitError",
    "ServerError",
]
