"""Configuration for the Zura API client.

Values are resolved through a scitrera-app-framework ``Variables`` instance,
which falls back to environment variables. Explicit constructor arguments on
:class:`zura.client.ZuraClient` take precedence over anything resolved here.
"""

from pathlib import Path
from typing import Optional

from scitrera_app_framework import Variables, ext_parse_bool, get_variables

from .models import ClientConfig

# ============================================
# Backend Location
# ============================================
ZURA_API_URL = 'ZURA_API_URL'
DEFAULT_ZURA_API_URL = None
# Origin used when no API URL is configured (development proxy target)
DEFAULT_API_ORIGIN = 'http://localhost:4000'
API_PREFIX = '/api'

# ============================================
# Session
# ============================================
ZURA_USE_COOKIES = 'ZURA_USE_COOKIES'
DEFAULT_ZURA_USE_COOKIES = True

ZURA_SESSION_FILE = 'ZURA_SESSION_FILE'
DEFAULT_ZURA_SESSION_FILE = None
# Session file used by the command line when none is configured
DEFAULT_CLI_SESSION_FILE = str(Path.home() / '.zura' / 'session.json')

ZURA_TENANT_HEADER = 'ZURA_TENANT_HEADER'
DEFAULT_ZURA_TENANT_HEADER = 'X-Org-Id'

# ============================================
# Transport
# ============================================
ZURA_TIMEOUT = 'ZURA_TIMEOUT'
DEFAULT_ZURA_TIMEOUT = 25.0


def load_config(v: Optional[Variables] = None) -> ClientConfig:
    """Resolve a :class:`ClientConfig` from variables / environment."""
    if v is None:
        v = get_variables()
    api_root = v.environ(ZURA_API_URL, default=DEFAULT_ZURA_API_URL)
    return ClientConfig(
        api_root=(str(api_root).strip() or None) if api_root else None,
        use_cookies=v.environ(ZURA_USE_COOKIES, default=DEFAULT_ZURA_USE_COOKIES, type_fn=ext_parse_bool),
        timeout=v.environ(ZURA_TIMEOUT, default=DEFAULT_ZURA_TIMEOUT, type_fn=float),
        session_file=v.environ(ZURA_SESSION_FILE, default=DEFAULT_ZURA_SESSION_FILE),
        tenant_header=v.environ(ZURA_TENANT_HEADER, default=DEFAULT_ZURA_TENANT_HEADER),
    )


def build_base_url(api_root: Optional[str]) -> str:
    """``{api_root}/api``, or the development origin when no root is configured."""
    root = (api_root or '').strip().rstrip('/') or DEFAULT_API_ORIGIN
    return f"{root}{API_PREFIX}"
