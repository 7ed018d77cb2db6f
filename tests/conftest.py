"""Pytest configuration and fixtures for zura client tests."""

import pytest

from zura import ClientConfig, InMemorySessionStore, SessionMode, ZuraClient


@pytest.fixture
def api_root() -> str:
    """Test backend origin."""
    return "http://test.zura.local"


@pytest.fixture
def base_url(api_root: str) -> str:
    """Test API base URL."""
    return f"{api_root}/api"


@pytest.fixture
def token_store() -> InMemorySessionStore:
    """Token-mode store holding a credential and tenant."""
    return InMemorySessionStore(mode=SessionMode.TOKEN, credential="abc123", tenant_id="org-7")


@pytest.fixture
def client(api_root: str, token_store: InMemorySessionStore) -> ZuraClient:
    """Token-mode client with a signed-in session."""
    return ZuraClient(config=ClientConfig(api_root=api_root, use_cookies=False), store=token_store)


@pytest.fixture
def anonymous_client(api_root: str) -> ZuraClient:
    """Token-mode client with no stored credential."""
    store = InMemorySessionStore(mode=SessionMode.TOKEN)
    return ZuraClient(config=ClientConfig(api_root=api_root, use_cookies=False), store=store)


@pytest.fixture
def cookie_client(api_root: str) -> ZuraClient:
    """Cookie-mode client with no stored credential."""
    store = InMemorySessionStore(mode=SessionMode.COOKIE)
    return ZuraClient(config=ClientConfig(api_root=api_root, use_cookies=True), store=store)
