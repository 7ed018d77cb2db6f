"""Unit tests for ZuraClient and resource helpers."""

import json

import httpx
import pytest
import respx
from httpx import Response

from zura import (
    ApplicationError,
    AuthenticationError,
    ClientConfig,
    InMemorySessionStore,
    NotFoundError,
    RouteMismatchError,
    ServerError,
    TransportError,
    UnprocessableEntityError,
    ValidationError,
    ZuraClient,
)


def test_default_base_url_is_development_origin() -> None:
    """Test requests go to the /api prefix of the dev origin when no root is set."""
    client = ZuraClient(config=ClientConfig(), store=InMemorySessionStore())

    assert client.base_url == "http://localhost:4000/api"


def test_api_root_override() -> None:
    """Test an explicit API root, trailing slash trimmed."""
    client = ZuraClient("https://crm.example.com/", config=ClientConfig(), store=InMemorySessionStore())

    assert client.base_url == "https://crm.example.com/api"
    assert client.config.api_root == "https://crm.example.com/"


def test_default_store_is_in_memory() -> None:
    """Test a client with no session file configured keeps the session in memory."""
    client = ZuraClient(config=ClientConfig())

    assert isinstance(client.store, InMemorySessionStore)
    assert client.session.credential is None


def test_default_store_follows_config(tmp_path) -> None:
    """Test the client builds a file store in the configured mode."""
    config = ClientConfig(use_cookies=False, session_file=str(tmp_path / "s.json"))

    client = ZuraClient(config=config)

    assert client.store.path == tmp_path / "s.json"
    assert client.mode.value == "token"


@pytest.mark.asyncio
async def test_request_requires_context(client: ZuraClient) -> None:
    """Test calls outside the context manager fail fast."""
    with pytest.raises(RuntimeError):
        await client.leads.list()


@pytest.mark.asyncio
@respx.mock
async def test_list_leads_with_session_headers(client: ZuraClient, base_url: str) -> None:
    """Test GET /leads carries bearer and tenant headers and is unwrapped."""
    route = respx.get(f"{base_url}/leads").mock(return_value=Response(200, json={"items": [{"_id": "1"}]}))

    async with client:
        leads = await client.leads.list_raw()

    assert leads == [{"_id": "1"}]
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer abc123"
    assert request.headers["X-Org-Id"] == "org-7"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
@respx.mock
async def test_bare_list_passes_through(client: ZuraClient, base_url: str) -> None:
    """Test a bare list response is returned unchanged."""
    respx.get(f"{base_url}/contacts").mock(return_value=Response(200, json=[{"_id": "c1"}, {"_id": "c2"}]))

    async with client:
        contacts = await client.contacts.list()

    assert contacts == [{"_id": "c1"}, {"_id": "c2"}]


@pytest.mark.asyncio
@respx.mock
async def test_single_record_not_unwrapped(client: ZuraClient, base_url: str) -> None:
    """Test a record carrying its own items list is returned intact."""
    invoice = {"_id": "inv1", "items": [{"sku": "A", "qty": 2}], "total": 40}
    respx.get(f"{base_url}/invoices/inv1").mock(return_value=Response(200, json=invoice))

    async with client:
        result = await client.invoices.get("inv1")

    assert result == invoice


@pytest.mark.asyncio
@respx.mock
async def test_unlisted_path_not_unwrapped(client: ZuraClient, base_url: str) -> None:
    """Test non-allow-listed paths pass through untouched."""
    payload = {"items": [{"id": 1}], "page": 1}
    respx.get(f"{base_url}/audit").mock(return_value=Response(200, json=payload))

    async with client:
        result = await client.get("/audit")

    assert result == payload


@pytest.mark.asyncio
@respx.mock
async def test_list_without_items_returns_empty(client: ZuraClient, base_url: str) -> None:
    """Test list() always yields a list."""
    respx.get(f"{base_url}/campaigns").mock(return_value=Response(200, json={"count": 0}))

    async with client:
        assert await client.campaigns.list() == []


@pytest.mark.asyncio
@respx.mock
async def test_caller_headers_win(client: ZuraClient, base_url: str) -> None:
    """Test caller-supplied Authorization and tenant headers are not overwritten."""
    route = respx.get(f"{base_url}/leads").mock(return_value=Response(200, json=[]))

    async with client:
        await client.get("/leads", headers={"Authorization": "Bearer other", "X-Org-Id": "org-1"})

    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer other"
    assert request.headers["X-Org-Id"] == "org-1"


@pytest.mark.asyncio
@respx.mock
async def test_headers_follow_latest_session(client: ZuraClient, base_url: str) -> None:
    """Test each request reads the store at dispatch time."""
    route = respx.get(f"{base_url}/leads").mock(return_value=Response(200, json=[]))

    async with client:
        await client.leads.list()
        client.store.set("rotated", "org-8")
        await client.leads.list()

    first, second = route.calls
    assert first.request.headers["Authorization"] == "Bearer abc123"
    assert second.request.headers["Authorization"] == "Bearer rotated"
    assert second.request.headers["X-Org-Id"] == "org-8"


@pytest.mark.asyncio
@respx.mock
async def test_anonymous_request_has_no_auth_header(anonymous_client: ZuraClient, base_url: str) -> None:
    """Test no credential means no Authorization header."""
    route = respx.get(f"{base_url}/products").mock(return_value=Response(200, json=[]))

    async with anonymous_client:
        await anonymous_client.products.list()

    assert "Authorization" not in route.calls.last.request.headers
    assert "X-Org-Id" not in route.calls.last.request.headers


@pytest.mark.asyncio
@respx.mock
async def test_query_params_cleaned(client: ZuraClient) -> None:
    """Test empty params are dropped and list params repeated."""
    route = respx.get(path="/api/leads").mock(return_value=Response(200, json=[]))

    async with client:
        await client.leads.list({"status": ["new", "won"], "owner": None, "q": "", "page": 2})

    params = route.calls.last.request.url.params
    assert params.get_list("status") == ["new", "won"]
    assert params["page"] == "2"
    assert "owner" not in params
    assert "q" not in params


@pytest.mark.asyncio
@respx.mock
async def test_create_and_remove(client: ZuraClient, base_url: str) -> None:
    """Test POST and DELETE helpers."""
    create = respx.post(f"{base_url}/meetings").mock(return_value=Response(201, json={"_id": "m1", "title": "Kickoff"}))
    remove = respx.delete(f"{base_url}/meetings/m1").mock(return_value=Response(204))

    async with client:
        meeting = await client.meetings.create({"title": "Kickoff"})
        removed = await client.meetings.remove(meeting["_id"])

    assert meeting["_id"] == "m1"
    assert json.loads(create.calls.last.request.content) == {"title": "Kickoff"}
    assert removed is None
    assert remove.call_count == 1


@pytest.mark.asyncio
async def test_missing_id_rejected_before_dispatch(client: ZuraClient) -> None:
    """Test an empty id raises ValidationError without a request."""
    async with client:
        with pytest.raises(ValidationError):
            await client.calls.remove("")
        with pytest.raises(ValidationError):
            await client.calls.get(None)


# Fallback updater


@pytest.mark.asyncio
@respx.mock
async def test_patch_405_falls_back_to_put(client: ZuraClient, base_url: str) -> None:
    """Test PATCH /tasks/42 answering 405 is retried once as PUT."""
    patch = respx.patch(f"{base_url}/tasks/42").mock(return_value=Response(405, json={"error": "Method Not Allowed"}))
    put = respx.put(f"{base_url}/tasks/42").mock(return_value=Response(200, json={"_id": "42", "done": True}))

    async with client:
        result = await client.tasks.update("42", {"done": True})

    assert result == {"_id": "42", "done": True}
    assert patch.call_count == 1
    assert put.call_count == 1
    assert json.loads(put.calls.last.request.content) == {"done": True}


@pytest.mark.asyncio
@respx.mock
async def test_patch_404_falls_back_to_put(client: ZuraClient, base_url: str) -> None:
    """Test a 404 on PATCH also triggers the PUT retry."""
    respx.patch(f"{base_url}/deals/d1").mock(return_value=Response(404, json={"message": "Cannot PATCH"}))
    put = respx.put(f"{base_url}/deals/d1").mock(return_value=Response(200, json={"_id": "d1", "stage": "won"}))

    async with client:
        result = await client.deals.update("d1", {"stage": "won"})

    assert result["stage"] == "won"
    assert put.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_patch_validation_error_not_retried(client: ZuraClient, base_url: str) -> None:
    """Test a 422 on PATCH propagates without a PUT."""
    patch = respx.patch(f"{base_url}/tasks/42").mock(
        return_value=Response(422, json={"message": "title is required"})
    )

    async with client:
        with pytest.raises(UnprocessableEntityError) as exc_info:
            await client.tasks.update("42", {"title": ""})

    assert patch.call_count == 1
    assert exc_info.value.message == "title is required"


@pytest.mark.asyncio
@respx.mock
async def test_patch_server_error_not_retried(client: ZuraClient, base_url: str) -> None:
    """Test a 500 on PATCH propagates without a PUT."""
    respx.patch(f"{base_url}/tasks/42").mock(return_value=Response(500, json={"error": "boom"}))

    async with client:
        with pytest.raises(ServerError):
            await client.tasks.update("42", {"done": True})


@pytest.mark.asyncio
@respx.mock
async def test_failed_put_fallback_propagates(client: ZuraClient, base_url: str) -> None:
    """Test the PUT's own failure is raised unchanged and not retried again."""
    respx.patch(f"{base_url}/tasks/42").mock(return_value=Response(405))
    put = respx.put(f"{base_url}/tasks/42").mock(return_value=Response(404, json={"message": "Task not found"}))

    async with client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.tasks.update("42", {"done": True})

    assert put.call_count == 1
    assert exc_info.value.message == "Task not found"


# Unauthorized handling


@pytest.mark.asyncio
@respx.mock
async def test_401_on_write_clears_session(client: ZuraClient, base_url: str) -> None:
    """Test a 401 on an unrelated write clears credential and tenant and signals."""
    respx.post(f"{base_url}/invoices").mock(return_value=Response(401, json={"message": "Token expired"}))
    invalidated = []
    client.session_invalidated.connect(invalidated.append)

    async with client:
        with pytest.raises(AuthenticationError) as exc_info:
            await client.invoices.create({"amount": 10})

    assert exc_info.value.message == "Token expired"
    assert exc_info.value.status_code == 401
    assert client.session.credential is None
    assert client.session.tenant_id is None
    assert len(invalidated) == 1


@pytest.mark.asyncio
@respx.mock
async def test_401_on_patch_is_not_retried(client: ZuraClient, base_url: str) -> None:
    """Test authentication failures never trigger the PUT fallback."""
    patch = respx.patch(f"{base_url}/tasks/42").mock(return_value=Response(401))

    async with client:
        with pytest.raises(AuthenticationError):
            await client.tasks.update("42", {"done": True})

    assert patch.call_count == 1
    assert client.is_authenticated is False


@pytest.mark.asyncio
@respx.mock
async def test_identity_after_401_needs_no_network(client: ZuraClient, base_url: str) -> None:
    """Test that after a 401 the token-mode identity check is answered locally."""
    respx.get(f"{base_url}/leads").mock(return_value=Response(401))

    async with client:
        with pytest.raises(AuthenticationError):
            await client.leads.list()
        # no /auth/me route is mocked: any request here would fail the test
        assert await client.auth.me() is None


# Error normalization


@pytest.mark.asyncio
@respx.mock
async def test_application_error_shape(client: ZuraClient, base_url: str) -> None:
    """Test non-2xx responses carry message, status and payload."""
    body = {"error": "Duplicate email", "field": "email"}
    respx.post(f"{base_url}/contacts").mock(return_value=Response(409, json=body))

    async with client:
        with pytest.raises(ApplicationError) as exc_info:
            await client.contacts.create({"email": "a@b.c"})

    error = exc_info.value
    assert error.message == "Duplicate email"
    assert error.status_code == 409
    assert error.payload == body
    # other errors leave the session alone
    assert client.session.credential == "abc123"


@pytest.mark.asyncio
@respx.mock
async def test_non_json_error_body(client: ZuraClient, base_url: str) -> None:
    """Test text error bodies are kept as the payload."""
    respx.get(f"{base_url}/quotes").mock(return_value=Response(502, text="Bad Gateway"))

    async with client:
        with pytest.raises(ServerError) as exc_info:
            await client.quotes.list()

    assert exc_info.value.status_code == 502
    assert exc_info.value.payload == "Bad Gateway"


@pytest.mark.asyncio
@respx.mock
async def test_timeout_is_transport_error(client: ZuraClient, base_url: str) -> None:
    """Test a timeout surfaces as TransportError and keeps the session."""
    respx.get(f"{base_url}/leads").mock(side_effect=httpx.ConnectTimeout("timed out"))

    async with client:
        with pytest.raises(TransportError) as exc_info:
            await client.leads.list()

    assert exc_info.value.status_code is None
    assert client.session.credential == "abc123"


# Resource extras


@pytest.mark.asyncio
@respx.mock
async def test_deals_kanban_and_stages(client: ZuraClient) -> None:
    """Test deal board helpers."""
    board = {"columns": [{"stage": "new", "items": [{"_id": "d1"}]}]}
    kanban = respx.get(path="/api/deals").mock(return_value=Response(200, json=board))
    respx.get(path="/api/deals/stages").mock(return_value=Response(200, json=["new", "won"]))

    async with client:
        result = await client.deals.kanban({"owner": "u1"})
        stages = await client.deals.stages()

    assert result == board
    assert kanban.calls.last.request.url.params["view"] == "kanban"
    assert kanban.calls.last.request.url.params["owner"] == "u1"
    assert stages == ["new", "won"]


@pytest.mark.asyncio
@respx.mock
async def test_document_upload_and_download(client: ZuraClient, base_url: str) -> None:
    """Test multipart upload and raw download."""
    upload = respx.post(f"{base_url}/documents").mock(return_value=Response(201, json={"_id": "doc1"}))
    respx.get(f"{base_url}/documents/doc1/download").mock(
        return_value=Response(200, content=b"%PDF-1.4", headers={"Content-Type": "application/pdf"})
    )

    async with client:
        created = await client.documents.upload("quote.pdf", b"%PDF-1.4", "application/pdf")
        content = await client.documents.download("doc1")

    assert created == {"_id": "doc1"}
    request = upload.calls.last.request
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert content == b"%PDF-1.4"


@pytest.mark.asyncio
@respx.mock
async def test_stats_and_forecasts_not_reshaped(client: ZuraClient, base_url: str) -> None:
    """Test aggregate endpoints return their payloads unchanged."""
    stats = {"total": 3, "items": [{"status": "new", "count": 3}]}
    respx.get(f"{base_url}/leads/stats").mock(return_value=Response(200, json=stats))
    respx.get(f"{base_url}/forecasts/summary").mock(return_value=Response(200, json={"quota": 100}))

    async with client:
        assert await client.stats.leads() == stats
        assert await client.forecasts.summary() == {"quota": 100}


@pytest.mark.asyncio
@respx.mock
async def test_generic_resource(client: ZuraClient, base_url: str) -> None:
    """Test CRUD helpers for a resource outside the built-in set."""
    respx.get(f"{base_url}/accounts").mock(return_value=Response(200, json={"items": [{"_id": "a1"}]}))

    async with client:
        accounts = await client.resource("accounts").list()

    # not allow-listed: list() unwraps, the client does not
    assert accounts == [{"_id": "a1"}]


# Users


@pytest.mark.asyncio
@respx.mock
async def test_users_base_detection(client: ZuraClient, base_url: str) -> None:
    """Test /users/users is tried first and /users is remembered once it answers."""
    nested = respx.get(f"{base_url}/users/users").mock(return_value=Response(404))
    flat = respx.get(f"{base_url}/users").mock(
        return_value=Response(200, json={"items": [{"_id": "u1", "role": "admin"}]})
    )
    invite = respx.post(f"{base_url}/users/invite").mock(return_value=Response(201, json={"ok": True}))

    async with client:
        users = await client.users.list()
        again = await client.users.list()
        await client.users.invite(" new@example.com ", role="user")

    assert users == again == [{"_id": "u1", "role": "admin"}]
    assert client.users.base == "/users"
    assert nested.call_count == 1
    assert flat.call_count == 2
    assert json.loads(invite.calls.last.request.content) == {"email": "new@example.com", "role": "user"}


@pytest.mark.asyncio
@respx.mock
async def test_users_nested_base_wins_when_mounted(client: ZuraClient, base_url: str) -> None:
    """Test the nested mount is used when it returns a list."""
    respx.get(f"{base_url}/users/users").mock(return_value=Response(200, json=[{"_id": "u1"}]))
    remove = respx.delete(f"{base_url}/users/users/u1").mock(return_value=Response(204))

    async with client:
        await client.users.remove("u1")

    assert client.users.base == "/users/users"
    assert remove.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_users_api_missing(client: ZuraClient, base_url: str) -> None:
    """Test RouteMismatchError when neither mount answers with a list."""
    respx.get(f"{base_url}/users/users").mock(return_value=Response(404))
    respx.get(f"{base_url}/users").mock(return_value=Response(200, json={"message": "ok"}))

    async with client:
        with pytest.raises(RouteMismatchError) as exc_info:
            await client.users.list()

    assert exc_info.value.candidates == ("/users/users", "/users")
    assert client.users.base is None


@pytest.mark.asyncio
async def test_users_invite_validates_email(client: ZuraClient) -> None:
    """Test a malformed email is rejected before any request."""
    async with client:
        with pytest.raises(ValidationError):
            await client.users.invite("not-an-email")
