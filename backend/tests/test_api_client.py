import asyncio

import httpx
import pytest

from app.client.api import ApiError, TodoApiClient
from app.client.refresh import SessionExpiredError
from app.client.token_store import TokenStore
from app.config import settings
from app.core.cookies import sign_refresh_cookie

BASE_URL = "http://api.test/api/v1"


class FakeServer:
    """Accepts one access token; /auth/refresh hands it out"""

    def __init__(self, refresh_status=200, valid_token="fresh", issued_token=None):
        self.refresh_status = refresh_status
        self.valid_token = valid_token
        self.issued_token = issued_token or valid_token
        self.refresh_calls = 0
        self.todo_calls = 0
        self.authorizations = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0)
        if request.url.path == "/api/v1/auth/refresh":
            self.refresh_calls += 1
            await asyncio.sleep(0.01)
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"error": "Invalid refresh token"})
            return httpx.Response(200, json={"access_token": self.issued_token, "user": {"id": 1}})

        self.todo_calls += 1
        self.authorizations.append(request.headers.get("Authorization"))
        if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"error": "Unauthorized"})
        if request.url.path == "/api/v1/auth/sign_out":
            return httpx.Response(200, json={"message": "Signed out successfully"})
        return httpx.Response(200, json={"todos": [{"id": 1, "name": "t"}]})


def _client(server, token="stale", on_session_expired=None):
    return TodoApiClient(
        BASE_URL,
        tokens=TokenStore(token),
        transport=httpx.MockTransport(server),
        on_session_expired=on_session_expired,
    )


def test_parallel_401s_trigger_one_refresh():
    server = FakeServer()

    async def scenario():
        async with _client(server) as client:
            results = await asyncio.gather(*(client.fetch_todos() for _ in range(6)))
            return client, results

    client, results = asyncio.run(scenario())

    assert server.refresh_calls == 1
    assert all(result == [{"id": 1, "name": "t"}] for result in results)
    assert client.tokens.access_token == "fresh"


def test_valid_token_needs_no_refresh():
    server = FakeServer()

    async def scenario():
        async with _client(server, token="fresh") as client:
            return await client.fetch_todos()

    assert asyncio.run(scenario())
    assert server.refresh_calls == 0
    assert server.authorizations == ["Bearer fresh"]


def test_second_401_is_not_retried():
    server = FakeServer(valid_token="never-accepted", issued_token="fresh-but-rejected")

    async def scenario():
        async with _client(server) as client:
            with pytest.raises(ApiError) as exc:
                await client.fetch_todos()
            return exc.value

    error = asyncio.run(scenario())

    assert error.status_code == 401
    assert server.refresh_calls == 1
    assert server.todo_calls == 2
    assert server.authorizations == ["Bearer stale", "Bearer fresh-but-rejected"]


def test_failed_refresh_clears_credentials_and_fails_all_requests():
    server = FakeServer(refresh_status=401)
    expired = []

    async def scenario():
        async with _client(server, on_session_expired=lambda: expired.append(True)) as client:
            results = await asyncio.gather(
                *(client.fetch_todos() for _ in range(3)), return_exceptions=True
            )
            return client, results

    client, results = asyncio.run(scenario())

    assert server.refresh_calls == 1
    assert all(isinstance(result, SessionExpiredError) for result in results)
    assert client.tokens.access_token is None
    assert not client.is_authenticated()
    assert expired == [True]


def test_handle_oauth_callback_reads_fragment():
    client = TodoApiClient(BASE_URL)
    token = client.handle_oauth_callback("http://localhost:3000/auth/callback#access_token=abc.def.ghi")
    assert token == "abc.def.ghi"
    assert client.tokens.access_token == "abc.def.ghi"


def test_handle_oauth_callback_error():
    client = TodoApiClient(BASE_URL)
    assert client.handle_oauth_callback("http://localhost:3000/login?error=server_error") is None
    assert not client.is_authenticated()


def test_sign_out_clears_token_even_when_server_refuses():
    server = FakeServer(refresh_status=401)

    async def scenario():
        async with _client(server) as client:
            await client.sign_out()
            return client

    assert asyncio.run(scenario()).tokens.access_token is None


def test_refresh_cycle_against_the_app(db, make_user, make_todo, refresh_token_for):
    from app.main import app

    user = make_user()
    make_todo(user, name="later", priority="low")
    make_todo(user, name="now", priority="high")

    async def scenario():
        client = TodoApiClient(
            "http://testserver/api/v1",
            tokens=TokenStore("expired-or-garbage"),
            transport=httpx.ASGITransport(app=app),
        )
        client.cookies.set(settings.REFRESH_COOKIE_NAME, sign_refresh_cookie(refresh_token_for(user)))
        async with client:
            todos = await client.fetch_todos()
            me = await client.get_current_user()
            return client, todos, me

    client, todos, me = asyncio.run(scenario())

    assert [todo["name"] for todo in todos] == ["now", "later"]
    assert me["id"] == user.id
    assert client.refresh_coordinator.exchange_count == 1
    assert client.tokens.access_token != "expired-or-garbage"


def test_late_401_after_failed_refresh_does_not_refresh_again():
    refresh_calls = []
    expired = []

    async def handler(request):
        if request.url.path == "/api/v1/auth/refresh":
            refresh_calls.append(1)
            await asyncio.sleep(0.01)
            return httpx.Response(401, json={"error": "Invalid refresh token"})
        if request.url.params.get("slow"):
            await asyncio.sleep(0.05)
        return httpx.Response(401, json={"error": "Unauthorized"})

    async def scenario():
        client = TodoApiClient(
            BASE_URL,
            tokens=TokenStore("stale"),
            transport=httpx.MockTransport(handler),
            on_session_expired=lambda: expired.append(True),
        )
        async with client:
            return await asyncio.gather(
                client.request("GET", "/todos"),
                client.request("GET", "/todos", params={"slow": "1"}),
                return_exceptions=True,
            )

    fast, slow = asyncio.run(scenario())

    assert isinstance(fast, SessionExpiredError)
    assert isinstance(slow, SessionExpiredError)
    assert len(refresh_calls) == 1
    assert expired == [True]


def test_update_and_toggle_round_trip(db, make_user, make_todo, auth_headers):
    from app.main import app

    user = make_user()
    todo = make_todo(user, name="draft", priority="low")
    token = auth_headers(user)["Authorization"].split(" ", 1)[1]

    async def scenario():
        client = TodoApiClient(
            "http://testserver/api/v1",
            tokens=TokenStore(token),
            transport=httpx.ASGITransport(app=app),
        )
        async with client:
            updated = await client.update_todo(todo.id, name="final", priority="high")
            toggled = await client.toggle_complete(todo.id, True)
            listed = await client.fetch_todos()
            return updated, toggled, listed

    updated, toggled, listed = asyncio.run(scenario())

    assert updated["name"] == "final"
    assert updated["priority"] == "high"
    assert updated["completed"] is False
    assert toggled["completed"] is True
    assert [(item["id"], item["completed"]) for item in listed] == [(todo.id, True)]
