import json

import httpx
import jwt
import pytest

from app.client.api import ApiError, AuthFailure, LoginError, MoneyApiClient
from app.client.session import (
    VIEW_LOADING,
    VIEW_LOGIN,
    VIEW_TRACKER,
    SessionController,
    SessionState,
)
from app.client.token_store import TokenStore


def _Token(name="Ann", role="child") -> str:
    return jwt.encode({"sub": "2", "name": name, "role": role}, "client-does-not-know-the-secret-0000", algorithm="HS256")


@pytest.fixture
def store(tmp_path):
    return TokenStore(tmp_path / "session.json")


def test_nothing_renders_before_initialize(store):
    store.Save(_Token())
    session = SessionController(store)

    assert session.State == SessionState.Loading
    assert session.View == VIEW_LOADING

    session.Initialize()

    assert session.View == VIEW_TRACKER
    assert session.CurrentUser.Name == "Ann"


def test_initialize_without_token_shows_login(store):
    session = SessionController(store)
    assert session.Initialize() == SessionState.Unauthenticated
    assert session.View == VIEW_LOGIN


def test_undecodable_stored_token_is_cleared(store):
    store.Save("garbage")
    session = SessionController(store)

    session.Initialize()

    assert session.View == VIEW_LOGIN
    assert store.Load() is None


def test_initialize_only_reads_once(store):
    session = SessionController(store)
    session.Initialize()
    store.Save(_Token())

    assert session.Initialize() == SessionState.Unauthenticated


def test_login_and_logout_transitions_persist(store):
    session = SessionController(store)
    session.Initialize()

    session.Login(_Token(name="Mom", role="admin"))
    assert session.View == VIEW_TRACKER
    assert session.CurrentUser.IsAdmin
    assert store.Load() == session.Token

    session.Logout()
    assert session.View == VIEW_LOGIN
    assert session.Token is None
    assert store.Load() is None


def test_token_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    assert TokenStore(path).Load() is None


def _Client(session, handler):
    http = httpx.Client(base_url="http://money.test", transport=httpx.MockTransport(handler))
    return MoneyApiClient("http://money.test", session, http_client=http)


def test_login_stores_token_and_switches_view(store):
    token = _Token()

    def handler(request):
        assert request.url.path == "/api/money/login"
        assert json.loads(request.content) == {"name": "Ann", "password": "pw"}
        return httpx.Response(200, json={"accessToken": token, "user": {"id": 2, "name": "Ann", "role": "child"}})

    session = SessionController(store)
    session.Initialize()
    _Client(session, handler).Login("Ann", "pw")

    assert session.View == VIEW_TRACKER
    assert store.Load() == token


def test_login_failure_is_a_form_error(store):
    def handler(_request):
        return httpx.Response(400, json={"detail": "Invalid username or password"})

    session = SessionController(store)
    session.Initialize()

    with pytest.raises(LoginError) as exc_info:
        _Client(session, handler).Login("Ann", "bad")

    assert str(exc_info.value) == "Invalid username or password"
    assert session.View == VIEW_LOGIN


@pytest.mark.parametrize("body", [{"accessToken": "garbage"}, {"user": {"name": "Ann"}}])
def test_login_with_unusable_token_is_a_form_error(store, body):
    def handler(_request):
        return httpx.Response(200, json=body)

    session = SessionController(store)
    session.Initialize()

    with pytest.raises(LoginError) as exc_info:
        _Client(session, handler).Login("Ann", "pw")

    assert exc_info.value.detail == "Server returned an unusable session token"
    assert session.View == VIEW_LOGIN
    assert store.Load() is None


@pytest.mark.parametrize("status_code", [401, 403])
def test_auth_failure_clears_session(store, status_code):
    store.Save(_Token())
    session = SessionController(store)
    session.Initialize()

    def handler(_request):
        return httpx.Response(status_code, json={"detail": "nope"})

    with pytest.raises(AuthFailure):
        _Client(session, handler).ListTransactions()

    assert session.View == VIEW_LOGIN
    assert store.Load() is None


def test_requests_carry_bearer_token_and_default_child_name(store):
    token = _Token()
    store.Save(token)
    session = SessionController(store)
    session.Initialize()
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"id": 1, "status": "pending"})

    _Client(session, handler).CreateTransaction("Candy", 5, "expense")

    (request,) = seen
    assert request.headers["Authorization"] == f"Bearer {token}"
    assert json.loads(request.content)["child_name"] == "Ann"


def test_other_errors_keep_session(store):
    store.Save(_Token(name="Mom", role="admin"))
    session = SessionController(store)
    session.Initialize()

    def handler(_request):
        return httpx.Response(404, json={"detail": "Transaction not found"})

    with pytest.raises(ApiError) as exc_info:
        _Client(session, handler).ApproveTransaction(42)

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Transaction not found"
    assert session.View == VIEW_TRACKER
