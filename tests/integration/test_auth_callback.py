"""
Integration tests for the OAuth callback.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from edutrace.clients.auth_api import AuthClient
from edutrace.routes.auth import get_auth_client

VERIFIER_COOKIE = "sb-auth-token-code-verifier=verifier-1"


@pytest.fixture
def callback_client(app, client, backend):
    app.dependency_overrides[get_auth_client] = lambda: AuthClient(
        transport=backend.transport()
    )
    return client


def session_response(backend):
    backend.on(
        "POST",
        "auth/v1/token",
        json={
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
            "token_type": "bearer",
        },
    )


def test_successful_exchange_redirects_to_next(callback_client: TestClient, backend):
    session_response(backend)

    response = callback_client.get(
        "/auth/callback?code=abc&next=/courses/ml-foundations",
        headers={"Cookie": VERIFIER_COOKIE},
        follow_redirects=False,
    )

    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/courses/ml-foundations"
    cookies = response.headers.get_list("set-cookie")
    assert any(c.startswith("sb-access-token=access-1") for c in cookies)
    assert any(c.startswith("sb-refresh-token=refresh-1") for c in cookies)
    assert any(c.startswith("sb-auth-token-code-verifier=") for c in cookies)

    (request,) = backend.calls("POST", "auth/v1/token")
    assert request.url.params["grant_type"] == "pkce"
    assert json.loads(request.content) == {
        "auth_code": "abc",
        "code_verifier": "verifier-1",
    }


def test_default_next(callback_client: TestClient, backend):
    session_response(backend)
    response = callback_client.get("/auth/callback?code=abc", follow_redirects=False)
    assert response.headers["location"] == "http://testserver/dashboard"


@pytest.mark.parametrize(
    "next_path", ["https://evil.com", "//evil.com", "/\\evil.com", "evil.com"]
)
def test_open_redirects_are_neutralised(callback_client: TestClient, backend, next_path):
    session_response(backend)
    response = callback_client.get(
        "/auth/callback",
        params={"code": "abc", "next": next_path},
        follow_redirects=False,
    )
    assert response.headers["location"] == "http://testserver/dashboard"


def test_failed_exchange_goes_to_error_page(callback_client: TestClient, backend):
    backend.on(
        "POST",
        "auth/v1/token",
        json={"error_code": "flow_state_not_found", "msg": "invalid flow state"},
        status_code=400,
    )
    response = callback_client.get(
        "/auth/callback?code=stale&next=/dashboard", follow_redirects=False
    )
    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/auth/auth-code-error"
    assert "set-cookie" not in response.headers


def test_missing_code_goes_to_error_page(callback_client: TestClient, backend):
    response = callback_client.get("/auth/callback", follow_redirects=False)
    assert response.headers["location"] == "http://testserver/auth/auth-code-error"
    assert backend.requests == []


def test_callback_is_get_only(callback_client: TestClient):
    response = callback_client.post("/auth/callback?code=abc")
    assert response.status_code == 405


@pytest.mark.parametrize(
    "reply",
    [
        {"text": "<html>oops</html>"},
        {"json": ["access-1"]},
        {"json": {"token_type": "bearer"}},
    ],
)
def test_unusable_session_reply_goes_to_error_page(
    callback_client: TestClient, backend, reply
):
    backend.on(
        "POST",
        "auth/v1/token",
        handler=lambda request: httpx.Response(200, **reply),
    )
    response = callback_client.get(
        "/auth/callback?code=abc&next=/courses", follow_redirects=False
    )
    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/auth/auth-code-error"
