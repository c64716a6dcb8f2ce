"""
Pytest configuration and shared fixtures for the EduTrace test suite.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import jwt
import pytest
from fastapi import Request
from fastapi.testclient import TestClient

# Set test environment before importing app
os.environ["EDUTRACE_ENVIRONMENT"] = "test"
os.environ["EDUTRACE_SUPABASE_URL"] = "http://mock-supabase:54321"
os.environ["EDUTRACE_SUPABASE_ANON_KEY"] = "test-anon-key"
# Set test JWT secret for testing
os.environ["EDUTRACE_SUPABASE_JWT_SECRET"] = "test-secret"
# Disable rate limiting for tests
os.environ["EDUTRACE_RATE_LIMIT_REQUESTS"] = "999999"
# No backoff between retries in tests
os.environ["EDUTRACE_RETRY_BASE_DELAY"] = "0"
os.environ["EDUTRACE_RETRY_MAX_DELAY"] = "0"

from edutrace.clients.data_service import DataServiceClient  # noqa: E402
from edutrace.config import get_settings  # noqa: E402
from edutrace.ratelimit import RateLimiter  # noqa: E402
from edutrace.resilience import CircuitBreaker, RetryPolicy  # noqa: E402

settings = get_settings()

USER_ID = "550e8400-e29b-41d4-a716-446655440000"
QUIZ_ID = "6ba7b810-9dad-41d1-80b4-00c04fd430c8"
ROADMAP_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Stands in for the hosted REST/RPC API at the HTTP layer.

    Routes are keyed by method and path relative to ``/rest/v1/`` (or the
    full path for other APIs, e.g. ``auth/v1/token``).
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        json: Any = None,
        status_code: int = 200,
        handler: Optional[Handler] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=json)

        self.routes[(method, path)] = handler or respond

    def not_found(self, method: str, path: str) -> None:
        self.on(
            method,
            path,
            json={
                "code": "PGRST116",
                "message": "JSON object requested, multiple (or no) rows returned",
                "details": "The result contains 0 rows",
            },
            status_code=406,
        )

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests if (r.method, self._key_path(r)) == (method, path)
        ]

    @staticmethod
    def _key_path(request: httpx.Request) -> str:
        return request.url.path.lstrip("/").removeprefix("rest/v1/")

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, self._key_path(request)))
        if handler is None:
            return httpx.Response(
                404,
                json={"code": "PGRST205", "message": f"No fake route for {request.url}"},
            )
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def data_service(backend):
    """Client wired to the fake backend, with a single attempt per call."""
    return DataServiceClient(
        transport=backend.transport(),
        retry_policy=RetryPolicy(max_attempts=1),
        circuit_breaker=CircuitBreaker(name="test", failure_threshold=100),
    )


@pytest.fixture
def rate_limiter():
    return RateLimiter()


@pytest.fixture
def test_user_id():
    """Test user ID for authentication."""
    return USER_ID


@pytest.fixture
def test_jwt_token(test_user_id):
    """Create a test JWT token."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": test_user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": now + timedelta(hours=1),
        "iat": now,
    }

    # Use test secret for signing
    return jwt.encode(payload, "test-secret", algorithm="HS256")


@pytest.fixture
def app(backend):
    """Create test app instance talking to the fake backend."""
    from edutrace.db.base import get_db
    from edutrace.server import create_app

    test_app = create_app()

    async def override_get_db(request: Request):
        return DataServiceClient(
            access_token=getattr(request.state, "access_token", None),
            transport=backend.transport(),
            retry_policy=RetryPolicy(max_attempts=1),
            circuit_breaker=CircuitBreaker(name="test", failure_threshold=100),
        )

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client, test_jwt_token):
    """Create an authenticated test client."""
    client.headers = {"Authorization": f"Bearer {test_jwt_token}"}
    return client


@pytest.fixture
def sample_course():
    return {
        "id": "a8098c1a-f86e-41da-9d1d-0b35f2a5b3c4",
        "title": "Machine Learning Foundations",
        "description": "Start here",
        "slug": "ml-foundations",
        "image_url": None,
        "difficulty_level": "beginner",
        "category": "ai",
        "is_published": True,
    }


@pytest.fixture
def sample_roadmap(sample_course):
    return {
        "id": ROADMAP_ID,
        "course_id": sample_course["id"],
        "title": "Linear Algebra",
        "description": None,
        "slug": "linear-algebra",
        "estimated_hours": 12,
        "order_index": 1,
        "is_published": True,
    }


@pytest.fixture
def sample_quiz_result_request():
    return {
        "quiz_id": QUIZ_ID,
        "score": 8,
        "total_points": 10,
        "answers": {"q1": "a", "q2": ["b", "c"], "q3": True},
        "time_taken_minutes": 12,
        "attempt_number": 1,
    }
