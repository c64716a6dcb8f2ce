"""
Integration tests for API endpoints against a faked data service.
"""

import json

import jwt
import pytest
from fastapi.testclient import TestClient

from edutrace.config import get_settings
from edutrace.ratelimit import RateLimiter

USER_ID = "550e8400-e29b-41d4-a716-446655440000"
QUIZ_ID = "6ba7b810-9dad-41d1-80b4-00c04fd430c8"
ROADMAP_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
TOPIC_ID = "f47ac10b-58cc-4372-a567-0e02b2c3d479"


class TestCoursesAPI:
    """Test the course catalogue endpoints."""

    def test_list_courses(self, client: TestClient, backend, sample_course):
        backend.on("GET", "courses", json=[sample_course])
        response = client.get("/v1/courses?difficulty_level=beginner")
        assert response.status_code == 200
        assert response.json()["items"][0]["slug"] == "ml-foundations"

    def test_get_course(self, client: TestClient, backend, sample_course, sample_roadmap):
        backend.on("GET", "courses", json=sample_course)
        backend.on("GET", "roadmaps", json=[sample_roadmap])
        response = client.get("/v1/courses/ml-foundations")
        assert response.status_code == 200
        assert response.json()["roadmaps"][0]["id"] == ROADMAP_ID

    def test_unknown_course(self, client: TestClient, backend):
        backend.not_found("GET", "courses")
        response = client.get("/v1/courses/missing")
        assert response.status_code == 404

    def test_bad_slug(self, client: TestClient, backend):
        response = client.get("/v1/courses/bad;slug")
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {"field": "slug"}
        assert backend.requests == []


class TestSearchAPI:
    def test_search(self, client: TestClient, backend, sample_course):
        backend.on("GET", "courses", json=[sample_course])
        backend.on("GET", "roadmaps", json=[])
        backend.on("GET", "topics", json=[])
        response = client.get("/v1/search?q=machine")
        assert response.status_code == 200
        data = response.json()
        assert len(data["courses"]) == 1
        assert data["roadmaps"] == data["topics"] == []

    def test_search_too_long(self, client: TestClient):
        response = client.get("/v1/search", params={"q": "x" * 101})
        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "query"


class TestProgressAPI:
    def test_update_topic_progress(self, auth_client: TestClient, backend):
        backend.on(
            "POST",
            "user_progress",
            json={
                "user_id": USER_ID,
                "topic_id": TOPIC_ID,
                "roadmap_id": ROADMAP_ID,
                "is_completed": True,
                "time_spent_minutes": 30,
            },
            status_code=201,
        )
        response = auth_client.put(
            "/v1/progress/topics",
            json={
                "topic_id": TOPIC_ID,
                "roadmap_id": ROADMAP_ID,
                "is_completed": True,
                "time_spent_minutes": 30,
            },
        )
        assert response.status_code == 200
        assert response.json()["is_completed"] is True

        (request,) = backend.calls("POST", "user_progress")
        assert request.headers["Authorization"] == auth_client.headers["Authorization"]

    def test_update_rejects_non_boolean(self, auth_client: TestClient, backend):
        response = auth_client.put(
            "/v1/progress/topics",
            json={"topic_id": TOPIC_ID, "roadmap_id": ROADMAP_ID, "is_completed": "yes"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "is_completed"}
        assert backend.requests == []

    def test_batch_completion(self, auth_client: TestClient, backend):
        other = "9b2d5a3e-1c4f-4e8a-b6d7-3f1a2c4e5d6f"
        backend.on(
            "POST",
            "rpc/batch_check_roadmap_completion",
            json=[{"roadmap_id": ROADMAP_ID, "is_completed": True}],
        )
        response = auth_client.post(
            "/v1/progress/roadmaps/completion",
            json={"roadmap_ids": [ROADMAP_ID, other]},
        )
        assert response.status_code == 200
        assert response.json() == {"items": {ROADMAP_ID: True, other: False}}

    def test_requires_auth(self, client: TestClient):
        response = client.get(f"/v1/progress/roadmaps/{ROADMAP_ID}")
        assert response.status_code == 401


class TestQuizzesAPI:
    def test_submit_result(
        self, auth_client: TestClient, backend, sample_quiz_result_request
    ):
        backend.on(
            "POST",
            "quiz_results",
            json={
                "id": "r1",
                "user_id": USER_ID,
                "quiz_id": QUIZ_ID,
                "score": 8,
                "total_points": 10,
                "attempt_number": 1,
                "passed": True,
            },
            status_code=201,
        )
        payload = dict(sample_quiz_result_request, score=8.6, passed=True)

        response = auth_client.post("/v1/quizzes/results", json=payload)

        assert response.status_code == 201
        assert response.json()["id"] == "r1"
        body = json.loads(backend.calls("POST", "quiz_results")[0].content)
        assert body["score"] == 8
        assert "passed" not in body

    def test_submit_rejects_string_score(
        self, auth_client: TestClient, backend, sample_quiz_result_request
    ):
        payload = dict(sample_quiz_result_request, score="8")
        response = auth_client.post("/v1/quizzes/results", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "score"}
        assert backend.requests == []

    def test_eligibility_unknown_quiz(self, auth_client: TestClient, backend):
        backend.not_found("GET", "quizzes")
        backend.on("GET", "quiz_results", json=[])
        response = auth_client.get(f"/v1/quizzes/{QUIZ_ID}/eligibility")
        assert response.status_code == 404

    def test_results_rate_limited(self, auth_client: TestClient, backend, monkeypatch):
        backend.on("GET", "quiz_results", json=[])
        limiter = RateLimiter()
        monkeypatch.setattr(
            "edutrace.services.quizzes.get_rate_limiter", lambda: limiter
        )
        monkeypatch.setattr(get_settings(), "quiz_results_rate_limit", 1)

        assert auth_client.get(f"/v1/quizzes/{QUIZ_ID}/results").status_code == 200
        response = auth_client.get(f"/v1/quizzes/{QUIZ_ID}/results")

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) > 0


class TestCertificatesAPI:
    def test_verify_is_public(self, client: TestClient, backend):
        backend.on(
            "GET",
            "certificates",
            json={
                "user_id": USER_ID,
                "roadmap_id": ROADMAP_ID,
                "certificate_type": "completion",
                "title": "Linear Algebra",
                "verification_code": "abc123",
                "is_public": True,
            },
        )
        response = client.get("/v1/certificates/verify/abc123")
        assert response.status_code == 200
        assert response.json()["verification_code"] == "abc123"

    def test_duplicate_certificate_is_conflict(self, auth_client: TestClient, backend):
        backend.on(
            "POST",
            "certificates",
            json={"code": "23505", "message": "duplicate key value"},
            status_code=409,
        )
        response = auth_client.post(
            "/v1/certificates",
            json={
                "roadmap_id": ROADMAP_ID,
                "certificate_type": "completion",
                "title": "Linear Algebra",
            },
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"


class TestDashboardAPI:
    def test_missing_profile(self, auth_client: TestClient, backend):
        backend.not_found("GET", "profiles")
        for table in ("user_progress", "certificates", "achievements"):
            backend.on("GET", table, json=[])
        response = auth_client.get("/v1/dashboard")
        assert response.status_code == 404

    def test_backend_outage_is_unavailable(self, auth_client: TestClient, backend):
        for table in ("profiles", "user_progress", "certificates", "achievements"):
            backend.on("GET", table, json={"message": "busy"}, status_code=503)
        response = auth_client.get("/v1/dashboard")
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "TRANSIENT"


@pytest.mark.parametrize("path", ["/v1/dashboard", "/v1/certificates"])
def test_invalid_token_rejected(client: TestClient, path):
    response = client.get(path, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_forged_token_rejected_without_secret(
    client: TestClient, backend, test_user_id, monkeypatch
):
    monkeypatch.setattr(get_settings(), "supabase_jwt_secret", None)
    backend.on("GET", "profiles", json={"id": test_user_id})
    forged = jwt.encode(
        {"sub": test_user_id, "aud": "authenticated"}, "secret", algorithm="HS256"
    )

    response = client.get(
        "/v1/dashboard", headers={"Authorization": f"Bearer {forged}"}
    )

    assert response.status_code == 401
    assert backend.requests == []
