# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Results API endpoints.

The application is built with create_app() and the result service is
overridden with one wired over the in-memory collaborators, so the full
HTTP surface (actor headers, validation, error envelope, rate limits) is
exercised without a database.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from academic_results.api.app import create_app
from academic_results.api.dependencies import get_result_service
from academic_results.api.middleware.actor import (
    ACTOR_ID_HEADER,
    ACTOR_ROLE_HEADER,
    REQUEST_ID_HEADER,
)
from academic_results.api.middleware.rate_limit import limiter
from tests.conftest import (
    ADMIN_ID,
    CSC101_ID,
    HOD_ID,
    LECTURER_ID,
    MTH101_ID,
    OTHER_LECTURER_ID,
    OTHER_STUDENT_ID,
    SESSION_2023_ID,
    STUDENT_ID,
)

BASE = "/api/v1/results"

STUDENT = {ACTOR_ID_HEADER: STUDENT_ID, ACTOR_ROLE_HEADER: "student"}
OTHER_STUDENT = {ACTOR_ID_HEADER: OTHER_STUDENT_ID, ACTOR_ROLE_HEADER: "student"}
LECTURER = {ACTOR_ID_HEADER: LECTURER_ID, ACTOR_ROLE_HEADER: "lecturer"}
OTHER_LECTURER = {ACTOR_ID_HEADER: OTHER_LECTURER_ID, ACTOR_ROLE_HEADER: "lecturer"}
HOD = {ACTOR_ID_HEADER: HOD_ID, ACTOR_ROLE_HEADER: "hod"}
ADMIN = {ACTOR_ID_HEADER: ADMIN_ID, ACTOR_ROLE_HEADER: "admin"}


@pytest.fixture
def app(service) -> FastAPI:
    """Create the application over the in-memory result service."""
    app = create_app()
    app.dependency_overrides[get_result_service] = lambda: service
    limiter.reset()
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def _payload(course_id=CSC101_ID, student_id=STUDENT_ID, ca=25, exam=60, semester="first"):
    return {
        "student_id": student_id,
        "course_id": course_id,
        "session_id": SESSION_2023_ID,
        "semester": semester,
        "ca_score": ca,
        "exam_score": exam,
    }


def _create(client, **kwargs) -> dict:
    response = client.post(BASE, json=_payload(**kwargs), headers=LECTURER)
    assert response.status_code == 201, response.text
    return response.json()


def _approve(client, result_id: str) -> None:
    assert client.put(f"{BASE}/{result_id}/approve-hod", headers=HOD).status_code == 200
    assert client.put(f"{BASE}/{result_id}/approve-admin", headers=ADMIN).status_code == 200


def _publish(client) -> dict:
    response = client.put(
        f"{BASE}/publish",
        json={"session": SESSION_2023_ID, "semester": "first"},
        headers=ADMIN,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestResultsAPIRouting:
    """Tests for results API routing."""

    def test_routes_registered(self, app):
        routes = [route.path for route in app.routes]

        assert BASE in routes
        assert f"{BASE}/import" in routes
        assert f"{BASE}/publish" in routes
        assert f"{BASE}/transcript/me" in routes
        assert f"{BASE}/transcript/{{student_id}}" in routes
        assert f"{BASE}/summary/{{student_id}}" in routes
        assert f"{BASE}/{{result_id}}" in routes
        assert f"{BASE}/{{result_id}}/approve-hod" in routes
        assert f"{BASE}/{{result_id}}/reject-hod" in routes
        assert f"{BASE}/{{result_id}}/approve-admin" in routes

    def test_health_route_registered(self, app):
        assert "/health" in [route.path for route in app.routes]


class TestActorHeaders:
    """Tests for caller identification."""

    def test_missing_headers_rejected(self, client):
        response = client.get(BASE)

        assert response.status_code == 401

    def test_unknown_role_rejected(self, client):
        response = client.get(BASE, headers={ACTOR_ID_HEADER: "x", ACTOR_ROLE_HEADER: "dean"})

        assert response.status_code == 401

    def test_malformed_actor_id_rejected(self, client):
        """A student header that is not a user id never reaches the database."""
        response = client.get(
            f"{BASE}/transcript/me",
            headers={ACTOR_ID_HEADER: "not-a-uuid", ACTOR_ROLE_HEADER: "student"},
        )

        assert response.status_code == 401

    def test_request_id_echoed(self, client):
        response = client.get(BASE, headers={**ADMIN, REQUEST_ID_HEADER: "req-123"})

        assert response.headers[REQUEST_ID_HEADER] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get(BASE, headers=ADMIN)

        assert response.headers[REQUEST_ID_HEADER]


class TestCreateResult:
    """Tests for POST /results."""

    def test_create_success(self, client):
        body = _create(client)

        assert body["total_score"] == 85
        assert body["grade"] == "A"
        assert body["grade_points"] == 5.0
        assert body["state"] == "pending"
        assert body["course"]["code"] == "CSC101"
        assert body["session"]["name"] == "2023/2024"
        assert body["entered_by"] == LECTURER_ID

    def test_duplicate_returns_conflict_envelope(self, client):
        _create(client)

        response = client.post(BASE, json=_payload(), headers=LECTURER)

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "already_exists"

    def test_out_of_range_score(self, client):
        response = client.post(BASE, json=_payload(ca=31), headers=LECTURER)

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "invalid_input"

    def test_fractional_scores_stored_consistently(self, client):
        created = _create(client, ca=29.995, exam=40)

        assert created["ca_score"] == 30.0
        assert created["total_score"] == 70.0
        assert created["grade"] == "A"

    def test_unknown_semester(self, client):
        response = client.post(BASE, json=_payload(semester="summer"), headers=LECTURER)

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "invalid_input"

    def test_malformed_identifier(self, client):
        payload = {**_payload(), "student_id": "not-a-uuid"}

        response = client.post(BASE, json=payload, headers=LECTURER)

        assert response.status_code == 422

    def test_not_enrolled(self, client):
        response = client.post(
            BASE, json=_payload(student_id=OTHER_STUDENT_ID, course_id=MTH101_ID), headers=LECTURER
        )

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "conflict"

    def test_student_forbidden(self, client):
        response = client.post(BASE, json=_payload(), headers=STUDENT)

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"


class TestBulkImport:
    """Tests for POST /results/import."""

    def test_import_success(self, client):
        response = client.post(
            f"{BASE}/import",
            json={"results": [_payload(), _payload(course_id=MTH101_ID)]},
            headers=LECTURER,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["created"] == 2
        assert [item["course"]["code"] for item in body["items"]] == ["CSC101", "MTH101"]

    def test_import_is_all_or_nothing(self, client):
        response = client.post(
            f"{BASE}/import",
            json={"results": [_payload(), _payload(course_id=MTH101_ID, exam=71)]},
            headers=LECTURER,
        )

        assert response.status_code == 422
        listing = client.get(BASE, headers=ADMIN).json()
        assert listing["total"] == 0

    def test_empty_import_rejected(self, client):
        response = client.post(f"{BASE}/import", json={"results": []}, headers=LECTURER)

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "invalid_input"


class TestListAndGet:
    """Tests for GET /results and GET /results/{id}."""

    def test_pagination(self, client):
        _create(client)
        _create(client, course_id=MTH101_ID)

        body = client.get(BASE, params={"limit": 1}, headers=ADMIN).json()

        assert body["total"] == 2
        assert body["pages"] == 2
        assert len(body["items"]) == 1

    def test_limit_above_maximum_rejected(self, client):
        response = client.get(BASE, params={"limit": 101}, headers=ADMIN)

        assert response.status_code == 422

    def test_state_filter(self, client):
        first = _create(client)
        _create(client, course_id=MTH101_ID)
        client.put(f"{BASE}/{first['id']}/approve-hod", headers=HOD)

        body = client.get(BASE, params={"state": "hod_approved"}, headers=ADMIN).json()

        assert [item["id"] for item in body["items"]] == [first["id"]]

    def test_student_sees_only_published(self, client):
        created = _create(client)

        assert client.get(BASE, headers=STUDENT).json()["total"] == 0

        _approve(client, created["id"])
        _publish(client)

        body = client.get(BASE, headers=STUDENT).json()
        assert [item["id"] for item in body["items"]] == [created["id"]]

    def test_get_unknown_result(self, client):
        response = client.get(f"{BASE}/00000000-0000-4000-8000-000000000000", headers=ADMIN)

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "not_found"

    def test_student_cannot_get_unpublished(self, client):
        created = _create(client)

        response = client.get(f"{BASE}/{created['id']}", headers=STUDENT)

        assert response.status_code == 403


class TestUpdateAndDelete:
    """Tests for PUT and DELETE /results/{id}."""

    def test_update_recomputes_grade(self, client):
        created = _create(client)

        response = client.put(
            f"{BASE}/{created['id']}", json={"exam_score": 20}, headers=LECTURER
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_score"] == 45
        assert body["grade"] == "D"

    def test_other_lecturer_forbidden(self, client):
        created = _create(client)

        response = client.put(
            f"{BASE}/{created['id']}", json={"exam_score": 20}, headers=OTHER_LECTURER
        )

        assert response.status_code == 403

    def test_update_after_approval_immutable(self, client):
        created = _create(client)
        client.put(f"{BASE}/{created['id']}/approve-hod", headers=HOD)

        response = client.put(
            f"{BASE}/{created['id']}", json={"exam_score": 20}, headers=LECTURER
        )

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "immutable"

    def test_delete_unpublished(self, client):
        created = _create(client)

        response = client.delete(f"{BASE}/{created['id']}", headers=ADMIN)

        assert response.status_code == 204
        assert client.get(f"{BASE}/{created['id']}", headers=ADMIN).status_code == 404

    def test_delete_published_immutable(self, client):
        created = _create(client)
        _approve(client, created["id"])
        _publish(client)

        response = client.delete(f"{BASE}/{created['id']}", headers=ADMIN)

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "immutable"


class TestApproval:
    """Tests for the approval endpoints."""

    def test_admin_before_hod_out_of_order(self, client):
        created = _create(client)

        response = client.put(f"{BASE}/{created['id']}/approve-admin", headers=ADMIN)

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "out_of_order"

    def test_double_hod_approval(self, client):
        created = _create(client)
        client.put(f"{BASE}/{created['id']}/approve-hod", headers=HOD)

        response = client.put(f"{BASE}/{created['id']}/approve-hod", headers=HOD)

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "already_approved"

    def test_lecturer_cannot_approve(self, client):
        created = _create(client)

        response = client.put(f"{BASE}/{created['id']}/approve-hod", headers=LECTURER)

        assert response.status_code == 403

    def test_reject_with_reason(self, client):
        created = _create(client)

        response = client.put(
            f"{BASE}/{created['id']}/reject-hod",
            json={"reason": "CA scores missing"},
            headers=HOD,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "rejected_by_hod"
        assert body["hod_rejection_reason"] == "CA scores missing"

    def test_reject_without_body(self, client):
        created = _create(client)

        response = client.put(f"{BASE}/{created['id']}/reject-hod", headers=HOD)

        assert response.status_code == 200
        assert response.json()["state"] == "rejected_by_hod"


class TestPublish:
    """Tests for PUT /results/publish."""

    def test_publish_counts_and_is_idempotent(self, client, notifier):
        created = _create(client)
        _create(client, course_id=MTH101_ID)
        _approve(client, created["id"])

        first = _publish(client)
        second = _publish(client)

        assert first["modified_count"] == 1
        assert first["message"] == "Published 1 results"
        assert second["modified_count"] == 0
        assert second["message"] == "No approved results awaiting publication"
        assert [call[0] for call in notifier.calls] == [[STUDENT_ID]]

    def test_publish_is_not_a_result_id(self, client):
        """PUT /publish is never routed to PUT /{result_id}."""
        response = client.put(
            f"{BASE}/publish", json={"session": SESSION_2023_ID, "semester": "first"}, headers=ADMIN
        )

        assert response.status_code == 200

    def test_malformed_session_rejected(self, client):
        response = client.put(
            f"{BASE}/publish", json={"session": "2024/2025", "semester": "first"}, headers=ADMIN
        )

        assert response.status_code == 422

    def test_hod_cannot_publish(self, client):
        response = client.put(
            f"{BASE}/publish", json={"session": SESSION_2023_ID, "semester": "first"}, headers=HOD
        )

        assert response.status_code == 403

    def test_bulk_rate_limit(self, client):
        statuses = [
            client.put(
                f"{BASE}/publish",
                json={"session": SESSION_2023_ID, "semester": "first"},
                headers=ADMIN,
            ).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429


class TestTranscriptAndSummary:
    """Tests for transcript and summary endpoints."""

    def test_my_transcript(self, client):
        created = _create(client)
        _approve(client, created["id"])
        _publish(client)

        response = client.get(f"{BASE}/transcript/me", headers=STUDENT)

        assert response.status_code == 200
        body = response.json()
        assert body["student"]["full_name"] == "Ada Obi"
        assert body["cgpa"] == 5.0
        assert body["total_courses"] == 1
        assert body["terms"][0]["session_name"] == "2023/2024"
        assert body["terms"][0]["results"][0]["grade"] == "A"

    def test_student_cannot_read_other_transcript(self, client):
        response = client.get(f"{BASE}/transcript/{OTHER_STUDENT_ID}", headers=STUDENT)

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"

    def test_staff_reads_any_transcript(self, client):
        response = client.get(f"{BASE}/transcript/{OTHER_STUDENT_ID}", headers=HOD)

        assert response.status_code == 200
        assert response.json()["terms"] == []

    def test_summary_without_results(self, client):
        response = client.get(f"{BASE}/summary/{STUDENT_ID}", headers=STUDENT)

        assert response.status_code == 200
        body = response.json()
        assert body["gpa"] == 0.0
        assert body["total_courses"] == 0
        assert body["grade_distribution"]["A"] == 0
