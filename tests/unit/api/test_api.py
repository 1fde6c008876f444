"""
Unit Tests for the HTTP API

Runs the application with its lifespan on the in-memory store and
checks request validation and the domain error mapping.
"""

import time
from typing import Any, Callable, Iterator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from unmute.config import Settings
from unmute.main import create_application

API = "/api/v1"


@pytest.fixture
def client(test_settings: Settings) -> Iterator[TestClient]:
    app = create_application(test_settings)
    with TestClient(app) as test_client:
        yield test_client


def eventually(check: Callable[[], Any], timeout: float = 2.0) -> Any:
    """Poll until the background work behind check has landed."""
    deadline = time.monotonic() + timeout
    while True:
        result = check()
        if result or time.monotonic() > deadline:
            return result
        time.sleep(0.01)


def wait_for_profile(client: TestClient, user_id: str) -> dict:
    def check():
        response = client.get(f"{API}/profiles/{user_id}")
        return response.json() if response.status_code == 200 else None

    return eventually(check)


def create_assignment(client: TestClient, student_id: str, **overrides) -> dict:
    body = {
        "student_user_id": student_id,
        "reason": "Flagged by form tutor",
        "risk_level": "high",
    }
    body.update(overrides)
    response = client.post(f"{API}/assignments", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    """Tests for health and metadata endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Liveness reports the environment."""
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "development"

    def test_readiness(self, client: TestClient) -> None:
        """Memory store is always reachable; sinks are unconfigured."""
        data = client.get(f"{API}/health/ready").json()

        assert data["ready"] is True
        assert data["components"]["store"] is True
        assert data["components"]["email"] is False
        assert data["components"]["sms"] is False

    def test_root(self, client: TestClient) -> None:
        """Root returns service info."""
        assert client.get("/").json()["status"] == "operational"

    def test_correlation_id_echoed(self, client: TestClient) -> None:
        """A caller-supplied correlation id comes back on the response."""
        response = client.get(f"{API}/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_metrics_exposed(self, client: TestClient) -> None:
        """Prometheus metrics are served."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "unmute" in response.text


class TestSignals:
    """Tests for classification and message ingestion."""

    def test_classify_critical(self, client: TestClient) -> None:
        """Explicit intent returns critical self-harm with helplines."""
        response = client.post(
            f"{API}/signals/classify",
            json={"text": "I want to end my life tonight"},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["signal"]["category"] == "self-harm"
        assert data["signal"]["severity"] == "critical"
        assert data["signal"]["show_resources"] is True
        assert data["resources"]["resources"]

    def test_classify_low_distress(self, client: TestClient) -> None:
        """Everyday distress carries no helplines."""
        data = client.post(
            f"{API}/signals/classify",
            json={"text": "ugh I failed my exam"},
        ).json()

        assert data["signal"]["category"] == "generic-distress"
        assert data["signal"]["severity"] == "low"
        assert data["resources"] is None

    def test_message_accepted(self, client: TestClient) -> None:
        """Ingestion answers 202 with the classification."""
        response = client.post(
            f"{API}/messages",
            json={"user_id": str(uuid4()), "text": "I feel so alone"},
        )

        assert response.status_code == 202
        assert response.json()["accepted"] is True
        assert "text" not in response.json()

    def test_empty_message_rejected(self, client: TestClient) -> None:
        """Empty text fails request validation."""
        response = client.post(
            f"{API}/messages",
            json={"user_id": str(uuid4()), "text": ""},
        )
        assert response.status_code == 422

    def test_critical_message_updates_profile_and_escalates(self, client: TestClient) -> None:
        """The background update raises the stage and opens an urgent assignment."""
        user_id = str(uuid4())
        client.post(
            f"{API}/messages",
            json={"user_id": user_id, "text": "I want to kill myself tonight"},
        )

        data = wait_for_profile(client, user_id)
        assert data["profile"]["stage"] == "action"
        assert data["profile"]["risk_level"] == "critical"
        assert data["profile"]["needs_counselling"] is True

        assignments = eventually(
            lambda: client.get(
                f"{API}/assignments",
                params={"student_user_id": user_id, "status": "pending"},
            ).json()
        )
        assert len(assignments) == 1
        assert assignments[0]["priority"] == "urgent"


class TestProfiles:
    """Tests for profile lookup and stage review."""

    def test_unknown_profile_is_404(self, client: TestClient) -> None:
        """A student with no signals has no profile."""
        response = client.get(f"{API}/profiles/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "ProfileNotFound"

    def test_invalid_stage_label(self, client: TestClient) -> None:
        """Unknown stage labels are rejected before any lookup."""
        response = client.post(
            f"{API}/profiles/{uuid4()}/stage-review",
            json={"stage": "panicking", "reviewer_id": str(uuid4()), "reason": "check"},
        )
        assert response.status_code == 422

    def test_review_lowers_stage(self, client: TestClient) -> None:
        """A reviewer can bring a student back down."""
        user_id = str(uuid4())
        client.post(f"{API}/messages", json={"user_id": user_id, "text": "I want to die"})
        assert wait_for_profile(client, user_id)["profile"]["stage"] == "ideation"

        response = client.post(
            f"{API}/profiles/{user_id}/stage-review",
            json={"stage": "trigger", "reviewer_id": str(uuid4()), "reason": "Spoke with student"},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["profile"]["stage"] == "trigger"
        assert data["profile"]["needs_counselling"] is False
        assert data["guidance"]


class TestAssignments:
    """Tests for the assignment lifecycle over HTTP."""

    def test_lifecycle(self, client: TestClient) -> None:
        """pending -> active -> completed, with a 409 for the second accept."""
        assignment = create_assignment(client, str(uuid4()))
        assert assignment["status"] == "pending"
        assert assignment["priority"] == "high"

        url = f"{API}/assignments/{assignment['id']}"
        accepted = client.post(f"{url}/accept", json={"assignee_user_id": str(uuid4())})
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "active"

        again = client.post(f"{url}/accept", json={"assignee_user_id": str(uuid4())})
        assert again.status_code == 409
        assert again.json()["error"] == "AlreadyAccepted"

        completed = client.post(f"{url}/complete", json={"notes": "Referred to GP"})
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["notes"] == "Referred to GP"

    def test_complete_pending_is_conflict(self, client: TestClient) -> None:
        """A pending assignment cannot be completed."""
        assignment = create_assignment(client, str(uuid4()))

        response = client.post(f"{API}/assignments/{assignment['id']}/complete", json={})

        assert response.status_code == 409
        status_now = client.get(f"{API}/assignments/{assignment['id']}").json()["status"]
        assert status_now == "pending"

    def test_duplicate_open_assignment(self, client: TestClient) -> None:
        """A student has at most one open assignment."""
        student_id = str(uuid4())
        create_assignment(client, student_id)

        response = client.post(
            f"{API}/assignments",
            json={"student_user_id": student_id, "reason": "Again", "risk_level": "medium"},
        )
        assert response.status_code == 409

    def test_unknown_assignment(self, client: TestClient) -> None:
        """Unknown ids are 404."""
        assert client.get(f"{API}/assignments/{uuid4()}").status_code == 404

    def test_blank_reason_rejected(self, client: TestClient) -> None:
        """A whitespace-only reason is a validation error."""
        response = client.post(
            f"{API}/assignments",
            json={"student_user_id": str(uuid4()), "reason": "   ", "risk_level": "high"},
        )
        assert response.status_code == 422

    def test_critical_risk_is_urgent(self, client: TestClient) -> None:
        """Priority follows the risk level when not given."""
        assignment = create_assignment(client, str(uuid4()), risk_level="critical")
        assert assignment["priority"] == "urgent"

    def test_invalid_risk_level(self, client: TestClient) -> None:
        """Unknown risk levels are 422."""
        response = client.post(
            f"{API}/assignments",
            json={"student_user_id": str(uuid4()), "reason": "x", "risk_level": "extreme"},
        )
        assert response.status_code == 422


class TestResponseLogs:
    """Tests for the response audit log."""

    def test_log_and_list(self, client: TestClient) -> None:
        """Logged actions are listed per student."""
        student_id = str(uuid4())
        response = client.post(
            f"{API}/response-logs",
            json={
                "student_user_id": student_id,
                "responder_user_id": str(uuid4()),
                "action_type": "contacted-student",
                "outcome": "successful",
            },
        )

        assert response.status_code == 201
        assert response.json()["notification_sent"] is False

        entries = client.get(f"{API}/response-logs", params={"student_user_id": student_id}).json()
        assert len(entries) == 1
        assert entries[0]["action_type"] == "contacted-student"

    def test_follow_up_date_requires_flag(self, client: TestClient) -> None:
        """follow_up_at without follow_up_required is rejected."""
        response = client.post(
            f"{API}/response-logs",
            json={
                "student_user_id": str(uuid4()),
                "responder_user_id": str(uuid4()),
                "action_type": "follow-up",
                "follow_up_at": "2030-01-01T09:00:00+00:00",
            },
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidResponseLog"

    def test_unknown_action_type(self, client: TestClient) -> None:
        """Action types outside the enum fail validation."""
        response = client.post(
            f"{API}/response-logs",
            json={
                "student_user_id": str(uuid4()),
                "responder_user_id": str(uuid4()),
                "action_type": "sent-flowers",
            },
        )
        assert response.status_code == 422


class TestSignalRecords:
    """Tests for the review queue."""

    def test_review_removes_from_queue(self, client: TestClient) -> None:
        """Reviewed records leave the unreviewed list."""
        institution_id = str(uuid4())
        user_id = str(uuid4())
        client.post(
            f"{API}/messages",
            json={
                "user_id": user_id,
                "institution_id": institution_id,
                "text": "I want to die",
                "source_id": "msg-1",
            },
        )
        records = eventually(
            lambda: client.get(
                f"{API}/signal-records", params={"institution_id": institution_id}
            ).json()
        )
        assert len(records) == 1
        assert records[0]["source_id"] == "msg-1"

        reviewed = client.post(
            f"{API}/signal-records/{records[0]['id']}/review",
            json={"reviewer_id": str(uuid4())},
        )
        assert reviewed.status_code == 200

        remaining = client.get(
            f"{API}/signal-records", params={"institution_id": institution_id}
        ).json()
        assert remaining == []

    def test_unknown_record(self, client: TestClient) -> None:
        """Reviewing a missing record is 404."""
        response = client.post(
            f"{API}/signal-records/{uuid4()}/review",
            json={"reviewer_id": str(uuid4())},
        )
        assert response.status_code == 404


class TestReports:
    """Tests for institution rollups."""

    def test_empty_institution_is_zero_filled(self, client: TestClient) -> None:
        """Every stage and level appears even with no students."""
        institution_id = uuid4()

        stages = client.get(f"{API}/reports/institutions/{institution_id}/stages").json()
        levels = client.get(f"{API}/reports/institutions/{institution_id}/risk-levels").json()

        assert len(stages) == 9
        assert set(stages.values()) == {0}
        assert set(levels) == {"low", "medium", "high", "critical"}

    def test_summary_counts_students(self, client: TestClient) -> None:
        """A flagged student shows up in the summary."""
        institution_id = str(uuid4())
        user_id = str(uuid4())
        client.post(
            f"{API}/messages",
            json={"user_id": user_id, "institution_id": institution_id, "text": "I want to die"},
        )
        wait_for_profile(client, user_id)

        summary = client.get(f"{API}/reports/institutions/{institution_id}/summary").json()

        assert summary["total_profiles"] == 1
        assert summary["needs_counselling"] == 1
        assert summary["by_stage"]["ideation"] == 1


class TestAlertStream:
    """Tests for the dashboard WebSocket."""

    def test_connect_and_receive_alert(self, client: TestClient) -> None:
        """A scoped dashboard receives alerts for its institution."""
        institution_id = str(uuid4())

        with client.websocket_connect(f"/ws/alerts?institution_id={institution_id}") as ws:
            hello = ws.receive_json()
            assert hello == {"type": "connected", "institution_id": institution_id}

            client.post(
                f"{API}/messages",
                json={
                    "user_id": str(uuid4()),
                    "institution_id": institution_id,
                    "text": "I want to end my life",
                },
            )
            event = ws.receive_json()

        assert event["type"] == "crisis_alert"
        assert event["transition_to"] == "action"
        assert event["critical"] is True
