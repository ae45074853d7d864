"""
Integration tests for the webhook API.
The workflow engine and lifecycle handlers are mocked; these tests cover
request parsing, acknowledgement and error mapping.
"""

import time
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from warpgate.api.server import app, service_state
from warpgate.core.errors import PreconditionFailure

RESULTS_URL = "https://bamboo.example.com/deploy/viewDeploymentResult.action?deploymentResultId=67797436"

JIRA_WEBHOOK = {
    "webhookEvent": "jira:issue_updated",
    "issue": {
        "id": "10021",
        "key": "CQS-21",
        "fields": {"project": {"key": "CQS", "name": "Casino QS"}, "labels": ["FTL"], "summary": "Fix it"},
    },
}


@pytest.fixture
def client():
    """Create test client (lifespan not run)."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def ready_service(settings, properties):
    """Install mocked workflows before each test and restore the state after it."""
    service_state.settings = settings
    service_state.properties = properties
    service_state.engine = MagicMock()
    service_state.lifecycle = MagicMock()
    service_state.scheduler = MagicMock(pending=2)
    service_state.start_time = time.time()
    yield service_state
    service_state.settings = None
    service_state.properties = None
    service_state.engine = None
    service_state.lifecycle = None
    service_state.scheduler = None


class TestDeployWebhooks:

    def test_prelive_is_acknowledged(self, client):
        response = client.post(
            "/api/issue/CQS-21/deploy/prelive",
            json={"planResultKey": "WL-BFT9-14", "issueKey": "CQS-21", "buildNumber": "14"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        service_state.engine.request_prelive_deployment.assert_called_once_with("WL-BFT9-14", "CQS-21")

    def test_prelive_issue_key_falls_back_to_path(self, client):
        client.post("/api/issue/CQS-22/deploy/prelive", json={"planResultKey": "WL-BFT9-15"})

        service_state.engine.request_prelive_deployment.assert_called_once_with("WL-BFT9-15", "CQS-22")

    def test_precondition_failure_is_400(self, client):
        service_state.engine.request_prelive_deployment.side_effect = PreconditionFailure(
            "planResultKey must be defined"
        )

        response = client.post("/api/issue/CQS-21/deploy/prelive", json={})

        assert response.status_code == 400
        assert response.json() == {"status": "error", "code": 400, "message": "planResultKey must be defined"}

    def test_production_reads_jira_webhook(self, client):
        response = client.post("/api/issue/CQS-21/deploy/production", json=JIRA_WEBHOOK)

        assert response.status_code == 200
        service_state.engine.request_production_deployment.assert_called_once_with("CQS", "CQS-21")

    def test_production_without_issue(self, client):
        client.post("/api/issue/CQS-21/deploy/production", json={"webhookEvent": "jira:issue_updated"})

        service_state.engine.request_production_deployment.assert_called_once_with(None, "CQS-21")

    def test_yolo(self, client):
        response = client.post(
            "/api/issue/CQS-21/deploy/yolo",
            json={"planResultKey": "WL-BFT9-14", "issueKey": "CQS-21"},
        )

        assert response.status_code == 200
        service_state.engine.request_yolo_deployment.assert_called_once_with("WL-BFT9-14", "CQS-21")

    def test_validate(self, client):
        response = client.post(
            "/api/issue/CQS-21/deploy/validate",
            json={"resultsUrl": RESULTS_URL, "transitionCode": "deployedToPrelive"},
        )

        assert response.status_code == 200
        service_state.engine.request_validation.assert_called_once_with("CQS-21", RESULTS_URL, "deployedToPrelive")

    def test_malformed_body_is_400(self, client):
        response = client.post(
            "/api/issue/CQS-21/deploy/validate",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_engine_not_ready_is_503(self, client):
        service_state.engine = None

        response = client.post("/api/issue/CQS-21/deploy/prelive", json={"planResultKey": "WL-BFT9-14"})

        assert response.status_code == 503
        assert response.json()["message"] == "Workflow engine not initialized"

    def test_unexpected_error_is_500(self):
        service_state.engine.request_yolo_deployment.side_effect = RuntimeError("boom")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/issue/CQS-21/deploy/yolo", json={"planResultKey": "WL-BFT9-14"})

        assert response.status_code == 500
        assert response.json() == {"status": "error", "error": "INTERNAL_ERROR"}


class TestIssueWebhooks:

    def test_build_passes_issue_payload(self, client):
        response = client.post("/api/issue/CQS-21/build", json=JIRA_WEBHOOK)

        assert response.status_code == 200
        issue = service_state.lifecycle.request_build.call_args.args[0]
        assert issue["key"] == "CQS-21"
        assert issue["fields"]["project"]["key"] == "CQS"
        assert issue["fields"]["labels"] == ["FTL"]

    def test_build_without_issue(self, client):
        service_state.lifecycle.request_build.side_effect = PreconditionFailure("Issue must be specified in the body")

        response = client.post("/api/issue/CQS-21/build", json={})

        assert response.status_code == 400
        service_state.lifecycle.request_build.assert_called_once_with(None)

    def test_release(self, client):
        response = client.post("/api/issue/CQS-21/release")

        assert response.status_code == 200
        service_state.lifecycle.request_release.assert_called_once_with("CQS-21")


class TestStatusEndpoints:

    def test_status_masks_passwords(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["properties"]["label"] == "FTL"
        assert data["config"]["jira"]["password"] == "******"
        assert "jira-secret" not in response.text

    def test_health(self, client):
        response = client.get("/health")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["engine_ready"] is True
        assert data["pending_tasks"] == 2
        assert data["uptime_seconds"] >= 0

    def test_health_unhealthy_without_engine(self, client):
        service_state.engine = None
        service_state.scheduler = None

        data = client.get("/health").json()

        assert data["status"] == "unhealthy"
        assert data["engine_ready"] is False
        assert data["pending_tasks"] == 0
