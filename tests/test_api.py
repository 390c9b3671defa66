"""Tests for the notification HTTP API.

Covers:
- /api/notify template auto-detection and response shapes
- /api/send validation and response shapes
- /api/queue/status and /health
- Malformed requests and unexpected errors
- CORS and application lifespan (transport check, retry sweeper)
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from conftest import FakeTransport
from notification_service.api import create_app, detect_template
from notification_service.api.schemas import NotifyRequest
from notification_service.config.environment import EnvironmentConfig
from notification_service.notifications.models import DeliveryResult, SMTPDeliveryError
from notification_service.notifications.payloads import TemplateName
from notification_service.notifications.service import NotificationService


@pytest.fixture
def app(env_config, app_config, service):
    return create_app(env_config, app_config, service=service, start_scheduler=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestNotify:
    def test_missing_person_auto_detected(self, client, transport):
        response = client.post(
            "/api/notify",
            json={"caseNumber": "MP-2024-001", "subject": "Missing Person report"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Email notification sent",
            "messageId": "<msg-1@ocrs.gov.in>",
            "template": "missingPersonFiled",
        }
        assert transport.sent[0].subject == "Missing Person Report Filed - MP-2024-001"

    def test_explicit_template_wins(self, client, transport):
        response = client.post(
            "/api/notify",
            json={
                "email": "citizen@example.com",
                "template": "missingPersonReassigned",
                "caseNumber": "MP-9",
                "newAuthorityName": "Insp. Khan",
                "subject": "FIR Filed",
            },
        )

        assert response.status_code == 200
        assert response.json()["template"] == "missingPersonReassigned"
        assert "Insp. Khan" in transport.sent[0].html

    def test_unknown_explicit_template_uses_generic(self, client, transport):
        response = client.post(
            "/api/notify",
            json={"email": "citizen@example.com", "template": "nope", "subject": "Hello"},
        )

        assert response.json()["template"] == "generic"
        assert transport.sent[0].subject == "Hello"

    def test_recipient_email_used(self, client, transport):
        client.post("/api/notify", json={"email": "citizen@example.com", "userId": 42})

        assert transport.sent[0].recipient == "citizen@example.com"

    def test_recipient_placeholder_from_user_id(self, client, transport):
        client.post("/api/notify", json={"userId": 42, "subject": "Hello"})

        assert transport.sent[0].recipient == "user42@example.com"

    def test_fir_update_fields_reach_template(self, client, transport):
        response = client.post(
            "/api/notify",
            json={
                "userId": 7,
                "subject": "FIR Status Updated",
                "reference": "FIR-2024-010",
                "newStatus": "CLOSED",
                "comment": "Case resolved",
            },
        )

        assert response.json()["template"] == "firUpdate"
        html = transport.sent[0].html
        assert "FIR-2024-010" in html
        assert "CLOSED" in html
        assert "Case resolved" in html

    def test_data_passed_to_dispatcher(self, env_config, app_config):
        service = NotificationService(FakeTransport())
        service.send_email = AsyncMock(
            return_value=DeliveryResult(success=True, attempts=1, message_id="id-1")
        )
        app = create_app(env_config, app_config, service=service, start_scheduler=False)

        with TestClient(app) as client:
            client.post(
                "/api/notify",
                json={"userId": 1, "subject": "Status Updated", "reference": "REF-1", "age": 30},
            )

        recipient, template, data = service.send_email.await_args.args
        assert recipient == "user1@example.com"
        assert template is TemplateName.STATUS_UPDATE
        assert data["firNumber"] == "REF-1"
        assert data["reference"] == "REF-1"
        assert data["subject"] == "Status Updated"
        assert data["age"] == "30"
        assert isinstance(data["timestamp"], int)
        assert "userId" not in data
        assert "email" not in data

    def test_caller_timestamp_preserved(self, env_config, app_config):
        service = NotificationService(FakeTransport())
        service.send_email = AsyncMock(
            return_value=DeliveryResult(success=True, attempts=1, message_id="id-1")
        )
        app = create_app(env_config, app_config, service=service, start_scheduler=False)

        with TestClient(app) as client:
            client.post("/api/notify", json={"timestamp": "2025-11-04T12:00:00Z"})

        assert service.send_email.await_args.args[2]["timestamp"] == "2025-11-04T12:00:00Z"

    def test_queued_returns_202(self, client, transport):
        transport.failures = 1

        response = client.post(
            "/api/notify", json={"email": "citizen@example.com", "subject": "FIR Filed"}
        )

        assert response.status_code == 202
        assert response.json() == {
            "success": True,
            "message": "Email queued for retry",
            "queued": True,
        }

    def test_terminal_failure_returns_500(self, env_config, app_config):
        transport = FakeTransport(failures=1, error=SMTPDeliveryError("auth failed"))
        service = NotificationService(transport, max_attempts=1)
        app = create_app(env_config, app_config, service=service, start_scheduler=False)

        with TestClient(app) as client:
            response = client.post("/api/notify", json={"email": "citizen@example.com"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Failed to send email",
            "error": "auth failed",
        }

    def test_unexpected_error_returns_generic_500(self, client, service):
        service.send_email = AsyncMock(side_effect=RuntimeError("secret detail"))

        response = client.post("/api/notify", json={"email": "citizen@example.com"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}

    @pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"subject": {"nested": true}}'])
    def test_malformed_body_returns_generic_500(self, client, body):
        response = client.post(
            "/api/notify", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}


class TestSend:
    @pytest.mark.parametrize("body", [{"to": "", "template": "generic"}, {"template": "generic"}])
    def test_missing_recipient_returns_400(self, client, transport, body):
        response = client.post("/api/send", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Recipient email is required"}
        assert transport.attempts == 0

    def test_success(self, client, transport):
        response = client.post(
            "/api/send",
            json={
                "to": "citizen@example.com",
                "template": "firUpdate",
                "data": {"firNumber": "FIR-3", "newStatus": "OPEN"},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Email sent",
            "messageId": "<msg-1@ocrs.gov.in>",
        }
        assert transport.sent[0].subject == "FIR Update - FIR-3"

    def test_defaults_to_generic_without_data(self, client, transport):
        response = client.post("/api/send", json={"to": "citizen@example.com"})

        assert response.status_code == 200
        assert transport.sent[0].subject == "Notification from OCRS"

    def test_queued_returns_202(self, client, transport):
        transport.failures = 1

        response = client.post("/api/send", json={"to": "citizen@example.com"})

        assert response.status_code == 202
        assert response.json()["queued"] is True

    def test_unexpected_error_returns_generic_500(self, client, service):
        service.send_email = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.post("/api/send", json={"to": "citizen@example.com"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}


class TestQueueStatus:
    def test_empty(self, client):
        response = client.get("/api/queue/status")

        assert response.status_code == 200
        assert response.json() == {"success": True, "queueLength": 0, "items": []}

    def test_after_first_failure(self, client, transport):
        transport.failures = 1
        client.post(
            "/api/notify",
            json={"email": "citizen@example.com", "caseNumber": "MP-2024-001"},
        )

        response = client.get("/api/queue/status")

        assert response.json() == {
            "success": True,
            "queueLength": 1,
            "items": [
                {
                    "to": "citizen@example.com",
                    "template": "missingPersonFiled",
                    "retryCount": 1,
                    "addedAt": "2025-11-04T12:00:00.000Z",
                }
            ],
        }


class TestHealthAndCors:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Email Service is running"
        assert body["timestamp"].endswith("Z")

    def test_cors_allows_configured_origin(self, client):
        response = client.options(
            "/api/notify",
            headers={
                "Origin": "http://localhost:8080",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:8080"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_cors_rejects_other_origin(self, client):
        response = client.get("/health", headers={"Origin": "http://evil.example.com"})

        assert "access-control-allow-origin" not in response.headers


class TestLifespan:
    def test_transport_verified_on_startup(self, client, transport):
        assert transport.verified is True

    def test_verify_failure_does_not_block_startup(self, env_config, app_config, service, transport):
        transport.verify = AsyncMock(side_effect=SMTPDeliveryError("unreachable"))
        app = create_app(env_config, app_config, service=service, start_scheduler=False)

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200

    def test_sweeper_runs_for_app_lifetime(self, env_config, app_config, service):
        app = create_app(env_config, app_config, service=service)

        with TestClient(app):
            assert app.state.retry_sweeper.is_running()

        assert not app.state.retry_sweeper.is_running()

    def test_builds_service_from_configuration(self, app_config):
        app = create_app(EnvironmentConfig(api_token="token-123"), app_config, start_scheduler=False)

        service = app.state.notification_service
        assert service.transport.name == "api"
        assert service.max_attempts == 3
        assert service.retry_queue.delay.total_seconds() == 5


@pytest.mark.parametrize(
    "fields,expected",
    [
        ({"caseNumber": "MP-2024-001"}, TemplateName.MISSING_PERSON_FILED),
        ({"reference": "MP-7", "subject": "Status Updated"}, TemplateName.FIR_UPDATE),
        ({"caseNumber": "FIR-2024-3"}, TemplateName.FIR_FILED),
        (
            {"firNumber": "FIR-2024-3", "subject": "FIR Status Updated - FIR-2024-3"},
            TemplateName.FIR_UPDATE,
        ),
        ({"subject": "New Missing Person case"}, TemplateName.MISSING_PERSON_FILED),
        ({"firNumber": "FIR-1"}, TemplateName.GENERIC),
        ({"subject": "FIR Filed"}, TemplateName.FIR_FILED),
        ({"subject": "Report Filed for your complaint"}, TemplateName.FIR_FILED),
        ({"subject": "Status Updated", "firNumber": "2024/15"}, TemplateName.FIR_UPDATE),
        ({"subject": "Case Updated", "reference": "REF-1"}, TemplateName.STATUS_UPDATE),
        ({"subject": "Status Updated"}, TemplateName.STATUS_UPDATE),
        ({"subject": "Welcome"}, TemplateName.GENERIC),
        ({}, TemplateName.GENERIC),
    ],
)
def test_detect_template(fields, expected):
    assert detect_template(NotifyRequest.model_validate(fields)) is expected
