"""Unit tests for the HTTP API.

The application is built with an in-memory conversation service, so no
database or model is touched.
"""

import pytest
import yaml
from httpx import ASGITransport, AsyncClient

from flowforge import __version__
from flowforge.api.main import create_app

SLACK_REQUEST = "Every morning at 9am send a Slack message to #general"


@pytest.fixture
async def client(test_settings, service):
    app = create_app(settings=test_settings, service=service)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


async def _start(client: AsyncClient, message: str | None = SLACK_REQUEST) -> dict:
    response = await client.post(
        "/api/v1/conversations", json={"user_id": "user-1", "initial_message": message}
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "version": __version__,
            "llm_enabled": False,
            "session_store": "memory",
        }


class TestConversationRoutes:
    """Tests for the conversation endpoints."""

    async def test_start_conversation(self, client):
        body = await _start(client)

        assert body["phase"] == "confirming"
        assert body["session_id"]
        assert body["clarifying_questions"] == []

    async def test_start_without_message(self, client):
        body = await _start(client, message=None)

        assert body["phase"] == "gathering"

    async def test_send_message_generates_workflow(self, client):
        started = await _start(client)

        response = await client.post(
            f"/api/v1/conversations/{started['session_id']}/messages",
            json={"content": "yes create it"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["phase"] == "deploying"
        assert body["verdict"]["score"] == 85
        assert [node["id"] for node in body["artifact"]["nodes"]] == ["trigger", "slack-1"]

    async def test_empty_message_is_rejected(self, client):
        started = await _start(client)

        response = await client.post(
            f"/api/v1/conversations/{started['session_id']}/messages", json={"content": ""}
        )

        assert response.status_code == 422

    async def test_get_conversation(self, client):
        started = await _start(client)

        response = await client.get(f"/api/v1/conversations/{started['session_id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == started["session_id"]
        assert body["user_id"] == "user-1"
        assert body["phase"] == "confirming"
        assert [turn["role"] for turn in body["turns"]] == ["user", "assistant"]
        assert body["specification"]["integrations"] == ["slack"]

    async def test_reset_conversation(self, client):
        started = await _start(client)

        response = await client.post(f"/api/v1/conversations/{started['session_id']}/reset")

        assert response.status_code == 200
        body = response.json()
        assert body["phase"] == "gathering"
        assert body["specification"] is None
        assert body["turns"] == []


class TestArtifactRoute:
    """Tests for downloading the generated workflow."""

    async def test_not_generated_yet(self, client):
        started = await _start(client)

        response = await client.get(f"/api/v1/conversations/{started['session_id']}/artifact")

        assert response.status_code == 404
        assert response.json()["detail"] == "No workflow has been generated yet"

    async def test_json_and_yaml(self, client):
        started = await _start(client)
        session_id = started["session_id"]
        await client.post(f"/api/v1/conversations/{session_id}/messages", json={"content": "yes"})

        as_json = await client.get(f"/api/v1/conversations/{session_id}/artifact")
        as_yaml = await client.get(f"/api/v1/conversations/{session_id}/artifact", params={"format": "yaml"})

        assert as_json.status_code == 200
        assert [node["name"] for node in as_json.json()["nodes"]]
        assert as_yaml.status_code == 200
        assert as_yaml.headers["content-type"].startswith("application/yaml")
        assert yaml.safe_load(as_yaml.text) == as_json.json()

    async def test_unknown_format(self, client):
        started = await _start(client)

        response = await client.get(
            f"/api/v1/conversations/{started['session_id']}/artifact", params={"format": "xml"}
        )

        assert response.status_code == 422


class TestErrorHandling:
    """Tests for error bodies and correlation ids."""

    async def test_unknown_session(self, client):
        response = await client.post(
            "/api/v1/conversations/missing/messages",
            json={"content": "hello"},
            headers={"X-Correlation-ID": "req-123"},
        )

        assert response.status_code == 404
        assert response.headers["X-Correlation-ID"] == "req-123"
        error = response.json()["error"]
        assert error["code"] == 404
        assert error["type"] == "sessionnotfound_error"
        assert error["correlation_id"] == "req-123"
        assert "missing" in error["message"]

    @pytest.mark.parametrize("path", ["/api/v1/conversations/missing", "/api/v1/conversations/missing/artifact"])
    async def test_unknown_session_on_reads(self, client, path):
        response = await client.get(path)

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "sessionnotfound_error"

    async def test_correlation_id_is_generated(self, client):
        response = await client.get("/api/v1/health")

        assert response.headers["X-Correlation-ID"]

    async def test_service_not_initialised(self, test_settings):
        app = create_app(settings=test_settings)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/conversations", json={})

        assert response.status_code == 503
        assert response.json()["error"]["type"] == "configuration_error"
