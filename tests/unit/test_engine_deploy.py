"""Tests for the workflow engine client and deployer."""

import json

import httpx
import pytest

from flowforge.engine import EngineClient, EngineClientConfig, HttpWorkflowDeployer
from flowforge.exceptions import ConfigurationError, DeploymentError
from flowforge.settings import Settings
from tests.fakes import make_artifact


def _client(handler, api_key: str = "secret-key") -> EngineClient:
    config = EngineClientConfig(base_url="http://engine.test", api_key=api_key, timeout=5)
    return EngineClient(config, transport=httpx.MockTransport(handler))


class TestEngineClient:
    """Tests for request handling and error mapping."""

    async def test_sends_api_key_and_decodes_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.headers.get("X-N8N-API-KEY")
            seen["path"] = request.url.path
            return httpx.Response(200, json={"ok": True})

        client = _client(handler)
        try:
            assert await client.request("GET", "/api/v1/workflows") == {"ok": True}
        finally:
            await client.close()

        assert seen == {"key": "secret-key", "path": "/api/v1/workflows"}

    async def test_no_header_without_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "X-N8N-API-KEY" not in request.headers
            return httpx.Response(204)

        client = _client(handler, api_key="")
        assert await client.request("POST", "/x") == {}
        await client.close()

    @pytest.mark.parametrize(
        ("status", "transient"),
        [(500, True), (503, True), (429, True), (400, False), (401, False)],
    )
    async def test_error_statuses(self, status, transient):
        client = _client(lambda request: httpx.Response(status, text="nope"))

        with pytest.raises(DeploymentError) as exc_info:
            await client.request("GET", "/x")
        await client.close()

        assert exc_info.value.status_code == status
        assert exc_info.value.transient is transient
        assert f"HTTP {status}" in str(exc_info.value)

    async def test_network_failure_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(DeploymentError) as exc_info:
            await client.request("GET", "/x")
        await client.close()

        assert exc_info.value.transient
        assert exc_info.value.status_code is None

    async def test_timeout_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = _client(handler)
        with pytest.raises(DeploymentError, match="timed out after 5s"):
            await client.request("GET", "/x")
        await client.close()

    def test_from_settings_requires_url(self):
        with pytest.raises(ConfigurationError):
            EngineClient.from_settings(Settings(engine_url=None))

    def test_from_settings(self):
        client = EngineClient.from_settings(
            Settings(engine_url="http://engine.test/", engine_api_key="k", engine_timeout_seconds=10)
        )
        assert client.config.base_url == "http://engine.test"
        assert client.config.api_key == "k"
        assert client.config.timeout == 10


class TestHttpWorkflowDeployer:
    """Tests for create-then-activate deployment."""

    async def test_creates_and_activates(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/v1/workflows":
                return httpx.Response(200, json={"id": "wf-42"})
            return httpx.Response(200, json={"active": True})

        client = _client(handler)
        result = await HttpWorkflowDeployer(client).deploy(make_artifact())
        await client.close()

        assert result.artifact_id == "wf-42"
        assert result.activated
        assert [r.url.path for r in requests] == ["/api/v1/workflows", "/api/v1/workflows/wf-42/activate"]
        body = json.loads(requests[0].content)
        assert body["name"] == "Test workflow"
        assert body["connections"] == {"Trigger": {"main": [[{"node": "Step", "type": "main", "index": 0}]]}}

    async def test_without_activation(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": 7})

        client = _client(handler)
        result = await HttpWorkflowDeployer(client, activate=False).deploy(make_artifact())
        await client.close()

        assert result.artifact_id == "7"
        assert not result.activated
        assert len(requests) == 1

    async def test_missing_id(self):
        client = _client(lambda request: httpx.Response(200, json={}))

        with pytest.raises(DeploymentError, match="did not return a workflow id"):
            await HttpWorkflowDeployer(client).deploy(make_artifact())
        await client.close()

    async def test_activation_failure_carries_created_id(self):
        client = _client(
            lambda request: httpx.Response(200, json={"id": "wf-42"})
            if request.url.path == "/api/v1/workflows"
            else httpx.Response(503, json={"message": "busy"})
        )

        with pytest.raises(DeploymentError) as exc_info:
            await HttpWorkflowDeployer(client).deploy(make_artifact())
        await client.close()

        assert exc_info.value.artifact_id == "wf-42"
        assert exc_info.value.transient

    async def test_create_failure_has_no_created_id(self):
        client = _client(lambda request: httpx.Response(500, json={}))

        with pytest.raises(DeploymentError) as exc_info:
            await HttpWorkflowDeployer(client).deploy(make_artifact())
        await client.close()

        assert exc_info.value.artifact_id is None

    async def test_existing_workflow_is_only_activated(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"active": True})

        client = _client(handler)
        result = await HttpWorkflowDeployer(client).deploy(make_artifact(), workflow_id="wf-42")
        await client.close()

        assert result.artifact_id == "wf-42"
        assert result.activated
        assert [r.url.path for r in requests] == ["/api/v1/workflows/wf-42/activate"]
