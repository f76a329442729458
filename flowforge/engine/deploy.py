"""Deployment of validated artifacts to the workflow engine."""

import logging
from typing import Protocol

from pydantic import BaseModel

from flowforge.engine.client import EngineClient
from flowforge.exceptions import DeploymentError
from flowforge.graph.state import WorkflowArtifact

logger = logging.getLogger(__name__)


class DeploymentResult(BaseModel):
    artifact_id: str
    activated: bool = False


class WorkflowDeployer(Protocol):
    async def deploy(
        self,
        artifact: WorkflowArtifact,
        workflow_id: str | None = None,
    ) -> DeploymentResult: ...


class HttpWorkflowDeployer:
    """Creates the workflow through the engine API and optionally activates it.

    A failure after the workflow was created carries the new id on the
    ``DeploymentError``; passing it back as ``workflow_id`` resumes with
    activation instead of creating the workflow again.
    """

    def __init__(self, client: EngineClient, activate: bool = True):
        self.client = client
        self.activate = activate

    async def deploy(
        self,
        artifact: WorkflowArtifact,
        workflow_id: str | None = None,
    ) -> DeploymentResult:
        artifact_id = workflow_id or await self._create(artifact)

        if not self.activate:
            return DeploymentResult(artifact_id=artifact_id)
        try:
            await self.client.request("POST", f"/api/v1/workflows/{artifact_id}/activate")
        except DeploymentError as e:
            e.artifact_id = artifact_id
            raise
        return DeploymentResult(artifact_id=artifact_id, activated=True)

    async def _create(self, artifact: WorkflowArtifact) -> str:
        created = await self.client.request(
            "POST", "/api/v1/workflows", json=artifact.to_engine_payload()
        )
        artifact_id = str((created or {}).get("id") or "")
        if not artifact_id:
            raise DeploymentError("Workflow engine did not return a workflow id")
        logger.info("Created workflow '%s' as %s", artifact.name, artifact_id)
        return artifact_id
