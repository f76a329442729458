"""Workflow engine client and deployment."""

from flowforge.engine.client import EngineClient, EngineClientConfig
from flowforge.engine.deploy import DeploymentResult, HttpWorkflowDeployer, WorkflowDeployer

__all__ = [
    "DeploymentResult",
    "EngineClient",
    "EngineClientConfig",
    "HttpWorkflowDeployer",
    "WorkflowDeployer",
]
