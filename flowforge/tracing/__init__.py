"""MLflow tracing for the conversation and generation graphs."""

from flowforge.tracing.mlflow import get_tracing_status, traced_node

__all__ = ["get_tracing_status", "traced_node"]
