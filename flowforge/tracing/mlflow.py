"""MLflow span helpers for graph nodes.

Tracing is opt-in (``TRACING_ENABLED``). MLflow is imported on first use and
any failure to initialise it or to emit a span disables tracing for the rest
of the process; the wrapped node always runs.
"""

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

from flowforge.settings import get_settings

_logger = logging.getLogger(__name__)

_mlflow: Any = None
_tracing_disabled = False


def _disable_tracing(reason: str) -> None:
    global _tracing_disabled
    if not _tracing_disabled:
        _logger.debug("Disabling MLflow tracing: %s", reason)
    _tracing_disabled = True


def _get_mlflow() -> Any | None:
    """Return the initialised mlflow module, or None when tracing is off."""
    global _mlflow
    if _tracing_disabled:
        return None
    settings = get_settings()
    if not settings.tracing_enabled:
        return None
    if _mlflow is not None:
        return _mlflow
    try:
        import mlflow

        from flowforge.logging_config import suppress_noisy_loggers

        suppress_noisy_loggers()
        mlflow.set_tracking_uri(settings.mlflow_tracking_uri)
        mlflow.set_experiment(settings.mlflow_experiment_name)
    except Exception as e:
        _disable_tracing(f"initialisation failed: {e}")
        return None
    _mlflow = mlflow
    return _mlflow


def get_tracing_status() -> dict[str, Any]:
    """Summarise tracing configuration for CLI/API display."""
    settings = get_settings()
    return {
        "enabled": settings.tracing_enabled and not _tracing_disabled,
        "tracking_uri": settings.mlflow_tracking_uri,
        "experiment_name": settings.mlflow_experiment_name,
    }


def traced_node(
    name: str,
    fn: Callable[..., Any],
    span_type: str = "CHAIN",
    attributes: dict[str, Any] | None = None,
) -> Callable[..., Any]:
    """Wrap a LangGraph node function in an MLflow span.

    The check happens at call time so graphs can be compiled before
    MLflow is configured.

    Args:
        name: Span name (typically the node name in the graph).
        fn: Async or sync node function (state) -> state updates.
        span_type: MLflow span type.
        attributes: Optional attributes to set on the span.

    Returns:
        Wrapped function with the same calling convention as ``fn``.
    """
    traced: Callable[..., Any] | None = None

    def _get_traced(mlflow: Any) -> Callable[..., Any]:
        nonlocal traced
        if traced is None:
            traced = mlflow.trace(fn, name=name, span_type=span_type, attributes=attributes)
        return traced

    @functools.wraps(fn)
    async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
        mlflow = _get_mlflow()
        if mlflow is None:
            return await fn(*args, **kwargs)
        try:
            wrapped = _get_traced(mlflow)
        except Exception as e:
            _disable_tracing(f"span setup for {name} failed: {e}")
            return await fn(*args, **kwargs)
        return await wrapped(*args, **kwargs)

    @functools.wraps(fn)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        mlflow = _get_mlflow()
        if mlflow is None:
            return fn(*args, **kwargs)
        try:
            wrapped = _get_traced(mlflow)
        except Exception as e:
            _disable_tracing(f"span setup for {name} failed: {e}")
            return fn(*args, **kwargs)
        return wrapped(*args, **kwargs)

    if inspect.iscoroutinefunction(fn):
        return async_wrapper
    return sync_wrapper
