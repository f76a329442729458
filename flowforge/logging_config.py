"""Logging configuration for FlowForge.

Application loggers follow the configured level while chatty
third-party libraries are held at WARNING or above.
"""

import logging
import sys
import warnings
from typing import Literal

from flowforge.settings import get_settings

# MLflow emits type-hint warnings about its own internal types
warnings.filterwarnings(
    "ignore",
    message=r"Union type hint.*inferred as AnyType",
    category=UserWarning,
)

NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "urllib3",
    "asyncio",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "langchain",
    "langchain_core",
    "langgraph",
    "openai",
    "uvicorn.access",
    "mlflow",
    "mlflow.tracing",
    "mlflow.tracing.export",
]

NOISY_LOGGER_LEVELS = {
    "mlflow.tracing": logging.CRITICAL,
    "mlflow.tracing.export": logging.CRITICAL,
}

LOG_FORMAT = "%(levelname)s | %(name)s | %(message)s"


def suppress_noisy_loggers() -> None:
    """Suppress noisy third-party loggers.

    Call this after importing libraries that configure their own logging.
    """
    for logger_name in NOISY_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(NOISY_LOGGER_LEVELS.get(logger_name, logging.WARNING))
        logger.handlers.clear()


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Override log level (defaults to settings.log_level)
    """
    log_level = level or get_settings().log_level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    root_logger.addHandler(console_handler)

    logging.getLogger("flowforge").setLevel(getattr(logging, log_level))

    suppress_noisy_loggers()
