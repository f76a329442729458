"""HTTP API for the conversation service."""

from flowforge.api.main import create_app

__all__ = ["create_app"]
