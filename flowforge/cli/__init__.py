"""CLI application setup using Typer.

Provides the command-line interface for FlowForge.
"""

from flowforge.cli.main import app

__all__ = ["app"]
