"""CLI entry point.

Provides the main CLI application with commands for:
- chat: Build a workflow through an interactive conversation
- serve: Run the API server
- catalog: Show the triggers and actions the engine supports
"""

import asyncio
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.table import Table

from flowforge.graph.state import ConversationResponse, Phase

app = typer.Typer(
    name="flowforge",
    help="Build workflow automations by describing them in plain language",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

EXIT_WORDS = frozenset({"exit", "quit", ":q"})


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    from flowforge.logging_config import configure_logging

    configure_logging("DEBUG" if verbose else None)


@app.command()
def chat(
    message: Annotated[
        str | None,
        typer.Argument(help="First message (or leave empty for interactive mode)"),
    ] = None,
    once: Annotated[
        bool,
        typer.Option("--once", help="Answer the first message and exit"),
    ] = False,
    user: Annotated[
        str,
        typer.Option("--user", "-u", help="User id for the conversation"),
    ] = "cli",
) -> None:
    """Design a workflow in conversation.

    Examples:
        flowforge chat "Every morning at 9am send a Slack message to #general"
        flowforge chat  # Interactive mode
    """
    asyncio.run(_chat(message, once, user))


async def _chat(initial_message: str | None, once: bool, user: str) -> None:
    from flowforge.dal import InMemorySessionStore
    from flowforge.services import ConversationService, Pipeline

    service = ConversationService(Pipeline.from_settings(), InMemorySessionStore())

    console.print(
        Panel(
            "[bold blue]FlowForge[/bold blue]\n\n"
            "Describe the automation you want to build.\n"
            "Type [cyan]'exit'[/cyan] or [cyan]'quit'[/cyan] to end.\n"
            "Type [cyan]'start over'[/cyan] to discard the current workflow.",
            title="Workflow Builder",
            border_style="blue",
        )
    )

    response = await service.start_conversation(user, initial_message)
    _render(response)
    if once:
        return

    while True:
        utterance = Prompt.ask("[bold cyan]You[/bold cyan]")
        if utterance.strip().lower() in EXIT_WORDS:
            console.print("[dim]Goodbye.[/dim]")
            return
        if not utterance.strip():
            continue
        response = await service.process_message(response.session_id, utterance)
        _render(response)


def _render(response: ConversationResponse) -> None:
    body = response.response_text
    if response.clarifying_questions:
        body += "\n\n" + "\n".join(f"• {q}" for q in response.clarifying_questions)
    console.print(
        Panel(
            body,
            title=f"FlowForge [dim]({response.phase.value})[/dim]",
            border_style="green" if response.phase == Phase.COMPLETED else "blue",
        )
    )

    for warning in response.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    for issue in response.issues:
        console.print(f"[red]✗ {issue}[/red]")

    if response.artifact is not None:
        content = yaml.dump(response.artifact.to_engine_payload(), default_flow_style=False, sort_keys=False)
        console.print(Syntax(content, "yaml", theme="monokai"))
    if response.verdict is not None:
        console.print(f"[dim]Validation score: {response.verdict.score}/100[/dim]")
    if response.deployed_artifact_id:
        console.print(f"[green]Deployed as {response.deployed_artifact_id}[/green]")


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to bind to"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload for development"),
    ] = False,
) -> None:
    """Start the FlowForge API server.

    Defaults are loaded from settings (env vars / .env).
    """
    import uvicorn

    from flowforge.settings import get_settings

    settings = get_settings()
    resolved_host = host or settings.api_host
    resolved_port = port or settings.api_port

    console.print(
        Panel(
            f"[bold green]Starting FlowForge API Server[/bold green]\n"
            f"Host: {resolved_host}\n"
            f"Port: {resolved_port}\n"
            f"Sessions: {settings.session_store}\n"
            f"Reload: {reload}",
            title="FlowForge",
            border_style="green",
        )
    )

    uvicorn.run(
        "flowforge.api.main:create_app",
        factory=True,
        host=resolved_host,
        port=resolved_port,
        reload=reload,
        log_level="info",
    )


@app.command()
def catalog() -> None:
    """List the triggers and actions available to generated workflows."""
    from flowforge.feasibility import DEFAULT_CATALOG

    table = Table(title="Capability Catalog", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Node type", style="dim")
    table.add_column("Integration")
    table.add_column("Credential")

    for capability in [*DEFAULT_CATALOG.triggers(), *DEFAULT_CATALOG.actions()]:
        table.add_row(
            capability.name,
            capability.kind.value,
            capability.node_type,
            capability.integration or "",
            capability.credential or "",
        )

    console.print(table)


if __name__ == "__main__":
    app()
