"""``carto-ci release NAME TAG`` — create a published release."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from carto_ci.config import CIConfig
from carto_ci.core.errors import CollaboratorUnavailableError, PublishError
from carto_ci.core.orchestrator import Orchestrator

console = Console()


def release_cmd(
    name: str = typer.Argument(..., help="Release title."),
    tag: str = typer.Argument(..., help="Tag the release points at."),
) -> None:
    """Create a non-draft release on the configured repository."""
    settings = CIConfig()
    orchestrator = Orchestrator(settings)
    try:
        release = orchestrator.create_release(name, tag)
    except CollaboratorUnavailableError as exc:
        console.print(f"[bold red]No GitHub access:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except PublishError as exc:
        console.print(f"[bold red]Release failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    finally:
        orchestrator.shutdown(wait=False)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Release created[/bold green]",
                "",
                f"[bold]Repository:[/bold] {release.repository}",
                f"[bold]Tag:[/bold]        {release.tag}",
                f"[bold]Name:[/bold]       {release.name}",
                f"[bold]URL:[/bold]        {release.html_url or '-'}",
            ]),
            title="[bold]Release[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
