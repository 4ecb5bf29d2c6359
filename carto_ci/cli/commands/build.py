"""``carto-ci build`` — build every matrix leg locally.

Exports *ref* from the source repository and runs all legs concurrently
through the same job runner the webhook path uses, but without commit
statuses or uploads, and waits for all of them.  Exits non-zero if any leg failed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from carto_ci.config import CIConfig
from carto_ci.core.orchestrator import Orchestrator
from carto_ci.logging_setup import configure_logging

console = Console()


def build_cmd(
    source_dir: Path = typer.Option(
        Path("."), "--source", "-s", help="Git repository the ref is exported from."
    ),
    output_dir: Path = typer.Option(
        Path(".carto-ci/out"), "--out", "-o", help="Directory for build outputs."
    ),
    ref: str = typer.Option("HEAD", help="Commit, tag or branch to build."),
) -> None:
    """Build every matrix leg and print a summary."""
    settings = CIConfig()
    configure_logging(settings.log_level)
    settings = settings.model_copy(
        update={"source_dir": source_dir, "output_dir": output_dir}
    )

    orchestrator = Orchestrator(settings)
    try:
        outcomes = orchestrator.build_all(ref=ref)
    finally:
        orchestrator.shutdown(wait=False)

    table = Table(title=f"Build results for {ref}")
    table.add_column("Artifact", style="cyan")
    table.add_column("Result", justify="center")
    table.add_column("Size", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Error")

    for outcome in outcomes:
        result = "[green]ok[/green]" if outcome.succeeded else "[red]failed[/red]"
        table.add_row(
            outcome.artifact_name,
            result,
            f"{outcome.size_bytes:,}" if outcome.succeeded else "-",
            f"{outcome.duration_ms / 1000:.1f}s" if outcome.succeeded else "-",
            outcome.error_message,
        )
    console.print(table)

    if not all(o.succeeded for o in outcomes):
        raise typer.Exit(code=1)
