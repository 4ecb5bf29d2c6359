"""``carto-ci matrix`` — show the configured build matrix."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from carto_ci.config import CIConfig
from carto_ci.models.matrix import BuildMatrix

console = Console()


def matrix_cmd() -> None:
    """List every matrix leg with its status context and artifact name."""
    settings = CIConfig()
    try:
        matrix = BuildMatrix.from_targets(
            settings.matrix, toolchain_version=settings.toolchain_version
        )
    except ValueError as exc:
        console.print(f"[bold red]Invalid matrix:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=f"Build matrix ({len(matrix)} legs)")
    table.add_column("Target", style="cyan")
    table.add_column("Toolchain", style="green")
    table.add_column("Status context")
    table.add_column("Artifact")

    for spec in matrix.entries:
        table.add_row(
            spec.target,
            f"go {spec.toolchain_version}",
            spec.context_label,
            spec.artifact_name,
        )

    console.print(table)
