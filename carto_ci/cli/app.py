"""Main Typer application — imports and registers all CLI commands.

Entry point: ``carto-ci`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from carto_ci.cli.commands.build import build_cmd
from carto_ci.cli.commands.matrix import matrix_cmd
from carto_ci.cli.commands.release import release_cmd
from carto_ci.cli.commands.serve import serve_cmd

app = typer.Typer(
    name="carto-ci",
    help="carto-ci: webhook-driven build orchestrator for carto.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="serve", help="Run the webhook receiver.")(serve_cmd)
app.command(name="matrix", help="Show the configured build matrix.")(matrix_cmd)
app.command(name="build", help="Build every matrix leg locally and wait for all.")(build_cmd)
app.command(name="release", help="Create a published release for a tag.")(release_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
