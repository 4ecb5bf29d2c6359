"""``carto-ci serve`` — run the webhook receiver under uvicorn."""

from __future__ import annotations

import typer
import uvicorn

from carto_ci.config import CIConfig
from carto_ci.core.production_guard import ProductionConfigError, enforce_production_constraints
from carto_ci.logging_setup import configure_logging
from carto_ci.web.app import create_app


def serve_cmd(
    host: str = typer.Option(None, help="Bind address (default from config)."),
    port: int = typer.Option(None, help="Bind port (default from config)."),
) -> None:
    """Start the webhook receiver."""
    settings = CIConfig()
    configure_logging(settings.log_level)

    try:
        enforce_production_constraints(settings)
    except ProductionConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )
