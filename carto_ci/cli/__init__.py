"""carto-ci CLI — Typer-based command-line interface.

Provides the ``carto-ci`` command with subcommands for serving the webhook
receiver, inspecting the build matrix, building every leg locally, and
creating releases.

All output uses Rich for formatted terminal display.
"""
