"""Service configuration — env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
CARTO_CI_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class CIConfig(BaseSettings):
    """carto-ci configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CARTO_CI_GITHUB_TOKEN=ghp_...
        export CARTO_CI_MATRIX='["linux/amd64", "darwin/arm64"]'
        export CARTO_CI_MAX_WORKERS=2

    Or via .env file::

        CARTO_CI_ENVIRONMENT=production
        CARTO_CI_WEBHOOK_SECRET=...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CARTO_CI_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Source-control host
    repository: str = "b1naryth1ef/carto"
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_upload_url: str = "https://uploads.github.com"
    webhook_secret: str = ""
    http_timeout_seconds: float = 30.0

    # Release convention: tags must start with this marker
    release_prefix: str = "v"

    # Build matrix, "os/arch" targets
    matrix: list[str] = ["linux/amd64", "linux/arm64", "windows/amd64"]
    toolchain_version: str = "1.22"
    build_target: str = "cmd/carto/main.go"

    # Build environment
    source_dir: Path = Path(".")
    output_dir: Path = Path(".carto-ci/out")
    docker_binary: str = "docker"
    git_binary: str = "git"
    build_timeout_seconds: int = 1800

    # Worker pool
    max_workers: int = 4

    # Completion outcomes, one JSON object per line; empty disables
    outcome_log_path: Path | None = None

    # Webhook server
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton; import as `from carto_ci.config import config`
config = CIConfig()
