"""Source-control host integration (GitHub REST API)."""

from carto_ci.github.client import GitHubAPIError, GitHubClient, get_client

__all__ = ["GitHubAPIError", "GitHubClient", "get_client"]
