"""Minimal GitHub REST client for commit statuses and releases.

Only the three calls the orchestrator needs are implemented.  The client
is shared by every job thread; ``httpx.Client`` is safe to use that way.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from carto_ci.config import CIConfig

logger = logging.getLogger(__name__)

_ACCEPT = "application/vnd.github+json"
_API_VERSION = "2022-11-28"


class GitHubAPIError(RuntimeError):
    """A GitHub API call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """Credentialed GitHub client.

    Parameters
    ----------
    token:
        Token used for the ``Authorization`` header.
    api_url:
        Base URL of the REST API.
    upload_url:
        Base URL of the asset upload host.
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        upload_url: str = "https://uploads.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._upload_url = upload_url.rstrip("/")
        self._http = httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": _ACCEPT,
                "X-GitHub-Api-Version": _API_VERSION,
                "User-Agent": "carto-ci",
            },
        )

    # ------------------------------------------------------------------
    # Commit statuses
    # ------------------------------------------------------------------

    def create_status(
        self,
        repository: str,
        sha: str,
        *,
        state: str,
        context: str,
        description: str = "",
        target_url: str | None = None,
    ) -> dict[str, Any]:
        """POST /repos/{repo}/statuses/{sha}."""
        body: dict[str, Any] = {
            "state": state,
            "context": context,
            # GitHub rejects descriptions longer than 140 characters
            "description": description[:140],
        }
        if target_url:
            body["target_url"] = target_url
        return self._request("POST", f"/repos/{repository}/statuses/{sha}", json=body)

    # ------------------------------------------------------------------
    # Releases
    # ------------------------------------------------------------------

    def create_release(
        self,
        repository: str,
        *,
        tag: str,
        name: str,
        draft: bool = False,
    ) -> dict[str, Any]:
        """POST /repos/{repo}/releases."""
        body = {"tag_name": tag, "name": name, "draft": draft}
        return self._request("POST", f"/repos/{repository}/releases", json=body)

    def upload_release_asset(
        self,
        repository: str,
        release_id: int,
        *,
        name: str,
        content_type: str,
        data: bytes,
        upload_url: str | None = None,
    ) -> dict[str, Any]:
        """POST {upload_host}/repos/{repo}/releases/{id}/assets?name=...

        *upload_url* is the release's own ``upload_url`` as returned by the
        API; its ``{?name,label}`` URI template suffix is dropped.  Without
        it the URL is built from the configured upload host.
        """
        if upload_url:
            url = upload_url.split("{", 1)[0]
        else:
            url = f"{self._upload_url}/repos/{repository}/releases/{release_id}/assets"
        return self._request(
            "POST",
            url,
            params={"name": name},
            content=data,
            headers={"Content-Type": content_type},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"{method} {url} failed: {exc}") from exc

        if resp.is_error:
            raise GitHubAPIError(
                f"{method} {url} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        if not resp.content:
            return {}
        return resp.json()


def get_client(config: CIConfig) -> GitHubClient | None:
    """Return a credentialed client, or None when no token is configured."""
    if not config.github_token:
        return None
    return GitHubClient(
        config.github_token,
        api_url=config.github_api_url,
        upload_url=config.github_upload_url,
        timeout=config.http_timeout_seconds,
    )
