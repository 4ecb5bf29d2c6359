"""Release publisher — draft releases and per-job artifact uploads.

``create_draft_release`` is not idempotent: each call creates a new
release.  The orchestrator calls it once per tag event and shares the
returned ``Release`` with every job of that event.  Uploads from
different jobs are independent writes keyed by artifact name; no locking
is needed because artifact names are unique across a matrix.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from carto_ci.core.errors import PublishError
from carto_ci.github.client import GitHubAPIError
from carto_ci.models.release import Artifact, Release

logger = logging.getLogger(__name__)


class ReleaseClient(Protocol):
    """The slice of the source-control client the publisher needs."""

    def create_release(
        self, repository: str, *, tag: str, name: str, draft: bool = False
    ) -> dict[str, Any]:
        ...

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
        ...


class ReleasePublisher:
    """Creates releases and attaches build artifacts to them."""

    def __init__(self, client: ReleaseClient) -> None:
        self._client = client

    def create_release(
        self, repository: str, tag: str, name: str | None = None, *, draft: bool = False
    ) -> Release:
        """Create a release for *tag*.

        Raises
        ------
        PublishError
            If the host rejected the request or could not be reached.
        """
        name = name or tag
        try:
            data = self._client.create_release(
                repository, tag=tag, name=name, draft=draft
            )
        except GitHubAPIError as exc:
            raise PublishError(
                f"Could not create release {tag!r} on {repository}: {exc}"
            ) from exc

        release = Release(
            repository=repository,
            tag=tag,
            name=name,
            draft=draft,
            release_id=data.get("id"),
            upload_url=data.get("upload_url", ""),
            html_url=data.get("html_url", ""),
        )
        logger.info(
            "Created %srelease %s on %s (id=%s)",
            "draft " if draft else "",
            tag,
            repository,
            release.release_id,
        )
        return release

    def create_draft_release(self, repository: str, tag: str) -> Release:
        """Create a draft release named after *tag*."""
        return self.create_release(repository, tag, tag, draft=True)

    def upload_artifact(self, release: Release, artifact: Artifact) -> None:
        """Attach *artifact* to *release*.

        Raises
        ------
        PublishError
            If the release handle is unusable or the upload failed.
        """
        if release.release_id is None:
            raise PublishError(
                f"Release {release.tag!r} has no id; cannot upload {artifact.name}"
            )
        try:
            self._client.upload_release_asset(
                release.repository,
                release.release_id,
                name=artifact.name,
                content_type=artifact.content_type,
                data=artifact.content,
                upload_url=release.upload_url or None,
            )
        except GitHubAPIError as exc:
            raise PublishError(
                f"Could not upload {artifact.name} to release {release.tag!r}: {exc}"
            ) from exc

        logger.info(
            "Uploaded %s (%d bytes) to release %s",
            artifact.name,
            artifact.size_bytes,
            release.tag,
        )
