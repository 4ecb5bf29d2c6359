"""Release and artifact models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class Release(BaseModel):
    """A release record on the source-control host.

    Created once per qualifying tag event and shared by reference across
    every job spawned for that event; jobs only append assets to it.
    """

    model_config = ConfigDict(frozen=True)

    repository: str
    tag: str
    name: str
    draft: bool = True
    release_id: int | None = None
    upload_url: str = ""
    html_url: str = ""


class Artifact(BaseModel):
    """One build output destined for a release."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.content)
