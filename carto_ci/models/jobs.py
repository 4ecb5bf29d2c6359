"""Job models — spawned units of work, build results and completion outcomes."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from carto_ci.models.matrix import JobSpec
from carto_ci.models.release import Release
from carto_ci.models.status import CommitState


class Job(BaseModel):
    """One matrix leg for one triggering event.

    Owned exclusively by the task that runs it.  ``release`` is the shared
    Release instance for tag events; it is never copied.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(default_factory=lambda: f"job-{uuid.uuid4().hex[:12]}")
    spec: JobSpec
    commit: str | None = None
    release: Release | None = None
    # Explicit ref for local builds that carry neither commit nor release
    ref: str | None = None

    @property
    def source_ref(self) -> str:
        """What to build: the commit when known, else the release tag."""
        if self.commit:
            return self.commit
        if self.release is not None:
            return self.release.tag
        return self.ref or "HEAD"


class BuildResult(BaseModel):
    """What the build executor reports for a successful build."""

    model_config = ConfigDict(frozen=True)

    artifact_path: Path
    size_bytes: int
    duration_ms: int


class JobOutcome(BaseModel):
    """Completion signal for one job, fanned out to outcome sinks.

    ``state`` is SUCCESS only when the build succeeded and, for release
    jobs, the artifact upload succeeded too.  ``status_error`` records a
    commit-status update that could not be delivered.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    ref: str
    context: str
    artifact_name: str
    state: CommitState
    commit: str | None = None
    release_tag: str | None = None
    error_kind: str | None = None
    error_message: str = ""
    size_bytes: int = 0
    duration_ms: int = 0
    uploaded: bool = False
    status_error: str | None = None
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def succeeded(self) -> bool:
        return self.state == CommitState.SUCCESS
