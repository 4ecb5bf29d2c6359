"""carto-ci data models — all Pydantic v2, all frozen (immutable)."""

from carto_ci.models.events import (
    CreateEvent,
    Event,
    IgnoredEvent,
    PushEvent,
    RefType,
    parse_event,
)
from carto_ci.models.jobs import BuildResult, Job, JobOutcome
from carto_ci.models.matrix import (
    DEFAULT_MATRIX,
    GoArch,
    GoOS,
    BuildMatrix,
    JobSpec,
    expand_matrix,
)
from carto_ci.models.release import Artifact, Release
from carto_ci.models.status import VALID_TRANSITIONS, CommitState, CommitStatus

__all__ = [
    # matrix
    "GoOS",
    "GoArch",
    "JobSpec",
    "BuildMatrix",
    "DEFAULT_MATRIX",
    "expand_matrix",
    # events
    "RefType",
    "PushEvent",
    "CreateEvent",
    "IgnoredEvent",
    "Event",
    "parse_event",
    # status
    "CommitState",
    "CommitStatus",
    "VALID_TRANSITIONS",
    # release
    "Release",
    "Artifact",
    # jobs
    "Job",
    "BuildResult",
    "JobOutcome",
]
