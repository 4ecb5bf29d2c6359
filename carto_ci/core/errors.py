"""Error taxonomy for carto-ci.

Every error raised by the orchestration core derives from ``CartoCIError``.
The ``kind`` attribute is the stable string recorded on job outcomes.
"""

from __future__ import annotations


class CartoCIError(RuntimeError):
    """Base class for all carto-ci errors."""

    kind = "error"


class CollaboratorUnavailableError(CartoCIError):
    """No credentialed source-control client is available.

    Fatal to any branch that requires one (release creation, artifact
    upload); optional branches skip their work instead.
    """

    kind = "collaborator_unavailable"


class BuildError(CartoCIError):
    """The toolchain invocation failed or its environment could not be provisioned."""

    kind = "build_failure"

    def __init__(self, message: str, *, exit_code: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class PublishError(CartoCIError):
    """Release creation or artifact upload failed."""

    kind = "publish_failure"


class StatusReportError(CartoCIError):
    """The commit-status host could not be reached or rejected the update."""

    kind = "status_report_failure"


class MalformedEventError(CartoCIError, ValueError):
    """An inbound event payload had an unexpected shape."""

    kind = "malformed_event"


class InvalidStatusTransitionError(CartoCIError):
    """A commit status was asked to make a transition its state machine forbids."""

    kind = "invalid_status_transition"
