"""Job runner — drives one matrix leg from pending status to completion signal.

Lifecycle of a job:
1. Open a ``pending`` commit status (only when the commit is known)
2. Invoke the build executor
3. Close the status as ``success`` (size/duration) or ``failure``
4. If a release is attached and the build succeeded, upload the artifact
5. Dispatch a ``JobOutcome`` to the completion sinks

Every failure is contained to the job: ``run`` never raises for build,
status or publish errors, and a status that was opened is always closed.
"""

from __future__ import annotations

import logging

from carto_ci.core.errors import (
    BuildError,
    CartoCIError,
    CollaboratorUnavailableError,
    PublishError,
    StatusReportError,
)
from carto_ci.core.release_publisher import ReleasePublisher
from carto_ci.core.status_reporter import StatusHandle, StatusReporter
from carto_ci.fleet.executors import BuildExecutor
from carto_ci.models.jobs import BuildResult, Job, JobOutcome
from carto_ci.models.release import Artifact
from carto_ci.models.status import CommitState
from carto_ci.routing.dispatcher import CompletionDispatcher, OutcomeDispatchError

logger = logging.getLogger(__name__)


def describe_build(result: BuildResult) -> str:
    """Human-readable status description, e.g. ``built 7.4 MiB in 41.2s``."""
    size = result.size_bytes
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024 or unit == "GiB":
            break
        size /= 1024
    size_str = f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
    return f"built {size_str} in {result.duration_ms / 1000:.1f}s"


def describe_failure(error: CartoCIError) -> str:
    if isinstance(error, BuildError) and error.exit_code is not None:
        return f"build failed (exit {error.exit_code})"
    return f"build failed: {error}"


class JobRunner:
    """Executes jobs end to end.

    Parameters
    ----------
    executor:
        Build backend.
    repository:
        ``owner/name`` of the repository statuses are reported against.
    reporter:
        Commit-status reporter; None disables status reporting.
    publisher:
        Release publisher; None makes release uploads fail with
        ``CollaboratorUnavailableError``.
    dispatcher:
        Completion dispatcher; None means outcomes are only returned.
    """

    def __init__(
        self,
        executor: BuildExecutor,
        repository: str,
        *,
        reporter: StatusReporter | None = None,
        publisher: ReleasePublisher | None = None,
        dispatcher: CompletionDispatcher | None = None,
    ) -> None:
        self.executor = executor
        self.repository = repository
        self.reporter = reporter
        self.publisher = publisher
        self.dispatcher = dispatcher

    def run(self, job: Job, *, ref: str = "") -> JobOutcome:
        """Run *job* to completion and signal its outcome."""
        spec = job.spec
        ref = ref or job.source_ref
        status_error: str | None = None

        # 1. Pending status
        handle: StatusHandle | None = None
        if job.commit and self.reporter is not None:
            try:
                handle = self.reporter.open(self.repository, job.commit, spec.context_label)
            except StatusReportError as exc:
                logger.warning("[%s] %s: %s", ref, spec.context_label, exc)
                status_error = str(exc)

        # 2. Build
        result: BuildResult | None = None
        error: CartoCIError | None = None
        try:
            result = self.executor.execute(spec, job.source_ref)
        except BuildError as exc:
            error = exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("[%s] %s: executor crashed", ref, spec.context_label)
            error = BuildError(f"executor crashed: {exc}")

        # 3. Terminal status, on both outcomes
        if handle is not None:
            if result is not None:
                state, description = CommitState.SUCCESS, describe_build(result)
            else:
                state, description = CommitState.FAILURE, describe_failure(error)
            try:
                self.reporter.close(handle, state, description)
            except StatusReportError as exc:
                logger.warning("[%s] %s: %s", ref, spec.context_label, exc)
                status_error = str(exc)

        # 4. Artifact upload, only after a successful build
        uploaded = False
        if job.release is not None and result is not None:
            try:
                self._upload(job, result)
                uploaded = True
            except (PublishError, CollaboratorUnavailableError) as exc:
                error = exc

        # 5. Completion signal
        outcome = JobOutcome(
            job_id=job.job_id,
            ref=ref,
            context=spec.context_label,
            artifact_name=spec.artifact_name,
            state=CommitState.FAILURE if error is not None else CommitState.SUCCESS,
            commit=job.commit,
            release_tag=job.release.tag if job.release is not None else None,
            error_kind=error.kind if error is not None else None,
            error_message=str(error) if error is not None else "",
            size_bytes=result.size_bytes if result is not None else 0,
            duration_ms=result.duration_ms if result is not None else 0,
            uploaded=uploaded,
            status_error=status_error,
        )
        self._signal(outcome)
        return outcome

    def _upload(self, job: Job, result: BuildResult) -> None:
        if self.publisher is None:
            raise CollaboratorUnavailableError(
                f"No release client; cannot upload {job.spec.artifact_name}"
            )
        try:
            content = result.artifact_path.read_bytes()
        except OSError as exc:
            raise PublishError(
                f"Cannot read build output {result.artifact_path}: {exc}"
            ) from exc

        artifact = Artifact(name=job.spec.artifact_name, content=content)
        self.publisher.upload_artifact(job.release, artifact)

    def _signal(self, outcome: JobOutcome) -> None:
        if self.dispatcher is None:
            return
        try:
            self.dispatcher.dispatch(outcome)
        except OutcomeDispatchError as exc:
            logger.error("Outcome for %s was not delivered: %s", outcome.job_id, exc)
