"""Event orchestrator — the central coordinator for carto-ci.

The Orchestrator wires together the build matrix, the GitHub client, the
StatusReporter, the ReleasePublisher, the JobRunner and the BuildFleet.
It interprets each inbound event, expands the matrix and spawns one job
per leg, then returns without waiting for any job to finish.

Event handling:
- push with a head commit   -> one job per leg, commit attached
- push without a head commit -> nothing
- create, ref_type=branch    -> ignored
- create, ref_type=tag, tag matching the release prefix
                             -> one draft release, one job per leg sharing it
- anything else              -> ignored
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from carto_ci.config import CIConfig
from carto_ci.core.errors import CollaboratorUnavailableError, MalformedEventError
from carto_ci.core.job_runner import JobRunner
from carto_ci.core.production_guard import enforce_production_constraints
from carto_ci.core.release_publisher import ReleasePublisher
from carto_ci.core.status_reporter import StatusReporter
from carto_ci.fleet.executors import BuildExecutor, DockerBuildExecutor
from carto_ci.fleet.pool import BuildFleet, FleetConfig, JobSpawner
from carto_ci.github.client import GitHubClient, get_client
from carto_ci.models.events import CreateEvent, Event, IgnoredEvent, PushEvent, RefType, parse_event
from carto_ci.models.jobs import Job, JobOutcome
from carto_ci.models.matrix import BuildMatrix, expand_matrix
from carto_ci.models.release import Release
from carto_ci.routing.dispatcher import CompletionDispatcher
from carto_ci.routing.sinks.jsonl_file import JsonlFileSink
from carto_ci.routing.sinks.logging_sink import LoggingSink

logger = logging.getLogger(__name__)


class DispatchSummary(BaseModel):
    """What the orchestrator did with one event.

    Returned as soon as the spawns are issued; it says nothing about
    whether the jobs will succeed.
    """

    model_config = ConfigDict(frozen=True)

    action: Literal["build", "release", "ignored"]
    ref: str = ""
    job_ids: list[str] = []
    targets: list[str] = []
    release_tag: str | None = None
    reason: str = ""

    @property
    def job_count(self) -> int:
        return len(self.job_ids)


class Orchestrator:
    """Central event orchestrator.

    Parameters
    ----------
    config:
        Service configuration.  Uses defaults (and the environment) if not
        provided.
    matrix:
        Build matrix; defaults to the one built from ``config.matrix``.
    client:
        Credentialed GitHub client; defaults to ``get_client(config)``,
        which is None when no token is configured.
    executor:
        Build backend; defaults to ``DockerBuildExecutor``.
    spawner:
        Where jobs are spawned; defaults to a ``BuildFleet`` started on
        first use.
    dispatcher:
        Completion dispatcher; defaults to logging plus, when
        ``config.outcome_log_path`` is set, a JSONL file.
    """

    def __init__(
        self,
        config: CIConfig | None = None,
        *,
        matrix: BuildMatrix | None = None,
        client: GitHubClient | Any | None = None,
        executor: BuildExecutor | None = None,
        spawner: JobSpawner | None = None,
        dispatcher: CompletionDispatcher | None = None,
    ) -> None:
        self.config = config or CIConfig()

        # Fails hard if production constraints are violated
        enforce_production_constraints(self.config)

        self.matrix = matrix or BuildMatrix.from_targets(
            self.config.matrix, toolchain_version=self.config.toolchain_version
        )

        # Collaborators; status reporting and publishing need a client
        self.client = client if client is not None else get_client(self.config)
        self.reporter = StatusReporter(self.client) if self.client is not None else None
        self.publisher = ReleasePublisher(self.client) if self.client is not None else None
        if self.client is None:
            logger.warning(
                "No GitHub token configured — commit statuses disabled, tag releases will fail."
            )

        self.dispatcher = dispatcher or self._default_dispatcher()
        self.executor = executor or DockerBuildExecutor(
            self.config.source_dir,
            self.config.output_dir,
            build_target=self.config.build_target,
            docker_binary=self.config.docker_binary,
            git_binary=self.config.git_binary,
            timeout_seconds=self.config.build_timeout_seconds,
        )
        self.runner = JobRunner(
            self.executor,
            self.config.repository,
            reporter=self.reporter,
            publisher=self.publisher,
            dispatcher=self.dispatcher,
        )
        # The fleet is started on first spawn; local builds never need it
        self._spawner: JobSpawner | None = spawner
        self._spawner_lock = threading.Lock()

    @property
    def spawner(self) -> JobSpawner:
        """Where jobs are spawned; a ``BuildFleet`` unless one was injected."""
        with self._spawner_lock:
            if self._spawner is None:
                self._spawner = BuildFleet(
                    self.runner, FleetConfig(max_workers=self.config.max_workers)
                )
            return self._spawner

    @property
    def spawner_started(self) -> bool:
        return self._spawner is not None

    def _default_dispatcher(self) -> CompletionDispatcher:
        dispatcher = CompletionDispatcher()
        dispatcher.register_sink(LoggingSink())
        if self.config.outcome_log_path is not None:
            dispatcher.register_sink(JsonlFileSink(self.config.outcome_log_path))
        return dispatcher

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle_event(self, payload: Any) -> DispatchSummary:
        """Interpret a raw ``{push: ...} | {create: ...}`` payload and dispatch it.

        Malformed payloads are logged and ignored.

        Raises
        ------
        CollaboratorUnavailableError
            A release tag arrived but no GitHub client is configured.
        PublishError
            The draft release could not be created; no jobs were spawned.
        """
        try:
            event = parse_event(payload)
        except MalformedEventError as exc:
            logger.warning("Ignoring malformed event: %s", exc)
            return DispatchSummary(action="ignored", reason=str(exc))
        return self.dispatch(event)

    def dispatch(self, event: Event) -> DispatchSummary:
        """Dispatch an already-parsed event."""
        if isinstance(event, PushEvent):
            return self._on_push(event)
        if isinstance(event, CreateEvent):
            return self._on_create(event)
        if isinstance(event, IgnoredEvent):
            logger.info("Ignoring event %s: %s", event.event_name, event.reason)
            return DispatchSummary(action="ignored", reason=event.reason)
        logger.info("Ignoring unsupported event %r", event)
        return DispatchSummary(action="ignored", reason="unsupported event")

    def _on_push(self, event: PushEvent) -> DispatchSummary:
        if not event.head_commit_id:
            logger.info("Push to %s has no head commit — nothing to build", event.ref or "?")
            return DispatchSummary(
                action="ignored", ref=event.ref, reason="push without head commit"
            )

        commit = event.head_commit_id
        jobs = [Job(spec=spec, commit=commit) for spec in expand_matrix(self.matrix)]
        self._spawn_all(jobs, ref=commit)
        return DispatchSummary(
            action="build",
            ref=commit,
            job_ids=[j.job_id for j in jobs],
            targets=[j.spec.target for j in jobs],
        )

    def _on_create(self, event: CreateEvent) -> DispatchSummary:
        if event.ref_type == RefType.BRANCH:
            logger.info("Ignoring branch creation %s", event.ref)
            return DispatchSummary(action="ignored", ref=event.ref, reason="branch created")

        if not event.is_release_tag(self.config.release_prefix):
            logger.info(
                "Ignoring tag %s: does not start with %r",
                event.ref,
                self.config.release_prefix,
            )
            return DispatchSummary(
                action="ignored", ref=event.ref, reason="tag is not a release tag"
            )

        # Synchronous portion: a failure here aborts the whole dispatch
        if self.publisher is None:
            raise CollaboratorUnavailableError(
                f"No GitHub client configured; cannot create release {event.ref!r}"
            )
        release = self.publisher.create_draft_release(self.config.repository, event.ref)

        jobs = [Job(spec=spec, release=release) for spec in expand_matrix(self.matrix)]
        self._spawn_all(jobs, ref=event.ref)
        return DispatchSummary(
            action="release",
            ref=event.ref,
            job_ids=[j.job_id for j in jobs],
            targets=[j.spec.target for j in jobs],
            release_tag=release.tag,
        )

    def _spawn_all(self, jobs: list[Job], *, ref: str) -> None:
        for job in jobs:
            self.spawner.spawn(job, ref=ref)
        logger.info("Dispatched %d jobs for %s", len(jobs), ref)

    # ------------------------------------------------------------------
    # Operator entry points
    # ------------------------------------------------------------------

    def build_all(self, ref: str = "HEAD") -> list[JobOutcome]:
        """Build every matrix leg locally and wait for all of them.

        No statuses are reported and nothing is uploaded.  Outcomes are
        returned in matrix order.
        """
        specs = expand_matrix(self.matrix)
        jobs = [Job(spec=spec, ref=ref) for spec in specs]
        workers = max(1, min(self.config.max_workers, len(jobs)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="carto-build") as pool:
            return list(pool.map(lambda job: self.runner.run(job, ref=ref), jobs))

    def create_release(self, name: str, tag: str) -> Release:
        """Create a published (non-draft) release.

        Raises
        ------
        CollaboratorUnavailableError
            If no GitHub client is configured.
        """
        if self.publisher is None:
            raise CollaboratorUnavailableError("No GitHub access configured")
        return self.publisher.create_release(
            self.config.repository, tag, name, draft=False
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop the fleet and release the HTTP client."""
        shutdown = getattr(self._spawner, "shutdown", None)
        if callable(shutdown):
            shutdown(wait=wait)
        if isinstance(self.client, GitHubClient):
            self.client.close()
