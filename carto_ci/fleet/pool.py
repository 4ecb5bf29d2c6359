"""Build fleet — the worker pool matrix legs are spawned onto.

The orchestrator hands each ``Job`` to ``BuildFleet.spawn`` and moves on;
the fleet runs it on a thread pool and the job's completion is observed
only through its side effects (commit statuses, release assets, outcome
sinks).
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field

from carto_ci.models.jobs import Job, JobOutcome

if TYPE_CHECKING:
    from carto_ci.core.job_runner import JobRunner

logger = logging.getLogger(__name__)


class JobSpawner(Protocol):
    """Anything jobs can be spawned onto.

    ``ref`` is the triggering ref, used only as a correlation key.
    """

    def spawn(self, job: Job, *, ref: str) -> None:
        ...


class FleetConfig(BaseModel):
    """Immutable configuration for a build fleet.

    Parameters
    ----------
    fleet_name:
        Human-readable name, used in thread names and logs.
    max_workers:
        Maximum number of jobs running at once.
    fleet_id:
        Unique identifier for this fleet instance (auto-generated).
    """

    model_config = ConfigDict(frozen=True)

    fleet_name: str = "carto-ci"
    max_workers: int = 4
    fleet_id: str = Field(default_factory=lambda: uuid.uuid4().hex)


class BuildFleet:
    """Runs spawned jobs concurrently on a thread pool.

    Parameters
    ----------
    runner:
        Executes one job end to end and returns its outcome.
    config:
        Fleet configuration.  Uses defaults if not provided.
    """

    def __init__(self, runner: JobRunner, config: FleetConfig | None = None) -> None:
        self.config = config or FleetConfig()
        self._runner = runner
        self._pool = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=self.config.fleet_name,
        )
        self._lock = threading.Lock()
        self._in_flight: set[Future[JobOutcome]] = set()
        self._spawned = 0
        self._closed = False

        logger.info(
            "BuildFleet '%s' initialized (fleet_id=%s, max_workers=%d)",
            self.config.fleet_name,
            self.config.fleet_id,
            self.config.max_workers,
        )

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def spawn(self, job: Job, *, ref: str) -> None:
        """Schedule *job* and return immediately.

        Raises
        ------
        RuntimeError
            If the fleet has been shut down.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError(
                    f"Fleet '{self.config.fleet_name}' is shut down; cannot spawn {job.job_id}"
                )
            future = self._pool.submit(self._runner.run, job, ref=ref)
            self._in_flight.add(future)
            self._spawned += 1
        future.add_done_callback(self._on_done)

        logger.debug(
            "Spawned %s (%s, ref=%s) in fleet %s",
            job.job_id,
            job.spec.target,
            ref,
            self.config.fleet_id,
        )

    def _on_done(self, future: Future[JobOutcome]) -> None:
        with self._lock:
            self._in_flight.discard(future)
        exc = future.exception()
        if exc is not None:
            logger.error("Job task crashed: %r", exc, exc_info=exc)

    # ------------------------------------------------------------------
    # Status and shutdown
    # ------------------------------------------------------------------

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every spawned job has finished.

        Returns False if *timeout* elapsed first.
        """
        with self._lock:
            pending = set(self._in_flight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def get_fleet_status(self) -> dict[str, object]:
        """Return a summary of the fleet's current state."""
        with self._lock:
            return {
                "fleet_id": self.config.fleet_id,
                "fleet_name": self.config.fleet_name,
                "max_workers": self.config.max_workers,
                "in_flight": len(self._in_flight),
                "spawned": self._spawned,
                "closed": self._closed,
            }

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; optionally drain the ones in flight.

        With ``wait=False`` in-flight jobs are abandoned to process exit.
        """
        with self._lock:
            self._closed = True
            in_flight = len(self._in_flight)
        self._pool.shutdown(wait=wait)
        logger.info(
            "Fleet '%s' (%s) shut down — %d jobs spawned, %d in flight at shutdown.",
            self.config.fleet_name,
            self.config.fleet_id,
            self._spawned,
            in_flight,
        )
