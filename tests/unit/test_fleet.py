"""Unit tests for the thread-pool build fleet."""

from __future__ import annotations

import threading

import pytest

from carto_ci.fleet.pool import BuildFleet, FleetConfig
from carto_ci.models.jobs import Job, JobOutcome
from carto_ci.models.matrix import JobSpec
from carto_ci.models.status import CommitState


class _BlockingRunner:
    """Runner whose jobs wait on an event before finishing."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.started: list[str] = []
        self._lock = threading.Lock()

    def run(self, job: Job, *, ref: str = "") -> JobOutcome:
        with self._lock:
            self.started.append(job.job_id)
        self.release.wait(timeout=5)
        return JobOutcome(
            job_id=job.job_id,
            ref=ref,
            context=job.spec.context_label,
            artifact_name=job.spec.artifact_name,
            state=CommitState.SUCCESS,
        )


def _job(target: str = "linux/amd64") -> Job:
    return Job(spec=JobSpec.from_target(target), commit="abc123")


class TestSpawn:
    def test_spawn_returns_before_job_finishes(self):
        runner = _BlockingRunner()
        fleet = BuildFleet(runner, FleetConfig(max_workers=2))
        try:
            fleet.spawn(_job(), ref="abc123")
            assert fleet.get_fleet_status()["spawned"] == 1
            assert fleet.wait_idle(timeout=0.05) is False
            runner.release.set()
            assert fleet.wait_idle(timeout=5) is True
        finally:
            runner.release.set()
            fleet.shutdown()

    def test_runs_jobs_concurrently(self):
        runner = _BlockingRunner()
        fleet = BuildFleet(runner, FleetConfig(max_workers=3))
        try:
            for target in ("linux/amd64", "linux/arm64", "windows/amd64"):
                fleet.spawn(_job(target), ref="abc123")
            # All three start even though none has finished
            for _ in range(100):
                if len(runner.started) == 3:
                    break
                threading.Event().wait(0.01)
            assert len(runner.started) == 3
        finally:
            runner.release.set()
            fleet.shutdown()

    def test_spawn_after_shutdown_raises(self):
        runner = _BlockingRunner()
        runner.release.set()
        fleet = BuildFleet(runner)
        fleet.shutdown()

        with pytest.raises(RuntimeError):
            fleet.spawn(_job(), ref="abc123")
        assert fleet.get_fleet_status()["closed"] is True

    def test_crashing_runner_does_not_break_fleet(self):
        class CrashingRunner:
            def run(self, job, *, ref=""):
                raise RuntimeError("boom")

        fleet = BuildFleet(CrashingRunner())
        try:
            fleet.spawn(_job(), ref="abc123")
            assert fleet.wait_idle(timeout=5)
            assert fleet.get_fleet_status()["in_flight"] == 0
        finally:
            fleet.shutdown()
