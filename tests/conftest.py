"""Shared test fixtures and fakes for carto-ci."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

import pytest

from carto_ci.config import CIConfig
from carto_ci.core.errors import BuildError
from carto_ci.github.client import GitHubAPIError
from carto_ci.models.jobs import BuildResult, Job, JobOutcome
from carto_ci.models.matrix import DEFAULT_MATRIX, JobSpec
from carto_ci.routing.dispatcher import CompletionDispatcher


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeGitHub:
    """In-memory stand-in for ``GitHubClient``.

    Records every call; failures are injected per status state, per
    artifact name, or for release creation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.statuses: list[dict[str, Any]] = []
        self.releases: list[dict[str, Any]] = []
        self.uploads: list[dict[str, Any]] = []
        self.fail_status_states: set[str] = set()
        self.fail_upload_names: set[str] = set()
        self.fail_release = False
        self._next_release_id = 100

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
        if state in self.fail_status_states:
            raise GitHubAPIError(f"status {state} rejected", status_code=500)
        with self._lock:
            self.statuses.append(
                {
                    "repository": repository,
                    "sha": sha,
                    "state": state,
                    "context": context,
                    "description": description,
                }
            )
        return {"state": state}

    def create_release(
        self, repository: str, *, tag: str, name: str, draft: bool = False
    ) -> dict[str, Any]:
        if self.fail_release:
            raise GitHubAPIError("release rejected", status_code=422)
        with self._lock:
            release_id = self._next_release_id
            self._next_release_id += 1
            record = {
                "id": release_id,
                "repository": repository,
                "tag_name": tag,
                "name": name,
                "draft": draft,
                "upload_url": f"https://uploads.example/repos/{repository}/releases/{release_id}/assets{{?name,label}}",
                "html_url": f"https://example/{repository}/releases/{tag}",
            }
            self.releases.append(record)
        return dict(record)

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
        if name in self.fail_upload_names:
            raise GitHubAPIError(f"upload of {name} rejected", status_code=500)
        with self._lock:
            self.uploads.append(
                {
                    "repository": repository,
                    "release_id": release_id,
                    "name": name,
                    "content_type": content_type,
                    "data": data,
                    "upload_url": upload_url,
                }
            )
        return {"name": name}

    def states_for(self, context: str) -> list[str]:
        with self._lock:
            return [s["state"] for s in self.statuses if s["context"] == context]


class FakeExecutor:
    """Build executor that writes a small artifact instead of compiling.

    Targets in *failing* raise ``BuildError``; *delays* (seconds per
    target) shuffle completion order.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        failing: set[str] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.output_dir = output_dir
        self.failing = failing or set()
        self.delays = delays or {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def execute(self, spec: JobSpec, source_ref: str) -> BuildResult:
        with self._lock:
            self.calls.append((spec.target, source_ref))
        time.sleep(self.delays.get(spec.target, 0))
        if spec.target in self.failing:
            raise BuildError(f"Build of {spec.target} exited with status 2", exit_code=2)
        workspace = self.output_dir / source_ref
        workspace.mkdir(parents=True, exist_ok=True)
        path = workspace / spec.artifact_name
        path.write_bytes(f"binary for {spec.target}".encode())
        return BuildResult(artifact_path=path, size_bytes=path.stat().st_size, duration_ms=1500)


class RecordingSpawner:
    """Spawner that only records what it was given."""

    def __init__(self) -> None:
        self.spawned: list[tuple[Job, str]] = []

    def spawn(self, job: Job, *, ref: str) -> None:
        self.spawned.append((job, ref))

    @property
    def jobs(self) -> list[Job]:
        return [job for job, _ in self.spawned]


class RecordingSink:
    """Outcome sink that keeps every outcome."""

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self._lock = threading.Lock()
        self.outcomes: list[JobOutcome] = []

    @property
    def sink_name(self) -> str:
        return self._name

    def accept(self, outcome: JobOutcome) -> None:
        with self._lock:
            self.outcomes.append(outcome)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ci_config(tmp_path: Path) -> CIConfig:
    """A development config isolated from the environment."""
    return CIConfig(
        environment="development",
        debug=False,
        repository="owner/carto",
        github_token="",
        webhook_secret="",
        source_dir=tmp_path / "src",
        output_dir=tmp_path / "out",
        outcome_log_path=None,
        max_workers=3,
    )


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def executor(tmp_path: Path) -> FakeExecutor:
    return FakeExecutor(tmp_path / "out")


@pytest.fixture
def make_executor(tmp_path: Path):
    """Factory for executors with failing targets or per-target delays."""

    def _make(**kwargs: Any) -> FakeExecutor:
        return FakeExecutor(tmp_path / "out", **kwargs)

    return _make


@pytest.fixture
def spawner() -> RecordingSpawner:
    return RecordingSpawner()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(sink: RecordingSink) -> CompletionDispatcher:
    d = CompletionDispatcher()
    d.register_sink(sink)
    return d


@pytest.fixture
def matrix_specs() -> list[JobSpec]:
    return list(DEFAULT_MATRIX.entries)
