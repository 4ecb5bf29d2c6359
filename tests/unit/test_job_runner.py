"""Unit tests for the per-job lifecycle."""

from __future__ import annotations

from carto_ci.core.job_runner import JobRunner, describe_build
from carto_ci.core.release_publisher import ReleasePublisher
from carto_ci.core.status_reporter import StatusReporter
from carto_ci.models.jobs import BuildResult, Job
from carto_ci.models.matrix import JobSpec
from carto_ci.models.status import CommitState

REPO = "owner/carto"


def _runner(executor, github, dispatcher=None, *, with_client: bool = True) -> JobRunner:
    return JobRunner(
        executor,
        REPO,
        reporter=StatusReporter(github) if with_client else None,
        publisher=ReleasePublisher(github) if with_client else None,
        dispatcher=dispatcher,
    )


class TestStatusLifecycle:
    def test_success_path(self, executor, github, dispatcher, sink):
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github, dispatcher).run(Job(spec=spec, commit="abc123"))

        assert outcome.succeeded
        assert github.states_for("carto-linux-amd64") == ["pending", "success"]
        description = github.statuses[-1]["description"]
        assert description.startswith("built ")
        assert sink.outcomes == [outcome]

    def test_failure_path_closes_status(self, executor, github):
        executor.failing = {"linux/arm64"}
        spec = JobSpec.from_target("linux/arm64")
        outcome = _runner(executor, github).run(Job(spec=spec, commit="abc123"))

        assert not outcome.succeeded
        assert outcome.error_kind == "build_failure"
        assert github.states_for("carto-linux-arm64") == ["pending", "failure"]
        assert github.statuses[-1]["description"] == "build failed (exit 2)"

    def test_no_commit_means_no_status(self, executor, github):
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec))

        assert outcome.succeeded
        assert github.statuses == []

    def test_no_reporter_still_builds(self, executor, github):
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github, with_client=False).run(Job(spec=spec, commit="abc"))

        assert outcome.succeeded
        assert executor.calls == [("linux/amd64", "abc")]

    def test_unreachable_status_host_does_not_fail_build(self, executor, github):
        github.fail_status_states = {"pending"}
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec, commit="abc123"))

        assert outcome.succeeded
        assert outcome.status_error is not None
        # No pending was recorded, so no terminal state may follow
        assert github.states_for("carto-linux-amd64") == []

    def test_failed_terminal_update_is_signalled(self, executor, github):
        github.fail_status_states = {"success"}
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec, commit="abc123"))

        assert outcome.succeeded
        assert "success" in outcome.status_error

    def test_executor_crash_is_contained(self, github):
        class CrashingExecutor:
            def execute(self, spec, source_ref):
                raise KeyError("boom")

        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(CrashingExecutor(), github).run(Job(spec=spec, commit="abc123"))

        assert outcome.state == CommitState.FAILURE
        assert github.states_for("carto-linux-amd64") == ["pending", "failure"]


class TestArtifactUpload:
    def _release(self, github):
        return ReleasePublisher(github).create_draft_release(REPO, "v1.0.0")

    def test_upload_after_successful_build(self, executor, github):
        release = self._release(github)
        spec = JobSpec.from_target("windows/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec, release=release))

        assert outcome.succeeded
        assert outcome.uploaded
        assert [u["name"] for u in github.uploads] == ["carto-windows-amd64.exe"]
        assert github.uploads[0]["data"] == b"binary for windows/amd64"
        assert executor.calls == [("windows/amd64", "v1.0.0")]

    def test_no_upload_after_failed_build(self, executor, github):
        executor.failing = {"linux/amd64"}
        release = self._release(github)
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec, release=release))

        assert not outcome.succeeded
        assert not outcome.uploaded
        assert github.uploads == []

    def test_upload_failure_fails_the_job(self, executor, github):
        github.fail_upload_names = {"carto-linux-amd64"}
        release = self._release(github)
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github).run(Job(spec=spec, release=release))

        assert outcome.state == CommitState.FAILURE
        assert outcome.error_kind == "publish_failure"
        assert outcome.size_bytes > 0

    def test_upload_without_publisher_fails_the_job(self, executor, github):
        release = self._release(github)
        spec = JobSpec.from_target("linux/amd64")
        outcome = _runner(executor, github, with_client=False).run(Job(spec=spec, release=release))

        assert outcome.error_kind == "collaborator_unavailable"


class TestDescribeBuild:
    def test_mebibytes(self, tmp_path):
        result = BuildResult(artifact_path=tmp_path / "x", size_bytes=7 * 1024 * 1024, duration_ms=41200)
        assert describe_build(result) == "built 7.0 MiB in 41.2s"

    def test_bytes(self, tmp_path):
        result = BuildResult(artifact_path=tmp_path / "x", size_bytes=512, duration_ms=100)
        assert describe_build(result) == "built 512 B in 0.1s"
