"""Pluggable build executor backends.

Defines the ``BuildExecutor`` Protocol that job runners call, along with
the default Docker-backed implementation.  The toolchain itself is opaque:
an executor either returns a ``BuildResult`` or raises ``BuildError``.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import time
import uuid
from pathlib import Path
from typing import Protocol, runtime_checkable

from carto_ci.core.errors import BuildError
from carto_ci.models.jobs import BuildResult
from carto_ci.models.matrix import JobSpec

logger = logging.getLogger(__name__)

_CONTAINER_SRC = "/src"
_CONTAINER_OUT = "/out"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class BuildExecutor(Protocol):
    """Protocol for build backends.

    Any object with an ``execute(spec, source_ref) -> BuildResult`` method
    satisfies this protocol.
    """

    def execute(self, spec: JobSpec, source_ref: str) -> BuildResult:
        """Build one matrix leg.

        Parameters
        ----------
        spec:
            The leg to build; its platform/architecture drive the
            cross-compilation environment.
        source_ref:
            The commit or tag to build.

        Raises
        ------
        BuildError
            If the toolchain exits non-zero or the environment cannot be
            provisioned.  Callers treat this as terminal; there is no retry.
        """
        ...


# ---------------------------------------------------------------------------
# Docker implementation
# ---------------------------------------------------------------------------


class DockerBuildExecutor:
    """Runs ``go build`` inside a ``golang:<version>`` container.

    Every build gets its own workspace under *output_dir*, keyed by ref and
    status context plus a random suffix.  The requested ref is exported
    from the git repository at *source_dir* into ``<workspace>/src`` with
    ``git archive`` and mounted read-only; the artifact is written to
    ``<workspace>/out``.  The exported tree is removed after the build,
    the output is kept for upload.

    Parameters
    ----------
    source_dir:
        Host path of the git repository to export refs from.
    output_dir:
        Host directory under which per-build workspaces are created.
    build_target:
        Package or file passed to ``go build``.
    docker_binary:
        Name or path of the docker CLI.
    git_binary:
        Name or path of the git CLI.
    timeout_seconds:
        Hard limit for one container run, and separately for the export.
    """

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        *,
        build_target: str = "cmd/carto/main.go",
        docker_binary: str = "docker",
        git_binary: str = "git",
        timeout_seconds: int = 1800,
    ) -> None:
        self.source_dir = Path(source_dir)
        self.output_dir = Path(output_dir)
        self.build_target = build_target
        self.docker_binary = docker_binary
        self.git_binary = git_binary
        self.timeout_seconds = timeout_seconds

    def workspace_for(self, spec: JobSpec, source_ref: str) -> Path:
        """Return a fresh, unused workspace path for one build."""
        return (
            self.output_dir
            / _safe_ref(source_ref)
            / f"{spec.context_label}-{uuid.uuid4().hex[:8]}"
        )

    def export_source(self, source_ref: str, dest: Path) -> None:
        """Extract the tree at *source_ref* into *dest*.

        Raises
        ------
        BuildError
            If git is missing, the ref does not resolve, or the archive
            cannot be unpacked.
        """
        archive = dest.parent / "source.tar"
        cmd = [
            self.git_binary,
            "-C",
            str(self.source_dir),
            "archive",
            "--format=tar",
            "-o",
            str(archive),
            source_ref,
        ]
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout_seconds
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildError(
                f"Export of {source_ref} timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise BuildError(f"Could not run git to export {source_ref}: {exc}") from exc

        if proc.returncode != 0:
            raise BuildError(
                f"Cannot check out {source_ref!r} from {self.source_dir}",
                exit_code=proc.returncode,
                output=(proc.stderr or "").strip()[-4000:],
            )

        try:
            shutil.unpack_archive(archive, dest, "tar", filter="data")
        except OSError as exc:
            raise BuildError(f"Could not unpack {source_ref}: {exc}") from exc
        finally:
            archive.unlink(missing_ok=True)

    def command_for(self, spec: JobSpec, source_ref: str, workspace: Path) -> list[str]:
        """Return the ``docker run`` argv building *spec* in *workspace*."""
        workspace = workspace.resolve()
        cmd = [
            self.docker_binary,
            "run",
            "--rm",
            "--label",
            f"carto-ci.ref={source_ref}",
            "--label",
            f"carto-ci.target={spec.target}",
            "-v",
            f"{workspace / 'src'}:{_CONTAINER_SRC}:ro",
            "-v",
            f"{workspace / 'out'}:{_CONTAINER_OUT}",
            "-w",
            _CONTAINER_SRC,
        ]
        for key, value in sorted(spec.build_env().items()):
            cmd += ["-e", f"{key}={value}"]
        cmd += [
            f"golang:{spec.toolchain_version}",
            "go",
            "build",
            "-o",
            f"{_CONTAINER_OUT}/{spec.artifact_name}",
            self.build_target,
        ]
        return cmd

    def execute(self, spec: JobSpec, source_ref: str) -> BuildResult:
        workspace = self.workspace_for(spec, source_ref)
        src_dir = workspace / "src"
        out_dir = workspace / "out"
        out_dir.mkdir(parents=True)
        artifact_path = out_dir / spec.artifact_name

        logger.info("Building %s at %s in %s", spec.target, source_ref, workspace)
        try:
            self.export_source(source_ref, src_dir)
            duration_ms = self._run(spec, self.command_for(spec, source_ref, workspace))
        finally:
            shutil.rmtree(src_dir, ignore_errors=True)

        if not artifact_path.is_file():
            raise BuildError(
                f"Build of {spec.target} succeeded but produced no {spec.artifact_name}"
            )

        return BuildResult(
            artifact_path=artifact_path,
            size_bytes=artifact_path.stat().st_size,
            duration_ms=duration_ms,
        )

    def _run(self, spec: JobSpec, cmd: list[str]) -> int:
        start = time.monotonic()
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildError(
                f"Build of {spec.target} timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise BuildError(
                f"Could not start build environment for {spec.target}: {exc}"
            ) from exc
        duration_ms = int((time.monotonic() - start) * 1000)

        if proc.returncode != 0:
            output = (proc.stderr or proc.stdout or "").strip()
            raise BuildError(
                f"Build of {spec.target} exited with status {proc.returncode}",
                exit_code=proc.returncode,
                output=output[-4000:],
            )
        return duration_ms


def _safe_ref(source_ref: str) -> str:
    """Flatten a ref into a single path component."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", source_ref).strip("._") or "ref"
