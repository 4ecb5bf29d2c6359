"""Build matrix models — the set of (platform, architecture) legs per build cycle."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TOOLCHAIN_VERSION = "1.22"
ARTIFACT_PREFIX = "carto"
WINDOWS = "windows"

# Any GOOS/GOARCH spelling is accepted; the toolchain decides what it supports
GoOS = Annotated[str, Field(pattern=r"^[a-z0-9]+$")]
GoArch = Annotated[str, Field(pattern=r"^[a-z0-9]+$")]


class JobSpec(BaseModel):
    """One leg of the build matrix.

    Identity is the (platform, architecture) pair; the toolchain version
    is a per-leg parameter and does not take part in naming.  Platform and
    architecture are spelled the way ``GOOS``/``GOARCH`` spell them.
    """

    model_config = ConfigDict(frozen=True)

    platform: GoOS
    architecture: GoArch
    toolchain_version: str = DEFAULT_TOOLCHAIN_VERSION

    @property
    def key(self) -> tuple[str, str]:
        return (self.platform, self.architecture)

    @property
    def target(self) -> str:
        """``os/arch`` form, as used in configuration."""
        return f"{self.platform}/{self.architecture}"

    @property
    def context_label(self) -> str:
        """Commit-status context, unique per leg within one commit."""
        return f"{ARTIFACT_PREFIX}-{self.platform}-{self.architecture}"

    @property
    def artifact_name(self) -> str:
        """Build output filename, also the uploaded release asset name."""
        name = f"{ARTIFACT_PREFIX}-{self.platform}-{self.architecture}"
        if self.platform == WINDOWS:
            name += ".exe"
        return name

    def build_env(self) -> dict[str, str]:
        """Cross-compilation environment for this leg."""
        return {
            "GOOS": self.platform,
            "GOARCH": self.architecture,
        }

    @classmethod
    def from_target(
        cls, target: str, toolchain_version: str = DEFAULT_TOOLCHAIN_VERSION
    ) -> JobSpec:
        """Parse an ``os/arch`` string such as ``linux/amd64``."""
        platform, sep, architecture = target.strip().partition("/")
        if not sep or not platform or not architecture:
            raise ValueError(f"Invalid build target {target!r}, expected 'os/arch'")
        return cls(
            platform=platform,
            architecture=architecture,
            toolchain_version=toolchain_version,
        )


class BuildMatrix(BaseModel):
    """Ordered, duplicate-free set of JobSpecs for one build cycle.

    Rejects duplicate (platform, architecture) pairs so that context labels
    and artifact names stay pairwise distinct across the matrix.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[JobSpec, ...]

    @model_validator(mode="after")
    def _check_unique(self) -> BuildMatrix:
        seen: set[tuple[str, str]] = set()
        for spec in self.entries:
            if spec.key in seen:
                raise ValueError(f"Duplicate matrix entry: {spec.target}")
            seen.add(spec.key)
        return self

    @classmethod
    def from_targets(
        cls,
        targets: list[str],
        toolchain_version: str = DEFAULT_TOOLCHAIN_VERSION,
    ) -> BuildMatrix:
        return cls(
            entries=tuple(
                JobSpec.from_target(t, toolchain_version=toolchain_version)
                for t in targets
            )
        )

    def __len__(self) -> int:
        return len(self.entries)


# Reference configuration: two linux legs, one windows leg.
DEFAULT_MATRIX = BuildMatrix(
    entries=(
        JobSpec(platform="linux", architecture="amd64"),
        JobSpec(platform="linux", architecture="arm64"),
        JobSpec(platform=WINDOWS, architecture="amd64"),
    )
)


def expand_matrix(matrix: BuildMatrix | None = None) -> list[JobSpec]:
    """Return the ordered JobSpecs of *matrix* (the default matrix if None)."""
    return list((matrix or DEFAULT_MATRIX).entries)
