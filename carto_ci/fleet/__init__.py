"""Job execution: build executor backends and the worker-pool fleet."""

from carto_ci.fleet.executors import BuildExecutor, DockerBuildExecutor
from carto_ci.fleet.pool import BuildFleet, FleetConfig, JobSpawner

__all__ = [
    "BuildExecutor",
    "DockerBuildExecutor",
    "BuildFleet",
    "FleetConfig",
    "JobSpawner",
]
