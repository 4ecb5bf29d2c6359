"""carto-ci: webhook-driven build orchestrator for carto.

Receives GitHub push and create events, expands them into a matrix of
cross-compilation jobs, runs each job on a worker pool, reports a commit
status per job, and uploads artifacts to a draft release for version tags.
"""

__version__ = "0.1.0"
__description__ = "Webhook-driven build orchestrator for carto"

from carto_ci.core.orchestrator import DispatchSummary, Orchestrator

__all__ = ["Orchestrator", "DispatchSummary", "__version__"]
