"""Outcome sink protocol.

All sinks expose a ``sink_name`` property and an ``accept(outcome)``
method.  The dispatcher calls ``accept`` on every registered sink for
every finished job.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from carto_ci.models.jobs import JobOutcome


@runtime_checkable
class OutcomeSink(Protocol):
    """Protocol that every outcome sink must implement."""

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def accept(self, outcome: JobOutcome) -> None:
        """Record or forward *outcome*.

        May be called concurrently from several job threads.
        """
        ...
