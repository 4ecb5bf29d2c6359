"""CompletionDispatcher — routes job outcomes to ALL configured sinks.

Sink failures are logged but do not prevent delivery to remaining sinks.
Dispatch may happen from several job threads at once; sinks must be
thread-safe.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from carto_ci.models.jobs import JobOutcome

if TYPE_CHECKING:
    from carto_ci.routing.sinks import OutcomeSink

logger = logging.getLogger(__name__)


class OutcomeDispatchError(RuntimeError):
    """Raised when every sink failed to accept an outcome."""


class CompletionDispatcher:
    """Routes job outcomes to every registered sink.

    Usage
    -----
    >>> dispatcher = CompletionDispatcher()
    >>> dispatcher.register_sink(LoggingSink())
    >>> dispatcher.dispatch(outcome)
    """

    def __init__(self) -> None:
        self._sinks: list[OutcomeSink] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def register_sink(self, sink: OutcomeSink) -> None:
        """Register a sink.  Duplicate registration is ignored."""
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)
                logger.info("Registered outcome sink: %s", sink.sink_name)

    def unregister_sink(self, sink: OutcomeSink) -> None:
        """Remove a previously registered sink."""
        with self._lock:
            try:
                self._sinks.remove(sink)
                logger.info("Unregistered outcome sink: %s", sink.sink_name)
            except ValueError:
                pass

    @property
    def registered_sinks(self) -> list[OutcomeSink]:
        """Return a copy of the registered sink list."""
        with self._lock:
            return list(self._sinks)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, outcome: JobOutcome) -> list[str]:
        """Deliver *outcome* to every registered sink.

        Returns the names of the sinks that accepted it.

        Raises
        ------
        OutcomeDispatchError
            If *all* sinks fail.  Individual failures are tolerated.
        """
        sinks = self.registered_sinks
        if not sinks:
            logger.warning("No outcome sinks registered — outcome %s dropped", outcome.job_id)
            return []

        succeeded: list[str] = []
        errors: list[tuple[str, Exception]] = []

        for sink in sinks:
            try:
                sink.accept(outcome)
                succeeded.append(sink.sink_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Sink %s failed for outcome %s: %s",
                    sink.sink_name,
                    outcome.job_id,
                    exc,
                )
                errors.append((sink.sink_name, exc))

        if errors and not succeeded:
            raise OutcomeDispatchError(
                f"All {len(errors)} sinks failed for outcome {outcome.job_id}: "
                + "; ".join(f"{name}: {exc}" for name, exc in errors)
            )

        return succeeded
