"""Logging sink — one log line per finished job."""

from __future__ import annotations

import logging

from carto_ci.models.jobs import JobOutcome

logger = logging.getLogger(__name__)


class LoggingSink:
    """Writes job outcomes to the ``carto_ci`` log.

    Failed jobs are logged at ERROR, undelivered commit statuses at WARNING,
    everything else at INFO.
    """

    @property
    def sink_name(self) -> str:
        return "logging"

    def accept(self, outcome: JobOutcome) -> None:
        if outcome.succeeded:
            logger.info(
                "[%s] %s succeeded in %dms (%d bytes, uploaded=%s)",
                outcome.ref,
                outcome.context,
                outcome.duration_ms,
                outcome.size_bytes,
                outcome.uploaded,
            )
        else:
            logger.error(
                "[%s] %s failed (%s): %s",
                outcome.ref,
                outcome.context,
                outcome.error_kind,
                outcome.error_message,
            )

        if outcome.status_error:
            logger.warning(
                "[%s] %s: commit status not delivered: %s",
                outcome.ref,
                outcome.context,
                outcome.status_error,
            )
