"""Commit-status reporter (pending -> success | failure).

Each job that knows its commit opens exactly one status handle and closes
it exactly once.  The transition table in ``carto_ci.models.status`` is
enforced here, so a handle can never go ``pending -> pending`` or receive
two terminal states.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from carto_ci.core.errors import InvalidStatusTransitionError, StatusReportError
from carto_ci.github.client import GitHubAPIError
from carto_ci.models.status import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    CommitState,
    CommitStatus,
)

logger = logging.getLogger(__name__)


class StatusClient(Protocol):
    """The slice of the source-control client the reporter needs."""

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
        ...


class StatusHandle:
    """Tracks one commit status through its lifecycle.

    Owned by a single job; not shared across threads.
    """

    def __init__(self, repository: str, commit: str, context: str) -> None:
        self.repository = repository
        self.commit = commit
        self.context = context
        self.state: CommitState | None = None
        self.history: list[CommitStatus] = []

    @property
    def is_closed(self) -> bool:
        return self.state in TERMINAL_STATES

    def __repr__(self) -> str:
        state = self.state.value if self.state else "none"
        return f"StatusHandle({self.repository}@{self.commit[:7]} {self.context} {state})"


class StatusReporter:
    """Maps job lifecycles onto commit-status records.

    Parameters
    ----------
    client:
        Anything with a GitHub-compatible ``create_status`` method.
    """

    def __init__(self, client: StatusClient) -> None:
        self._client = client

    def open(self, repository: str, commit: str, context: str) -> StatusHandle:
        """Create the ``pending`` status for *context* on *commit*.

        Raises
        ------
        StatusReportError
            If the host could not be reached.
        """
        handle = StatusHandle(repository, commit, context)
        self._post(handle, CommitState.PENDING, "build queued")
        return handle

    def close(
        self, handle: StatusHandle, state: CommitState, description: str = ""
    ) -> None:
        """Move *handle* to a terminal *state*.

        Raises
        ------
        InvalidStatusTransitionError
            If *state* is not terminal or the handle is already closed.
        StatusReportError
            If the host could not be reached.
        """
        if state not in TERMINAL_STATES:
            raise InvalidStatusTransitionError(
                f"Cannot close {handle.context} with non-terminal state {state.value}"
            )
        self._post(handle, state, description)

    def _post(self, handle: StatusHandle, state: CommitState, description: str) -> None:
        allowed = VALID_TRANSITIONS.get(handle.state, set())
        if state not in allowed:
            current = handle.state.value if handle.state else "none"
            raise InvalidStatusTransitionError(
                f"Cannot transition {handle.context} from {current} to {state.value}. "
                f"Allowed: {[s.value for s in allowed]}"
            )

        status = CommitStatus(
            repository=handle.repository,
            commit=handle.commit,
            context=handle.context,
            state=state,
            description=description,
        )
        try:
            self._client.create_status(
                status.repository,
                status.commit,
                state=status.state.value,
                context=status.context,
                description=status.description,
            )
        except GitHubAPIError as exc:
            raise StatusReportError(
                f"Could not set {handle.context} to {state.value} on "
                f"{handle.repository}@{handle.commit}: {exc}"
            ) from exc

        handle.state = state
        handle.history.append(status)
        logger.info(
            "Status %s on %s@%s -> %s",
            handle.context,
            handle.repository,
            handle.commit[:7],
            state.value,
        )
