"""Commit-status state machine models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class CommitState(str, Enum):
    """States a commit status may be in, as the source-control host spells them."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


# Valid status transitions.  ``None`` is "no status record yet".
# Terminal states (SUCCESS, FAILURE) have no outgoing transitions.
VALID_TRANSITIONS: dict[CommitState | None, set[CommitState]] = {
    None: {CommitState.PENDING},
    CommitState.PENDING: {CommitState.SUCCESS, CommitState.FAILURE},
    CommitState.SUCCESS: set(),  # terminal
    CommitState.FAILURE: set(),  # terminal
}

TERMINAL_STATES: frozenset[CommitState] = frozenset(
    {CommitState.SUCCESS, CommitState.FAILURE}
)


class CommitStatus(BaseModel):
    """One commit-status record as sent to the host."""

    model_config = ConfigDict(frozen=True)

    repository: str
    commit: str
    context: str
    state: CommitState
    description: str = ""
