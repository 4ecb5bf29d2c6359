"""Inbound source-control events — a tagged union over push, create, ignored.

The raw webhook payload is a single discriminated mapping shaped like
``{"push": {...}}`` or ``{"create": {...}}``.  ``parse_event`` turns it into
one of the frozen models below; anything else becomes an ``IgnoredEvent``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from carto_ci.core.errors import MalformedEventError


class RefType(str, Enum):
    """Kind of ref carried by a create event."""

    BRANCH = "branch"
    TAG = "tag"


class PushEvent(BaseModel):
    """A push; ``head_commit_id`` is None for pushes without a head commit
    (branch deletions, empty pushes)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["push"] = "push"
    head_commit_id: str | None = None
    ref: str = ""


class CreateEvent(BaseModel):
    """A branch or tag was created."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["create"] = "create"
    ref: str
    ref_type: RefType

    def is_release_tag(self, prefix: str) -> bool:
        """True for tag refs that follow the release naming convention."""
        return self.ref_type == RefType.TAG and bool(prefix) and self.ref.startswith(prefix)


class IgnoredEvent(BaseModel):
    """Any payload the orchestrator does not act on."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ignored"] = "ignored"
    event_name: str = ""
    reason: str = ""


Event = Union[PushEvent, CreateEvent, IgnoredEvent]


def _push_from(body: Any) -> PushEvent:
    if not isinstance(body, dict):
        raise MalformedEventError(f"push body must be an object, got {type(body).__name__}")
    head = body.get("head_commit")
    head_id = None
    if isinstance(head, dict):
        head_id = head.get("id") or None
    elif head is not None:
        raise MalformedEventError("push.head_commit must be an object or null")
    try:
        return PushEvent(head_commit_id=head_id, ref=body.get("ref") or "")
    except ValidationError as exc:
        raise MalformedEventError(f"Invalid push event: {exc}") from exc


def _create_from(body: Any) -> CreateEvent:
    if not isinstance(body, dict):
        raise MalformedEventError(f"create body must be an object, got {type(body).__name__}")
    try:
        return CreateEvent(ref=body.get("ref"), ref_type=body.get("ref_type"))
    except ValidationError as exc:
        raise MalformedEventError(f"Invalid create event: {exc}") from exc


def parse_event(payload: Any) -> Event:
    """Interpret a raw discriminated payload.

    Raises
    ------
    MalformedEventError
        If a recognized branch (``push``/``create``) has the wrong shape.
    """
    if not isinstance(payload, dict):
        raise MalformedEventError(
            f"Event payload must be an object, got {type(payload).__name__}"
        )

    if payload.get("push") is not None:
        return _push_from(payload["push"])
    if payload.get("create") is not None:
        return _create_from(payload["create"])

    names = ",".join(sorted(payload)) or "<empty>"
    return IgnoredEvent(event_name=names, reason="unrecognized event")
