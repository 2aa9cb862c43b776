"""Value types shared by the comparison stages.

Per-session failures are carried as data (``JoinFailed`` / ``FetchFailed``)
instead of exceptions so that one broken endpoint never interrupts the other
sessions of a room, nor the other rooms of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping


type RoomId = str
type Identity = str

ROOM_ID_SIGIL = "!"
IDENTITY_DOMAIN_SEPARATOR = ":"


def home_domain(identity: Identity) -> str:
    """Return the server part of ``@user:domain`` (the identity itself if it has none)."""

    _, separator, domain = identity.partition(IDENTITY_DOMAIN_SEPARATOR)
    return domain if separator else identity


@dataclass(frozen=True, slots=True)
class StateEvent:
    """One state event as returned by an endpoint.

    Only ``event_id`` takes part in comparisons; ``payload`` is carried through
    untouched for reporting.
    """

    event_id: str
    payload: Mapping[str, object] = field(
        default_factory=dict["str", "object"], compare=False, hash=False, repr=False
    )

    @property
    def event_type(self) -> str | None:
        value = self.payload.get("type")
        return value if isinstance(value, str) else None

    @property
    def state_key(self) -> str | None:
        value = self.payload.get("state_key")
        return value if isinstance(value, str) else None


class MembershipStatus(StrEnum):
    """Result of making sure a session is joined to a room."""

    ALREADY_JOINED = "already_joined"
    JOINED = "joined"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class MembershipResult:
    room_id: RoomId
    status: MembershipStatus
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not MembershipStatus.FAILED


class OutcomeStatus(StrEnum):
    JOINED = "joined"
    JOIN_FAILED = "join_failed"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class Joined:
    """Session is in the room and its state was fetched."""

    events: tuple[StateEvent, ...]
    status: Literal[OutcomeStatus.JOINED] = OutcomeStatus.JOINED

    @property
    def reachable(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class JoinFailed:
    """Session could not join the room."""

    reason: str
    status: Literal[OutcomeStatus.JOIN_FAILED] = OutcomeStatus.JOIN_FAILED

    @property
    def reachable(self) -> bool:
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class FetchFailed:
    """Session is joined but the room state could not be retrieved."""

    reason: str
    status: Literal[OutcomeStatus.FETCH_FAILED] = OutcomeStatus.FETCH_FAILED

    @property
    def reachable(self) -> bool:
        return False


type SessionOutcome = Joined | JoinFailed | FetchFailed


class Classification(StrEnum):
    """Overall verdict for one room."""

    IN_SYNC = "in_sync"
    DIVERGED = "diverged"
    PARTIAL = "partial"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionReport:
    """What one identity contributes to a room's report."""

    identity: Identity
    extra_events: tuple[StateEvent, ...] = ()
    missing_event_ids: tuple[str, ...] = ()
    unreachable: bool = False
    reason: str | None = None

    @property
    def extra_count(self) -> int:
        return len(self.extra_events)

    @property
    def home_domain(self) -> str:
        return home_domain(self.identity)


@dataclass(frozen=True, slots=True, kw_only=True)
class DivergenceReport:
    """Comparison result for one room.

    ``common_event_count`` is the number of event ids held by every reachable
    session; it is ``None`` when no session was reachable.
    """

    room_id: RoomId
    classification: Classification
    sessions: Mapping[Identity, SessionReport]
    common_event_count: int | None = None

    @property
    def diverged(self) -> bool:
        return any(session.extra_events for session in self.sessions.values())

    @property
    def reachable_identities(self) -> tuple[Identity, ...]:
        return tuple(
            identity for identity, session in self.sessions.items() if not session.unreachable
        )

    @property
    def unreachable_identities(self) -> tuple[Identity, ...]:
        return tuple(
            identity for identity, session in self.sessions.items() if session.unreachable
        )

    @property
    def diverged_sessions(self) -> tuple[SessionReport, ...]:
        return tuple(session for session in self.sessions.values() if session.extra_events)
