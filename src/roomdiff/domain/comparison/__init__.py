"""Room state comparison across independent endpoints.

Flow per run:
1) initialise one session per endpoint (fail fast)
2) per room, make sure every session is joined
3) fetch state for the sessions that are joined
4) diff the collections by event id and classify the room
5) format the report
"""

from __future__ import annotations

from .contracts import (
    Classification,
    DivergenceReport,
    FetchFailed,
    Joined,
    JoinFailed,
    MembershipResult,
    MembershipStatus,
    SessionOutcome,
    SessionReport,
    StateEvent,
    home_domain,
)
from .diff import diff_room_state
from .engine import StateComparisonEngine, normalize_room_ids
from .membership import ensure_joined, normalize_room_id
from .report import format_report, report_to_dict
from .sessions import (
    EndpointInitializationError,
    EndpointSession,
    initialize_session,
    initialize_sessions,
)
from .state import fetch_state

__all__ = [
    "Classification",
    "DivergenceReport",
    "EndpointInitializationError",
    "EndpointSession",
    "FetchFailed",
    "JoinFailed",
    "Joined",
    "MembershipResult",
    "MembershipStatus",
    "SessionOutcome",
    "SessionReport",
    "StateComparisonEngine",
    "StateEvent",
    "diff_room_state",
    "ensure_joined",
    "fetch_state",
    "format_report",
    "home_domain",
    "initialize_session",
    "initialize_sessions",
    "normalize_room_id",
    "normalize_room_ids",
    "report_to_dict",
]
