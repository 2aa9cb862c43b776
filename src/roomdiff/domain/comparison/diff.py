"""N-way comparison of state-event collections keyed by event id.

For every reachable session the extra events are the ones whose id is absent
from at least one other reachable session. With two sessions this is the plain
pairwise difference; with more, an id held by some sessions and missing from
others counts as extra for each session that holds it (no majority vote).
Payloads are never compared, only event ids.
"""

from __future__ import annotations

from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from .contracts import Classification, DivergenceReport, Joined, SessionReport
from .membership import normalize_room_id
from .state import unique_events

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .contracts import Identity, RoomId, SessionOutcome, StateEvent

log = getLogger(__name__)


def diff_room_state(
    room_id: RoomId,
    outcomes: Mapping[Identity, SessionOutcome],
) -> DivergenceReport:
    """Reduce per-session outcomes for one room to a ``DivergenceReport``."""

    room_id = normalize_room_id(room_id)
    reachable: dict[Identity, tuple[StateEvent, ...]] = {}
    failures: dict[Identity, str] = {}
    for identity, outcome in outcomes.items():
        if isinstance(outcome, Joined):
            reachable[identity] = unique_events(outcome.events, source=identity)
        else:
            failures[identity] = outcome.reason

    if not reachable:
        log.debug("No session could reach %s", room_id)
        return DivergenceReport(
            room_id=room_id,
            classification=Classification.UNREACHABLE,
            sessions=MappingProxyType(
                {
                    identity: SessionReport(identity=identity, unreachable=True, reason=reason)
                    for identity, reason in failures.items()
                }
            ),
        )

    ids_by_identity = {
        identity: frozenset(event.event_id for event in events)
        for identity, events in reachable.items()
    }
    common = frozenset.intersection(*ids_by_identity.values())
    union = frozenset.union(*ids_by_identity.values())

    sessions: dict[Identity, SessionReport] = {}
    for identity in outcomes:
        if identity in failures:
            sessions[identity] = SessionReport(
                identity=identity, unreachable=True, reason=failures[identity]
            )
            continue
        sessions[identity] = SessionReport(
            identity=identity,
            extra_events=tuple(
                event for event in reachable[identity] if event.event_id not in common
            ),
            missing_event_ids=tuple(sorted(union - ids_by_identity[identity])),
        )

    if failures:
        classification = Classification.PARTIAL
    elif any(session.extra_events for session in sessions.values()):
        classification = Classification.DIVERGED
    else:
        classification = Classification.IN_SYNC

    return DivergenceReport(
        room_id=room_id,
        classification=classification,
        sessions=MappingProxyType(sessions),
        common_event_count=len(common),
    )
