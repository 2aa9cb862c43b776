"""Fetch the state-event collection of a room from one session."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .contracts import FetchFailed, Joined
from .failures import RECOVERABLE_ERRORS, bounded, describe_failure
from .membership import normalize_room_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .contracts import RoomId, StateEvent
    from .sessions import EndpointSession

log = getLogger(__name__)


def unique_events(
    events: Iterable[StateEvent],
    *,
    source: str = "endpoint",
) -> tuple[StateEvent, ...]:
    """Drop repeated event ids, keeping the first occurrence."""

    seen: set[str] = set()
    unique: list[StateEvent] = []
    for event in events:
        if event.event_id in seen:
            log.warning("Duplicate state event %s from %s ignored", event.event_id, source)
            continue
        seen.add(event.event_id)
        unique.append(event)
    return tuple(unique)


async def fetch_state(
    session: EndpointSession,
    room_id: RoomId,
    *,
    call_timeout: float | None = None,
) -> Joined | FetchFailed:
    """Return the room state for a session that is already joined."""

    room_id = normalize_room_id(room_id)
    try:
        events = await bounded(session.client.fetch_room_state(room_id), call_timeout)
    except RECOVERABLE_ERRORS as exc:
        reason = describe_failure(exc, timeout=call_timeout)
        log.warning("Couldn't fetch state of %s from %s: %s", room_id, session.label, reason)
        return FetchFailed(reason=reason)

    state = unique_events(events, source=session.label)
    log.debug("Fetched %d state events of %s from %s", len(state), room_id, session.label)
    return Joined(events=state)
