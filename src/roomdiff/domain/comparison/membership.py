"""Bring sessions into membership of the rooms being compared."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from .contracts import ROOM_ID_SIGIL, MembershipResult, MembershipStatus
from .failures import RECOVERABLE_ERRORS, bounded, describe_failure

if TYPE_CHECKING:
    from .contracts import RoomId
    from .sessions import EndpointSession

log = getLogger(__name__)


def normalize_room_id(room_id: RoomId) -> RoomId:
    """Return ``room_id`` with the ``!`` sigil, prepending it when absent."""

    stripped = room_id.strip()
    if not stripped:
        raise ValueError("Room id must not be blank")
    if stripped.startswith(ROOM_ID_SIGIL):
        return stripped
    return f"{ROOM_ID_SIGIL}{stripped}"


async def ensure_joined(
    session: EndpointSession,
    room_id: RoomId,
    *,
    call_timeout: float | None = None,
) -> MembershipResult:
    """Join ``room_id`` on ``session`` unless it is already joined.

    Failures are returned, never raised, and are not retried: the room is simply
    reported as unreachable for this session. Concurrent callers for the same
    room share one in-flight join; joins for different rooms run in parallel.
    """

    room_id = normalize_room_id(room_id)
    async with session.lock:
        if session.is_joined(room_id):
            return MembershipResult(room_id=room_id, status=MembershipStatus.ALREADY_JOINED)
        previous_failure = session.failed_joins.get(room_id)
        if previous_failure is not None:
            return MembershipResult(
                room_id=room_id, status=MembershipStatus.FAILED, reason=previous_failure
            )
        pending = session.pending_joins.get(room_id)
        if pending is None:
            pending = asyncio.create_task(_join(session, room_id, call_timeout))
            session.pending_joins[room_id] = pending

    return await asyncio.shield(pending)


async def _join(
    session: EndpointSession,
    room_id: RoomId,
    call_timeout: float | None,
) -> MembershipResult:
    try:
        await bounded(session.client.join_room(room_id), call_timeout)
    except RECOVERABLE_ERRORS as exc:
        reason = describe_failure(exc, timeout=call_timeout)
        log.warning("Couldn't join room %s on %s: %s", room_id, session.label, reason)
        async with session.lock:
            session.failed_joins[room_id] = reason
            del session.pending_joins[room_id]
        return MembershipResult(room_id=room_id, status=MembershipStatus.FAILED, reason=reason)

    async with session.lock:
        session.joined_rooms.add(room_id)
        del session.pending_joins[room_id]
    log.debug("Joined %s on %s", room_id, session.label)
    return MembershipResult(room_id=room_id, status=MembershipStatus.JOINED)
