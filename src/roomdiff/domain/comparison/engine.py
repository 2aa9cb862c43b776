"""Orchestrator for comparing room state across sessions.

Rooms run concurrently. Inside a room every session runs concurrently, but a
session's state fetch only starts once its own membership step has finished.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .contracts import JoinFailed
from .diff import diff_room_state
from .membership import ensure_joined, normalize_room_id
from .state import fetch_state

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from .contracts import DivergenceReport, RoomId, SessionOutcome
    from .sessions import EndpointSession

type ReportCallback = Callable[[DivergenceReport], None]

log = getLogger(__name__)


def normalize_room_ids(room_ids: Iterable[RoomId]) -> list[RoomId]:
    """Normalise ``room_ids`` and drop repeats, keeping first-seen order."""

    unique: list[RoomId] = []
    for room_id in room_ids:
        normalized = normalize_room_id(room_id)
        if normalized not in unique:
            unique.append(normalized)
    return unique


@dataclass(slots=True)
class StateComparisonEngine:
    """Compare room state across already-initialised sessions."""

    sessions: Sequence[EndpointSession]
    call_timeout: float | None = None

    async def compare_room(self, room_id: RoomId) -> DivergenceReport:
        room_id = normalize_room_id(room_id)
        log.info("Checking state for %s", room_id)
        outcomes = await asyncio.gather(
            *(self._session_outcome(session, room_id) for session in self.sessions)
        )
        return diff_room_state(
            room_id,
            {
                session.identity: outcome
                for session, outcome in zip(self.sessions, outcomes, strict=True)
            },
        )

    async def compare_rooms(
        self,
        room_ids: Iterable[RoomId],
        *,
        on_report: ReportCallback | None = None,
    ) -> list[DivergenceReport]:
        """Compare every room; reports come back in completion order."""

        reports: list[DivergenceReport] = []
        pending = [self.compare_room(room_id) for room_id in normalize_room_ids(room_ids)]
        for next_report in asyncio.as_completed(pending):
            report = await next_report
            if on_report is not None:
                on_report(report)
            reports.append(report)
        return reports

    async def _session_outcome(self, session: EndpointSession, room_id: RoomId) -> SessionOutcome:
        membership = await ensure_joined(session, room_id, call_timeout=self.call_timeout)
        if not membership.ok:
            return JoinFailed(reason=membership.reason or "join failed")
        return await fetch_state(session, room_id, call_timeout=self.call_timeout)
