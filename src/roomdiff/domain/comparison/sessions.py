"""Endpoint sessions: one client plus its identity and membership cache."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .failures import RECOVERABLE_ERRORS, bounded, describe_failure

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from roomdiff.domain.ports.endpoint import EndpointClient

    from .contracts import Identity, MembershipResult, RoomId

log = getLogger(__name__)


class EndpointInitializationError(RuntimeError):
    """Raised when any endpoint fails identity resolution or room listing."""

    def __init__(self, message: str, *, failures: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.failures = dict(failures or {})


@dataclass(slots=True, eq=False)
class EndpointSession:
    """Runtime pairing of a client with its identity and joined rooms.

    ``joined_rooms``, ``failed_joins`` and ``pending_joins`` are only mutated
    while holding ``lock``; sessions never share a lock. The lock is never held
    across a network call. A room whose join failed stays failed for the rest
    of the run.
    """

    client: EndpointClient
    identity: Identity
    joined_rooms: set[RoomId] = field(default_factory=set["RoomId"])
    failed_joins: dict[RoomId, str] = field(default_factory=dict["RoomId", "str"])
    pending_joins: dict[RoomId, asyncio.Task[MembershipResult]] = field(
        default_factory=dict["RoomId", "asyncio.Task[MembershipResult]"], repr=False
    )
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def label(self) -> str:
        return self.client.label

    def is_joined(self, room_id: RoomId) -> bool:
        return room_id in self.joined_rooms


async def initialize_session(
    client: EndpointClient,
    *,
    call_timeout: float | None = None,
) -> EndpointSession:
    """Resolve identity and joined rooms for ``client`` concurrently."""

    identity_result, rooms_result = await asyncio.gather(
        bounded(client.resolve_identity(), call_timeout),
        bounded(client.list_joined_rooms(), call_timeout),
        return_exceptions=True,
    )
    if isinstance(identity_result, BaseException):
        raise identity_result
    if isinstance(rooms_result, BaseException):
        raise rooms_result
    return EndpointSession(client=client, identity=identity_result, joined_rooms=set(rooms_result))


def _failure_keys(clients: Sequence[EndpointClient]) -> list[str]:
    """Return one label per client, numbering labels that occur more than once."""

    labels = [client.label for client in clients]
    return [
        f"{label} #{index}" if labels.count(label) > 1 else label
        for index, label in enumerate(labels, start=1)
    ]


async def initialize_sessions(
    clients: Sequence[EndpointClient],
    *,
    call_timeout: float | None = None,
) -> list[EndpointSession]:
    """Initialise every endpoint; abort the run if any of them fails."""

    results = await asyncio.gather(
        *(initialize_session(client, call_timeout=call_timeout) for client in clients),
        return_exceptions=True,
    )

    sessions: list[EndpointSession] = []
    failures: dict[str, str] = {}
    for label, result in zip(_failure_keys(clients), results, strict=True):
        if isinstance(result, EndpointSession):
            sessions.append(result)
            continue
        if not isinstance(result, RECOVERABLE_ERRORS):
            raise result
        reason = describe_failure(result, timeout=call_timeout)
        log.error("Failed to access homeserver %s: %s", label, reason)
        failures[label] = reason

    if failures:
        failed = ", ".join(sorted(failures))
        raise EndpointInitializationError(
            f"Failed to access homeserver(s): {failed}", failures=failures
        )

    log.info("Got user ids %s", [session.identity for session in sessions])
    log.info("Got joined rooms")

    identities = [session.identity for session in sessions]
    duplicates = sorted({identity for identity in identities if identities.count(identity) > 1})
    if duplicates:
        raise EndpointInitializationError(
            f"Endpoints share the same identity: {', '.join(duplicates)}"
        )

    return sessions
