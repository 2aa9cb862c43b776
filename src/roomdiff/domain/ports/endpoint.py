"""Port describing the network client used to talk to one homeserver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from roomdiff.domain.comparison.contracts import RoomId, StateEvent


class EndpointError(RuntimeError):
    """Base class for every failure raised by an endpoint client."""

    def __init__(self, message: str, *, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class EndpointNetworkError(EndpointError):
    """The endpoint could not be reached or the connection broke."""


class EndpointAuthError(EndpointError):
    """The endpoint rejected the access token."""


class EndpointForbiddenError(EndpointError):
    """The authenticated user may not perform the request."""


class EndpointNotFoundError(EndpointError):
    """The requested room or resource does not exist on the endpoint."""


class EndpointResponseError(EndpointError):
    """The endpoint answered with an unexpected status or payload."""


class RoomJoinError(EndpointError):
    """Joining a room failed, whatever the underlying cause."""


@runtime_checkable
class EndpointClient(Protocol):
    """Operations the comparison engine needs from one homeserver."""

    @property
    def label(self) -> str:
        """Human readable name used in log lines."""
        ...

    async def resolve_identity(self) -> str: ...

    async def list_joined_rooms(self) -> set[RoomId]: ...

    async def join_room(self, room_id: RoomId) -> None: ...

    async def fetch_room_state(self, room_id: RoomId) -> list[StateEvent]: ...

    async def aclose(self) -> None: ...


__all__ = [
    "EndpointAuthError",
    "EndpointClient",
    "EndpointError",
    "EndpointForbiddenError",
    "EndpointNetworkError",
    "EndpointNotFoundError",
    "EndpointResponseError",
    "RoomJoinError",
]
