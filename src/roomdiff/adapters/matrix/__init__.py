"""Public interface for the Matrix adapter."""

from __future__ import annotations

from .client import CLIENT_API_PREFIX, MatrixClient
from .schema import (
    ErrorResponse,
    JoinedRoomsResponse,
    JoinRoomResponse,
    StateEventPayload,
    WhoAmIResponse,
)
from .translator import StateEventPayloadInput, parse_room_state, parse_state_event

__all__ = [
    "CLIENT_API_PREFIX",
    "ErrorResponse",
    "JoinRoomResponse",
    "JoinedRoomsResponse",
    "MatrixClient",
    "StateEventPayload",
    "StateEventPayloadInput",
    "WhoAmIResponse",
    "parse_room_state",
    "parse_state_event",
]
