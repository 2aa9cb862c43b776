from __future__ import annotations

from .endpoint import (
    EndpointAuthError,
    EndpointClient,
    EndpointError,
    EndpointForbiddenError,
    EndpointNetworkError,
    EndpointNotFoundError,
    EndpointResponseError,
    RoomJoinError,
)

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
