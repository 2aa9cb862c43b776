"""HTTP client for the Matrix client-server API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from roomdiff.adapters.http_resilience import ResilientClient
from roomdiff.config.http_resilience import DEFAULT_TIMEOUT_SECONDS
from roomdiff.domain.ports.endpoint import (
    EndpointAuthError,
    EndpointError,
    EndpointForbiddenError,
    EndpointNetworkError,
    EndpointNotFoundError,
    EndpointResponseError,
    RoomJoinError,
)

from .schema import (
    ErrorResponse,
    JoinedRoomsResponse,
    JoinRoomResponse,
    MatrixBaseModel,
    WhoAmIResponse,
)
from .translator import parse_room_state

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from roomdiff.config.endpoints import EndpointConfig
    from roomdiff.config.http_resilience import ResilienceConfig
    from roomdiff.domain.comparison.contracts import RoomId, StateEvent

log = getLogger(__name__)

CLIENT_API_PREFIX = "/_matrix/client/v3"
AUTH_ERRCODES = frozenset({"M_UNKNOWN_TOKEN", "M_MISSING_TOKEN"})


def _room_path(room_id: RoomId) -> str:
    return quote(room_id, safe="")


class MatrixClient:
    """One homeserver connection, shared by every request of a run."""

    def __init__(
        self,
        *,
        config: EndpointConfig,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience(timeout_seconds=timeout_seconds)
        self._client_factory = client_factory or ResilientClient
        self._http: ResilientClient | None = None

    @property
    def label(self) -> str:
        return self._config.label

    async def __aenter__(self) -> MatrixClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def resolve_identity(self) -> str:
        payload = await self._request("GET", "/account/whoami")
        return self._validate(WhoAmIResponse, payload).user_id

    async def list_joined_rooms(self) -> set[RoomId]:
        payload = await self._request("GET", "/joined_rooms")
        return set(self._validate(JoinedRoomsResponse, payload).joined_rooms)

    async def join_room(self, room_id: RoomId) -> None:
        try:
            payload = await self._request("POST", f"/join/{_room_path(room_id)}", json={})
            joined = self._validate(JoinRoomResponse, payload)
        except EndpointError as exc:
            raise RoomJoinError(
                f"Couldn't join {room_id}: {exc}", endpoint=self.label
            ) from exc
        log.debug("Joined %s on %s", joined.room_id, self.label)

    async def fetch_room_state(self, room_id: RoomId) -> list[StateEvent]:
        payload = await self._request("GET", f"/rooms/{_room_path(room_id)}/state")
        try:
            return parse_room_state(payload)
        except ValidationError as exc:
            raise EndpointResponseError(
                f"Unexpected state payload for {room_id}: {exc}", endpoint=self.label
            ) from exc

    def _http_client(self) -> ResilientClient:
        if self._http is None:
            self._http = self._client_factory(self._resilience)
        return self._http

    async def _request(self, method: str, path: str, *, json: object = None) -> object:
        url = f"{CLIENT_API_PREFIX}{path}"
        log.debug("%s %s on %s", method, url, self.label)
        try:
            response = await self._http_client().request(method, url, json=json)
        except httpx.TimeoutException as exc:
            raise EndpointNetworkError(
                f"{method} {url} timed out", endpoint=self.label
            ) from exc
        except httpx.HTTPError as exc:
            raise EndpointNetworkError(
                f"{method} {url} failed: {exc}", endpoint=self.label
            ) from exc

        if response.is_error:
            raise self._error_for(response)

        try:
            return response.json()
        except ValueError as exc:
            raise EndpointResponseError(
                f"{method} {url} returned invalid JSON", endpoint=self.label
            ) from exc

    def _error_for(self, response: httpx.Response) -> EndpointError:
        errcode: str | None = None
        detail: str | None = None
        try:
            error_payload = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            pass
        else:
            errcode = error_payload.errcode
            detail = error_payload.error

        message = f"HTTP {response.status_code}"
        if errcode:
            message = f"{message} {errcode}"
        if detail:
            message = f"{message}: {detail}"

        if response.status_code == httpx.codes.UNAUTHORIZED or errcode in AUTH_ERRCODES:
            return EndpointAuthError(message, endpoint=self.label)
        if response.status_code == httpx.codes.FORBIDDEN:
            return EndpointForbiddenError(message, endpoint=self.label)
        if response.status_code == httpx.codes.NOT_FOUND:
            return EndpointNotFoundError(message, endpoint=self.label)
        return EndpointResponseError(message, endpoint=self.label)

    def _validate[M: MatrixBaseModel](self, model: type[M], payload: object) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise EndpointResponseError(
                f"Unexpected {model.__name__} payload: {exc}", endpoint=self.label
            ) from exc
