"""Pydantic models describing the Matrix client-server API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MatrixBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WhoAmIResponse(MatrixBaseModel):
    user_id: str = Field(min_length=1)
    device_id: str | None = None


class JoinedRoomsResponse(MatrixBaseModel):
    joined_rooms: list[str]


class JoinRoomResponse(MatrixBaseModel):
    room_id: str


class StateEventPayload(BaseModel):
    """A state event; unknown keys are kept so the payload survives a round trip."""

    model_config = ConfigDict(extra="allow")

    event_id: str = Field(min_length=1)
    type: str
    state_key: str
    sender: str | None = None
    content: dict[str, object] = Field(default_factory=dict)


class ErrorResponse(MatrixBaseModel):
    errcode: str
    error: str | None = None


RoomStateResponse = TypeAdapter(list[StateEventPayload])
