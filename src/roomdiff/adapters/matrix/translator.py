"""Translate Matrix state payloads into domain state events.

Payloads are validated for shape only; the original mapping is what ends up
on the domain event.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from roomdiff.domain.comparison.contracts import StateEvent

from .schema import RoomStateResponse, StateEventPayload

type StateEventPayloadInput = StateEventPayload | Mapping[str, object]


def parse_state_event(payload: StateEventPayloadInput) -> StateEvent:
    if isinstance(payload, StateEventPayload):
        return StateEvent(event_id=payload.event_id, payload=payload.model_dump())
    model = StateEventPayload.model_validate(payload)
    return StateEvent(event_id=model.event_id, payload=dict(payload))


def parse_room_state(payload: object) -> list[StateEvent]:
    """Validate a ``/rooms/{roomId}/state`` response body."""

    models = RoomStateResponse.validate_python(payload)
    raw_items = cast("list[Mapping[str, object]]", payload)
    return [
        StateEvent(event_id=model.event_id, payload=dict(raw))
        for model, raw in zip(models, raw_items, strict=True)
    ]
