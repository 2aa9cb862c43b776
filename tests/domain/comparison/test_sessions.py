from __future__ import annotations

import asyncio

import pytest

from roomdiff.domain.comparison import (
    EndpointInitializationError,
    initialize_session,
    initialize_sessions,
)
from roomdiff.domain.ports import EndpointAuthError, EndpointNetworkError
from tests.support.endpoints import FakeEndpointClient


def test_initialize_session_resolves_identity_and_rooms() -> None:
    client = FakeEndpointClient("@bot:a.example", joined={"!one:a.example", "!two:a.example"})

    session = asyncio.run(initialize_session(client))

    assert session.identity == "@bot:a.example"
    assert session.joined_rooms == {"!one:a.example", "!two:a.example"}
    assert session.label == "a.example"
    assert session.client is client


def test_initialize_sessions_keeps_configuration_order() -> None:
    clients = [
        FakeEndpointClient("@bot:a.example"),
        FakeEndpointClient("@bot:b.example"),
        FakeEndpointClient("@bot:c.example"),
    ]

    sessions = asyncio.run(initialize_sessions(clients))

    assert [session.identity for session in sessions] == [
        "@bot:a.example",
        "@bot:b.example",
        "@bot:c.example",
    ]


def test_any_identity_failure_aborts_initialisation() -> None:
    clients = [
        FakeEndpointClient("@bot:a.example"),
        FakeEndpointClient("@bot:b.example", identity_error=EndpointAuthError("M_UNKNOWN_TOKEN")),
    ]

    with pytest.raises(EndpointInitializationError) as exc:
        asyncio.run(initialize_sessions(clients))

    assert set(exc.value.failures) == {"b.example"}
    assert "M_UNKNOWN_TOKEN" in exc.value.failures["b.example"]


def test_room_listing_failures_are_all_reported() -> None:
    clients = [
        FakeEndpointClient("@bot:a.example", rooms_error=EndpointNetworkError("refused")),
        FakeEndpointClient("@bot:b.example", rooms_error=EndpointNetworkError("reset")),
    ]

    with pytest.raises(EndpointInitializationError) as exc:
        asyncio.run(initialize_sessions(clients))

    assert set(exc.value.failures) == {"a.example", "b.example"}


def test_hanging_endpoint_times_out_during_initialisation() -> None:
    clients = [
        FakeEndpointClient("@bot:a.example"),
        FakeEndpointClient("@bot:b.example", hang=frozenset({"whoami"})),
    ]

    with pytest.raises(EndpointInitializationError) as exc:
        asyncio.run(initialize_sessions(clients, call_timeout=0.01))

    assert exc.value.failures == {"b.example": "timed out after 0.01s"}


def test_duplicate_identities_are_rejected() -> None:
    clients = [FakeEndpointClient("@bot:a.example"), FakeEndpointClient("@bot:a.example")]

    with pytest.raises(EndpointInitializationError, match="same identity"):
        asyncio.run(initialize_sessions(clients))


def test_failures_of_endpoints_sharing_a_label_are_kept_apart() -> None:
    clients = [
        FakeEndpointClient("@one:a.example", identity_error=EndpointAuthError("M_UNKNOWN_TOKEN")),
        FakeEndpointClient("@bot:b.example"),
        FakeEndpointClient("@two:a.example", rooms_error=EndpointNetworkError("reset")),
    ]

    with pytest.raises(EndpointInitializationError) as exc:
        asyncio.run(initialize_sessions(clients))

    assert set(exc.value.failures) == {"a.example #1", "a.example #3"}
    assert "M_UNKNOWN_TOKEN" in exc.value.failures["a.example #1"]
    assert "reset" in exc.value.failures["a.example #3"]
