from __future__ import annotations

import asyncio

from roomdiff.domain.comparison import EndpointSession, FetchFailed, Joined, fetch_state
from roomdiff.domain.ports import EndpointForbiddenError
from tests.support.endpoints import FakeEndpointClient, make_events

ROOM = "!lobby:a.example"


def _session(client: FakeEndpointClient) -> EndpointSession:
    return EndpointSession(client=client, identity=client.identity, joined_rooms={ROOM})


def test_fetch_state_returns_joined_outcome() -> None:
    client = FakeEndpointClient("@bot:a.example", states={ROOM: make_events("$1", "$2")})

    outcome = asyncio.run(fetch_state(_session(client), "lobby:a.example"))

    assert isinstance(outcome, Joined)
    assert [event.event_id for event in outcome.events] == ["$1", "$2"]
    assert client.fetch_calls == [ROOM]


def test_fetch_failure_becomes_fetch_failed() -> None:
    client = FakeEndpointClient(
        "@bot:a.example", fetch_errors={ROOM: EndpointForbiddenError("HTTP 403 M_FORBIDDEN")}
    )

    outcome = asyncio.run(fetch_state(_session(client), ROOM))

    assert isinstance(outcome, FetchFailed)
    assert not outcome.reachable
    assert outcome.reason == "EndpointForbiddenError: HTTP 403 M_FORBIDDEN"


def test_fetch_timeout_becomes_fetch_failed() -> None:
    client = FakeEndpointClient("@bot:a.example", hang=frozenset({"state"}))

    outcome = asyncio.run(fetch_state(_session(client), ROOM, call_timeout=0.01))

    assert isinstance(outcome, FetchFailed)
    assert outcome.reason == "timed out after 0.01s"


def test_duplicate_event_ids_keep_first_occurrence() -> None:
    events = make_events("$1", "$2") + make_events("$1", event_type="m.room.topic")
    client = FakeEndpointClient("@bot:a.example", states={ROOM: events})

    outcome = asyncio.run(fetch_state(_session(client), ROOM))

    assert isinstance(outcome, Joined)
    assert [event.event_id for event in outcome.events] == ["$1", "$2"]
    assert outcome.events[0].event_type == "m.room.member"
