from __future__ import annotations

import asyncio
import time

import pytest

from roomdiff.domain.comparison import (
    EndpointSession,
    MembershipStatus,
    ensure_joined,
    normalize_room_id,
)
from roomdiff.domain.ports import RoomJoinError
from tests.support.endpoints import FakeEndpointClient


def _session(client: FakeEndpointClient) -> EndpointSession:
    return EndpointSession(client=client, identity=client.identity, joined_rooms=set(client.joined))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("abc:a.example", "!abc:a.example"),
        ("!abc:a.example", "!abc:a.example"),
        ("  abc:a.example ", "!abc:a.example"),
    ],
)
def test_normalize_room_id_prepends_sigil(raw: str, expected: str) -> None:
    assert normalize_room_id(raw) == expected


def test_normalize_room_id_rejects_blank() -> None:
    with pytest.raises(ValueError, match="blank"):
        normalize_room_id("   ")


def test_already_joined_room_makes_no_network_call() -> None:
    client = FakeEndpointClient("@bot:a.example", joined={"!abc:a.example"})
    session = _session(client)

    result = asyncio.run(ensure_joined(session, "!abc:a.example"))

    assert result.status is MembershipStatus.ALREADY_JOINED
    assert result.ok
    assert client.join_calls == []


def test_join_adds_room_and_is_idempotent() -> None:
    client = FakeEndpointClient("@bot:a.example")
    session = _session(client)

    async def run() -> tuple[MembershipStatus, MembershipStatus, MembershipStatus]:
        first = await ensure_joined(session, "abc:a.example")
        second = await ensure_joined(session, "abc:a.example")
        third = await ensure_joined(session, "!abc:a.example")
        return first.status, second.status, third.status

    statuses = asyncio.run(run())

    assert statuses == (
        MembershipStatus.JOINED,
        MembershipStatus.ALREADY_JOINED,
        MembershipStatus.ALREADY_JOINED,
    )
    assert client.join_calls == ["!abc:a.example"]
    assert session.joined_rooms == {"!abc:a.example"}


def test_concurrent_calls_for_same_room_join_once() -> None:
    client = FakeEndpointClient("@bot:a.example")
    session = _session(client)

    async def run() -> None:
        await asyncio.gather(*(ensure_joined(session, "!abc:a.example") for _ in range(5)))

    asyncio.run(run())

    assert client.join_calls == ["!abc:a.example"]


def test_join_failure_is_returned_and_not_retried() -> None:
    client = FakeEndpointClient(
        "@bot:a.example",
        join_errors={"!abc:a.example": RoomJoinError("M_FORBIDDEN: not invited")},
    )
    session = _session(client)

    async def run() -> tuple[MembershipStatus, str | None, MembershipStatus]:
        first = await ensure_joined(session, "!abc:a.example")
        second = await ensure_joined(session, "!abc:a.example")
        return first.status, first.reason, second.status

    first_status, reason, second_status = asyncio.run(run())

    assert first_status is MembershipStatus.FAILED
    assert second_status is MembershipStatus.FAILED
    assert reason is not None
    assert "not invited" in reason
    assert client.join_calls == ["!abc:a.example"]
    assert session.joined_rooms == set()


def test_join_timeout_counts_as_failure() -> None:
    client = FakeEndpointClient("@bot:a.example", hang=frozenset({"join"}))
    session = _session(client)

    result = asyncio.run(ensure_joined(session, "!abc:a.example", call_timeout=0.01))

    assert result.status is MembershipStatus.FAILED
    assert result.reason == "timed out after 0.01s"


def test_joins_for_different_rooms_run_in_parallel() -> None:
    client = FakeEndpointClient("@bot:a.example", hang=frozenset({"join"}))
    session = _session(client)
    rooms = [f"!room{index}:a.example" for index in range(4)]

    async def run() -> list[MembershipStatus]:
        results = await asyncio.gather(
            *(ensure_joined(session, room, call_timeout=0.2) for room in rooms)
        )
        return [result.status for result in results]

    started = time.perf_counter()
    statuses = asyncio.run(run())
    elapsed = time.perf_counter() - started

    assert statuses == [MembershipStatus.FAILED] * 4
    assert elapsed < 0.6
    assert sorted(client.join_calls) == rooms
    assert session.pending_joins == {}
    assert set(session.failed_joins) == set(rooms)


def test_concurrent_callers_share_the_join_result() -> None:
    client = FakeEndpointClient("@bot:a.example")
    session = _session(client)

    async def run() -> list[MembershipStatus]:
        results = await asyncio.gather(*(ensure_joined(session, "abc:a.example") for _ in range(3)))
        return [result.status for result in results]

    statuses = asyncio.run(run())

    assert statuses == [MembershipStatus.JOINED] * 3
    assert client.join_calls == ["!abc:a.example"]
    assert session.pending_joins == {}
