from __future__ import annotations

import json

from roomdiff.domain.comparison import (
    FetchFailed,
    Joined,
    JoinFailed,
    diff_room_state,
    format_report,
    home_domain,
    report_to_dict,
)
from tests.support.endpoints import make_events

ROOM = "!lobby:a.example"
ALICE = "@bot:a.example"
BOB = "@bot:b.example:8448"


def _joined(*event_ids: str) -> Joined:
    return Joined(events=tuple(make_events(*event_ids)))


def test_home_domain_splits_on_first_separator() -> None:
    assert home_domain("@bot:a.example") == "a.example"
    assert home_domain("@bot:b.example:8448") == "b.example:8448"
    assert home_domain("no-separator") == "no-separator"


def test_in_sync_report_is_one_line() -> None:
    report = diff_room_state(ROOM, {ALICE: _joined("$1", "$2"), BOB: _joined("$2", "$1")})

    text = format_report(report)

    assert text == f"Room {ROOM}: in sync across 2 endpoints (2 common state events)"


def test_diverged_report_names_diverged_home_domains() -> None:
    report = diff_room_state(ROOM, {ALICE: _joined("$1", "$2"), BOB: _joined("$2", "$3")})

    lines = format_report(report).splitlines()

    assert lines[0] == f"Room {ROOM}: diverged (1 common state event)"
    assert f"  {ALICE}: 1 extra state event, a.example has diverged" in lines
    assert f"  {BOB}: 1 extra state event, b.example:8448 has diverged" in lines
    assert "    + $1 (m.room.member, $1)" in lines
    assert "    + $3 (m.room.member, $3)" in lines


def test_partial_report_lists_unreachable_identity_and_reason() -> None:
    carol = "@bot:c.example"
    report = diff_room_state(
        ROOM,
        {ALICE: _joined("$1"), BOB: _joined("$1"), carol: JoinFailed(reason="M_FORBIDDEN")},
    )

    lines = format_report(report).splitlines()

    assert lines[0] == (
        f"Room {ROOM}: partial reachability, unreachable from {carol}; "
        "2 reachable endpoints in sync (1 common state event)"
    )
    assert f"  {carol}: unreachable (M_FORBIDDEN)" in lines


def test_unreachable_report_headline() -> None:
    report = diff_room_state(
        ROOM, {ALICE: JoinFailed(reason="down"), BOB: FetchFailed(reason="down")}
    )

    assert format_report(report).splitlines()[0] == f"Room {ROOM}: unreachable from every endpoint"


def test_report_to_dict_is_json_serialisable() -> None:
    report = diff_room_state(ROOM, {ALICE: _joined("$1", "$2"), BOB: _joined("$2")})

    data = json.loads(json.dumps(report_to_dict(report)))

    assert data["room_id"] == ROOM
    assert data["classification"] == "diverged"
    assert data["common_event_count"] == 1
    assert data["sessions"][ALICE]["extra_count"] == 1
    assert data["sessions"][ALICE]["extra_events"][0]["event_id"] == "$1"
    assert data["sessions"][ALICE]["home_domain"] == "a.example"
    assert data["sessions"][BOB]["missing_event_ids"] == ["$1"]
    assert data["sessions"][BOB]["unreachable"] is False
