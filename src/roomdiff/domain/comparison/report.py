"""Render divergence reports for operators and downstream tooling."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .contracts import Classification

if TYPE_CHECKING:
    from .contracts import DivergenceReport, SessionReport, StateEvent


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _describe_event(event: StateEvent) -> str:
    details = [value for value in (event.event_type, event.state_key) if value]
    if not details:
        return event.event_id
    return f"{event.event_id} ({', '.join(details)})"


def _session_lines(session: SessionReport) -> list[str]:
    if session.unreachable:
        return [f"  {session.identity}: unreachable ({session.reason or 'unknown reason'})"]

    lines: list[str] = []
    if session.extra_events:
        lines.append(
            f"  {session.identity}: {_plural(session.extra_count, 'extra state event')}, "
            f"{session.home_domain} has diverged"
        )
        lines.extend(f"    + {_describe_event(event)}" for event in session.extra_events)
    else:
        lines.append(f"  {session.identity}: no extra state events")
    if session.missing_event_ids:
        lines.append(
            f"    missing {_plural(len(session.missing_event_ids), 'state event')} "
            "held by other endpoints"
        )
    return lines


def _headline(report: DivergenceReport) -> str:
    common = report.common_event_count or 0
    reachable = len(report.reachable_identities)
    match report.classification:
        case Classification.UNREACHABLE:
            return f"Room {report.room_id}: unreachable from every endpoint"
        case Classification.IN_SYNC:
            return (
                f"Room {report.room_id}: in sync across {_plural(reachable, 'endpoint')} "
                f"({_plural(common, 'common state event')})"
            )
        case Classification.DIVERGED:
            return (
                f"Room {report.room_id}: diverged "
                f"({_plural(common, 'common state event')})"
            )
        case Classification.PARTIAL:
            unreachable = ", ".join(report.unreachable_identities)
            verdict = "diverged" if report.diverged else "in sync"
            return (
                f"Room {report.room_id}: partial reachability, unreachable from {unreachable}; "
                f"{_plural(reachable, 'reachable endpoint')} {verdict} "
                f"({_plural(common, 'common state event')})"
            )


def format_report(report: DivergenceReport) -> str:
    """Return a multi-line, human readable summary of ``report``."""

    lines = [_headline(report)]
    if report.classification is Classification.IN_SYNC:
        return lines[0]
    for session in report.sessions.values():
        lines.extend(_session_lines(session))
    return "\n".join(lines)


def report_to_dict(report: DivergenceReport) -> dict[str, Any]:
    """Return ``report`` as JSON-serialisable data."""

    return {
        "room_id": report.room_id,
        "classification": str(report.classification),
        "common_event_count": report.common_event_count,
        "sessions": {
            identity: {
                "home_domain": session.home_domain,
                "unreachable": session.unreachable,
                "reason": session.reason,
                "extra_count": session.extra_count,
                "extra_events": [
                    {"event_id": event.event_id, **dict(event.payload)}
                    for event in session.extra_events
                ],
                "missing_event_ids": list(session.missing_event_ids),
            }
            for identity, session in report.sessions.items()
        },
    }
