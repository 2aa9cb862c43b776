"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from logging import getLogger
from typing import TYPE_CHECKING

from roomdiff.adapters.matrix import MatrixClient
from roomdiff.domain.comparison import (
    Classification,
    StateComparisonEngine,
    format_report,
    initialize_sessions,
    normalize_room_ids,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from roomdiff.config import ComparisonConfig, EndpointConfig
    from roomdiff.domain.comparison import DivergenceReport
    from roomdiff.domain.comparison.engine import ReportCallback
    from roomdiff.domain.ports import EndpointClient

type EndpointClientFactory = Callable[[EndpointConfig, float], EndpointClient]

MIN_ENDPOINTS = 2

log = getLogger(__name__)


def _matrix_client_factory(endpoint: EndpointConfig, timeout_seconds: float) -> EndpointClient:
    return MatrixClient(config=endpoint, timeout_seconds=timeout_seconds)


def log_report(report: DivergenceReport) -> None:
    """Default report sink: one log record per line of the formatted report."""

    level = logging.INFO if report.classification is Classification.IN_SYNC else logging.WARNING
    for line in format_report(report).splitlines():
        log.log(level, line)


def should_proceed(room_ids: list[str], config: ComparisonConfig) -> bool:
    if not room_ids:
        log.info("roomId not specified, not proceeding.")
        return False
    if len(config.endpoints) < MIN_ENDPOINTS:
        log.info(
            "%d homeserver(s) configured, at least %d are needed to compare state; "
            "not proceeding.",
            len(config.endpoints),
            MIN_ENDPOINTS,
        )
        return False
    return True


async def compare_room_state_async(
    room_ids: Iterable[str],
    *,
    config: ComparisonConfig,
    client_factory: EndpointClientFactory | None = None,
    on_report: ReportCallback | None = log_report,
) -> list[DivergenceReport] | None:
    """Compare the state of ``room_ids`` across every configured homeserver.

    Returns ``None`` when there is nothing to do (no rooms, or fewer than two
    endpoints). Raises ``EndpointInitializationError`` when any endpoint cannot
    be initialised.
    """

    rooms = normalize_room_ids(room_ids)
    if not should_proceed(rooms, config):
        return None

    factory = client_factory or _matrix_client_factory
    async with AsyncExitStack() as stack:
        clients: list[EndpointClient] = []
        for endpoint in config.endpoints:
            client = factory(endpoint, config.timeout_seconds)
            stack.push_async_callback(client.aclose)
            clients.append(client)

        sessions = await initialize_sessions(clients, call_timeout=config.timeout_seconds)
        engine = StateComparisonEngine(sessions=sessions, call_timeout=config.timeout_seconds)
        reports = await engine.compare_rooms(rooms, on_report=on_report)

    counts = {
        classification: sum(1 for report in reports if report.classification is classification)
        for classification in Classification
    }
    log.info(
        "Compared %d room(s): in_sync=%s, diverged=%s, partial=%s, unreachable=%s",
        len(reports),
        counts[Classification.IN_SYNC],
        counts[Classification.DIVERGED],
        counts[Classification.PARTIAL],
        counts[Classification.UNREACHABLE],
    )
    return reports


def compare_room_state(
    room_ids: Iterable[str],
    *,
    config: ComparisonConfig,
    client_factory: EndpointClientFactory | None = None,
    on_report: ReportCallback | None = log_report,
) -> list[DivergenceReport] | None:
    """Blocking wrapper around :func:`compare_room_state_async`."""

    return asyncio.run(
        compare_room_state_async(
            room_ids,
            config=config,
            client_factory=client_factory,
            on_report=on_report,
        )
    )
