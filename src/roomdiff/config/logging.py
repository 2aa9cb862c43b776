"""Logging setup for the command line."""

from __future__ import annotations

import logging

# httpx logs every request at INFO
HTTP_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Send log records to stderr, one line each.

    Report lines are emitted at INFO (in sync) or WARNING (anything else), so
    the default level shows them. ``verbose`` adds the per-request debug output
    of roomdiff and httpx. Pass ``force=True`` to replace an earlier setup.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    http_level = logging.INFO if verbose else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
