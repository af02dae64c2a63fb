"""Logging setup for itemgraph entry points."""

from __future__ import annotations

import logging

from .env import env_str


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    ``level`` falls back to ``ITEMGRAPH_LOG_LEVEL`` and then INFO. Pass
    ``force=True`` to reconfigure during tests or specialised entry points.
    """

    resolved = level if level is not None else env_str("ITEMGRAPH_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
