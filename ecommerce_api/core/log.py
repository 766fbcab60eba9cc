"""
Logging setup.

Feature modules log through `logging.getLogger(__name__)` with
`event key=value` messages; this module only configures the root handler.
"""

from __future__ import annotations

import logging

from . import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or config.log_level()),
        format=LOG_FORMAT,
    )
    # asyncpg is chatty at DEBUG.
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
