"""Logging setup for the QueryLoop service."""

from __future__ import annotations

import logging

from queryloop.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the ``queryloop`` logger tree.

    Handlers are only installed on the root logger when none exist yet, so a
    host process (uvicorn, pytest) keeps control of its own output.
    """
    resolved = (level or settings.log_level).upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("queryloop").setLevel(resolved)
