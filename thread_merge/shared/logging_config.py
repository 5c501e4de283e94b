"""Root logger setup shared by the API server and scripts."""

from __future__ import annotations

import logging

from thread_merge.shared.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from settings.

    Adds a file handler next to the console one when ``log_file`` is set.
    Safe to call more than once; later calls replace earlier handlers.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # SQL echo is routed through the engine's own logger
    if not (settings.debug and settings.log_level == "DEBUG"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
