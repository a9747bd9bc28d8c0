"""Logging setup shared by the API process and the operator scripts.

The binder, admin service and auth log through structlog with keyword fields;
the store adapter and the orphan sweep use stdlib loggers with ``extra=``. Both
streams go through one root handler so every record is rendered the same way.
"""

from __future__ import annotations

import logging
import os
from typing import IO

import structlog

HANDLER_NAME = "cms"

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def configure_logging(
    level: int | str | None = None,
    *,
    json_output: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Install the root handler and configure structlog.

    ``level`` defaults to ``LOG_LEVEL`` (``INFO`` when unset). Scripts pass
    ``json_output=False`` for console lines. Calling again replaces the handler.
    """
    resolved = level if level is not None else os.getenv("LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = resolved.upper()

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[*_SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    for existing in [item for item in root.handlers if item.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(resolved)
    # httpx logs one INFO line per ImageKit request.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
