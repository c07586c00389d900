"""structlog wiring for applications embedding stash.

stash's own events and records from ``redis`` / ``aiosqlite`` leave through
one stdlib handler.  structlog hands each event dict to that handler's
:class:`structlog.stdlib.ProcessorFormatter`, which renders it as JSON when
``Settings.app_env`` is ``"production"`` and as console lines otherwise.

The level comes from ``Settings.log_level`` unless the caller passes one
(``build_cache`` passes the ``logging.level`` value of the config file).
Calling :func:`configure_logging` again swaps the stash handler in place.
"""

from __future__ import annotations

import logging
import sys

import structlog

from stash.config.settings import Settings

# Name given to the root handler installed here, so a reconfigure replaces it.
HANDLER_NAME = "stash"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _final_processors(json_output: bool) -> list[structlog.types.Processor]:
    if json_output:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(settings: Settings | None = None, log_level: str | None = None) -> logging.Handler:
    """Route structlog and stdlib logging through one stash handler.

    Args:
        settings: Source of ``app_env`` and the default ``log_level``.
        log_level: Overrides ``settings.log_level`` when given.

    Returns:
        The root handler now carrying stash output.
    """
    settings = settings or Settings()
    level = (log_level or settings.log_level).upper()
    json_output = settings.app_env == "production"

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_final_processors(json_output),
            ],
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Named logger; output follows whatever :func:`configure_logging` set up."""
    return structlog.get_logger(name, logger_name=name)
