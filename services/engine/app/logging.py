from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(log_level: str, *, render_json: bool = True) -> None:
    """
    Engine code only emits events; the embedding service (or a CLI) decides how they render.

    JSON lines for services, a console renderer for the seed/eval CLIs.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level.upper())
    renderer = structlog.processors.JSONRenderer() if render_json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        cache_logger_on_first_use=True,
    )


def component_logger(component: str) -> structlog.typing.BindableLogger:
    # Stays a lazy proxy so configure_logging() still applies after import.
    return structlog.get_logger(component=component)

