"""structlog configuration.

Console rendering for local runs, JSON lines in the container.
Context variables (request_id) are merged into every event.
"""

import logging
import sys

import structlog


def configure_logging(json_output: bool = False, level: int = logging.INFO) -> None:
    """Configure structlog and route stdlib logging through the same stream."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
        processors = [*shared_processors, structlog.processors.format_exc_info, renderer]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO; keep it quiet unless debugging
    logging.basicConfig(stream=sys.stderr, level=level, format="%(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)
