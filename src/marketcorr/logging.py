"""Structured logging configuration using structlog.

Every analysis run executes in its own asyncio task, so context bound with
bind_analysis_context() stays attached to that run's events only.
"""

import logging
import os

import structlog

# Third-party loggers that are chatty at INFO (one line per HTTP request or
# per exchange call).
_NOISY_LOGGERS = ("httpx", "httpcore", "ccxt", "uvicorn.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route stdlib and structlog output through one structlog formatter.

    Args:
        log_level: Root log level name.
        log_format: "json" for machine-readable lines, "console" for
            development. Defaults to the LOG_FORMAT environment variable,
            then "console".
    """
    log_format = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_analysis_context(generation: int, asset_a: str | None, asset_b: str | None) -> None:
    """Tag every event logged by the current task with the run it belongs to."""
    structlog.contextvars.bind_contextvars(
        generation=generation,
        asset_a=asset_a,
        asset_b=asset_b,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
