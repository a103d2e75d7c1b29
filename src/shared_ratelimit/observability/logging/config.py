"""Logging configuration and setup."""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

from shared_ratelimit.config.settings import LogFormat, LogLevel, ObservabilitySettings


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    format_type: LogFormat = LogFormat.JSON,
    log_file: str | None = None,
    enable_colors: bool = True,
    include_timestamps: bool = True,
) -> None:
    """Setup structured logging configuration."""

    # Configure standard library logging
    logging.basicConfig(
        level=getattr(logging, level.value),
        format="%(message)s",
        handlers=[
            (
                logging.StreamHandler(sys.stdout)
                if not log_file
                else logging.FileHandler(log_file)
            )
        ],
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if format_type == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer(default=str))
    elif format_type == LogFormat.CONSOLE:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_colors))
    elif format_type == LogFormat.STRUCTURED:
        processors.append(
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "logger", "event"],
                drop_missing=True,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_settings(settings: ObservabilitySettings) -> None:
    """Setup logging from observability settings."""
    setup_logging(
        level=settings.log_level,
        format_type=settings.log_format,
        log_file=settings.log_file,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    logger = structlog.get_logger(name)
    return logger  # type: ignore[no-any-return]


def setup_testing_logging() -> None:
    """Setup logging for testing environment."""
    setup_logging(
        level=LogLevel.WARNING,
        format_type=LogFormat.STRUCTURED,
        include_timestamps=False,
    )
