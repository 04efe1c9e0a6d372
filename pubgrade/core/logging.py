"""Structured logging for the pubgrade CLI — structlog on top of stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

from pubgrade.exceptions import ConfigError

_DEFAULT_LEVEL = "WARNING"
_LOG_FORMATS = ("console", "json")

# Third-party loggers capped at WARNING.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def setup_logging(level: str | None = None) -> None:
    """Route structlog and stdlib records to stderr.

    *level* wins over ``PUBGRADE_LOG_LEVEL`` (default WARNING, so a plain
    ``pubgrade check`` prints only its report).  ``PUBGRADE_LOG_FORMAT``
    picks ``console`` or ``json`` output.  stdout is left to command output
    so ``check --json`` stays machine-readable.
    """
    log_level = (level or os.environ.get("PUBGRADE_LOG_LEVEL", _DEFAULT_LEVEL)).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"unknown log level: {log_level!r}")

    log_format = os.environ.get("PUBGRADE_LOG_FORMAT", "console").lower()
    if log_format not in _LOG_FORMATS:
        raise ConfigError(
            f"PUBGRADE_LOG_FORMAT must be one of {', '.join(_LOG_FORMATS)}, got {log_format!r}"
        )

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {name: {"level": "WARNING"} for name in _QUIET_LOGGERS}
    loggers["pubgrade"] = {"level": log_level}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "pubgrade": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "pubgrade",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": loggers,
        }
    )


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    # No ANSI colours when stderr is redirected to a file or CI log.
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
