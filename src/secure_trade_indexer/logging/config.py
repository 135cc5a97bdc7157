# -*- coding: utf-8 -*-
"""structlog setup for scanner runs.

Each pass logs through stdlib handlers: a console stream (quiet under
suppress_logs) and an optional daily JSON file. Events can also be shipped
to Logfire.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

import logfire
import structlog
from structlog.types import EventDict, Processor

from secure_trade_indexer.config import LoggingSettings, Settings, get_settings

# Per-request client chatter
_NOISY_LOGGERS = ("aiohttp", "aiohttp.client")


def _add_run_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach logger name, service, mirror environment and operator to every event."""
    stdlib_logger = getattr(logger, "_logger", None)
    event_dict["logger"] = (
        getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
    )
    settings = get_settings()
    event_dict["app_name"] = settings.app.service_name or settings.app.app_name
    if settings.app.service_version:
        event_dict["service_version"] = settings.app.service_version
    event_dict["environment"] = settings.app.environment
    if settings.mirror.environment:
        event_dict.setdefault("ledger_environment", settings.mirror.environment)
    event_dict.setdefault("operator_account", settings.mirror.operator_account)
    return event_dict


def _console_handler(logging_settings: LoggingSettings) -> logging.Handler:
    level = (
        logging.ERROR
        if logging_settings.suppress_logs
        else logging.getLevelName(logging_settings.console_level)
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(logging_settings: LoggingSettings) -> logging.Handler:
    path = Path(logging_settings.log_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        path,
        when="midnight",
        backupCount=logging_settings.log_file_backup_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(logging.getLevelName(logging_settings.file_level))
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _configure_logfire(settings: Settings) -> None:
    logfire.configure(
        token=settings.logging.logfire_token,
        service_name=settings.app.service_name or settings.app.app_name,
        service_version=settings.app.service_version,
        environment=settings.app.environment,
    )


def configure_logging() -> None:
    """Configure stdlib handlers, structlog and (optionally) Logfire from settings."""
    settings = get_settings()
    logging_settings = settings.logging

    handlers: list[logging.Handler] = []
    if logging_settings.log_to_console:
        handlers.append(_console_handler(logging_settings))
    if logging_settings.log_to_file:
        handlers.append(_file_handler(logging_settings))
    if handlers:
        logging.basicConfig(
            level=min(h.level for h in handlers), handlers=handlers, force=True
        )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_run_context,
    ]

    if logging_settings.logfire_enabled:
        _configure_logfire(settings)
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]

    # The file sink is always JSON; the console alone may use the dev renderer.
    if handlers:
        use_json = logging_settings.log_to_file or logging_settings.json_format
        renderer: Any = (
            structlog.processors.JSONRenderer()
            if use_json
            else structlog.dev.ConsoleRenderer()
        )
        processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
