"""
Structured logging for wallet activity ingestion.

Every line on stdout is one event: timestamp, level, logger, event_type and,
when a wallet is in scope, a truncated wallet_id. Addresses reach log fields
only through short_wallet(), so full wallets never appear in logs.

configure_logging() reads LOG_LEVEL and LOG_FORMAT at call time. Entry points
(main.py, the CLI, the API lifespan) call it after load_vouch_env() so values
from .env apply; get_logger() falls back to the process environment if no
entry point has configured logging yet. No other vouch_activity imports here.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog
from structlog._config import BoundLoggerLazyProxy

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "json"
WALLET_PREFIX_CHARS = 16


def _stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type (snake_case by convention)."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _level_value(name: str) -> int:
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str | None = None, fmt: str | None = None) -> str:
    """
    (Re)configure structlog from arguments or LOG_LEVEL / LOG_FORMAT.

    Returns the effective level name (upper case) so callers such as uvicorn
    can be started at the same level.
    """
    level_name = (level or os.getenv("LOG_LEVEL") or DEFAULT_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = DEFAULT_LEVEL
    output = (fmt or os.getenv("LOG_FORMAT") or DEFAULT_FORMAT).strip().lower()

    renderer: Any
    if output == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _stamp,
            _event_type,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_value(level_name)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        # module-level loggers must pick up a later configure_logging()
        cache_logger_on_first_use=False,
    )
    return level_name


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module; the event name is the first argument:
        logger = get_logger(__name__)
        logger.info("parse_batch_failed", batch=2, error=str(e))
    """
    if not structlog.is_configured():
        configure_logging()
    # same lazy proxy structlog.get_logger() builds; initial_values is passed as a
    # dict because a 'logger' keyword collides with wrap_logger()'s own parameter
    return BoundLoggerLazyProxy(None, logger_factory_args=(name,), initial_values={"logger": name})


def short_wallet(wallet: str) -> str:
    """Wallet address as written to logs: first 16 characters plus '...'."""
    if len(wallet) <= WALLET_PREFIX_CHARS:
        return wallet
    return wallet[:WALLET_PREFIX_CHARS] + "..."


def bind_wallet(wallet: str, name: str = "vouch_activity") -> structlog.BoundLogger:
    """Logger with wallet_id (truncated) bound to every event."""
    return get_logger(name).bind(wallet_id=short_wallet(wallet))
