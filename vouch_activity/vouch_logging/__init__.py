"""
Structured logging for Vouch activity.

JSON logs with timestamp, wallet_id, event_type. Use get_logger() in all
modules; entry points call configure_logging() once env is loaded.
"""

from vouch_activity.vouch_logging.logger import (
    bind_wallet,
    configure_logging,
    get_logger,
    short_wallet,
)

__all__ = ["bind_wallet", "configure_logging", "get_logger", "short_wallet"]
