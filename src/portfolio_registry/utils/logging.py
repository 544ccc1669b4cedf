"""Logging setup for the portfolio registry.

Registry events are logged as a short message followed by ``key=value``
context, for example::

    Portfolio created | portfolio_id=1 owner=alice token_count=2

The level and format come from the ``logging`` section of the registry
configuration (see :func:`setup_logging_from_config`).
"""

import logging
import sys
from typing import Any

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_format: str | None = None,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        log_format: Custom format string. Defaults to ``DEFAULT_LOG_FORMAT``.

    Example:
        >>> setup_logging(level="DEBUG")
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=log_format or DEFAULT_LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def setup_logging_from_config(config: Any) -> None:
    """Configure logging from the ``logging.level`` and ``logging.format`` keys.

    Args:
        config: A :class:`~portfolio_registry.utils.config.Config`.
    """
    setup_logging(
        level=config.get("logging.level", DEFAULT_LOG_LEVEL),
        log_format=config.get("logging.format"),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)


def _format_value(value: Any) -> str:
    text = str(value)
    # Keep multi-word values (error reasons, addresses with spaces) as one field
    if not text or any(ch.isspace() for ch in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log a registry event with ``key=value`` context.

    Fields whose value is None are left out. Values containing whitespace
    are double-quoted.

    Example:
        >>> log_with_context(
        ...     logger, "warning", "Rebalance rejected",
        ...     portfolio_id=3, error="NotAuthorized", reason="caller is not the owner",
        ... )
        # Logs: 'Rebalance rejected | portfolio_id=3 error=NotAuthorized
        #        reason="caller is not the owner"'
    """
    log_func = getattr(logger, level.lower())

    fields = " ".join(
        f"{key}={_format_value(value)}"
        for key, value in context.items()
        if value is not None
    )
    log_func(f"{message} | {fields}" if fields else message)
