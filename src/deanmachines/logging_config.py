"""Loguru sink configuration driven by the LOG_LEVEL setting."""

import sys

from loguru import logger

from deanmachines.settings import get_settings

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str | None = None, serialize: bool = False) -> str:
    """Replace loguru's default sink with one at the configured level.

    Args:
        level: Override for settings.log_level
        serialize: Emit JSON records (for log shippers) instead of text

    Returns:
        The level name that was applied.
    """
    resolved = (level or get_settings().log_level).upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=resolved,
        format=_LOG_FORMAT,
        serialize=serialize,
        backtrace=False,
    )
    logger.debug("Logging configured | level={} | serialize={}", resolved, serialize)
    return resolved
