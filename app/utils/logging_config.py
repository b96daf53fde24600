"""
Logging configuration.

Configures loguru sinks for long-running processes.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logger with stderr output and optional file rotation.

    Args:
        level: Minimum log level
        log_file: Path of the rotating log file (None disables it)
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )
