"""
Logging setup.

Configures the loguru logger for the service and the HTTP facade.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from coursechain.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """Configure logger with stderr output and optional file rotation."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Logging configured (level={settings.log_level})")
