"""
Loguru logging configuration.

- Colorized console output in development
- JSON lines everywhere else
- Correlation ID on every record
- Optional rotating file sink
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

    from models.config import Settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """
    Stamp the correlation ID onto a log record.

    Args:
        record: Loguru log record.

    Returns:
        Always True (never drops messages).
    """
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(settings: "Settings") -> None:
    """
    Configure Loguru for the application.

    Args:
        settings: Application settings (ENVIRONMENT and LOG_FILE are used).
    """
    logger.remove()

    development = settings.ENVIRONMENT == "development"

    if development:
        logger.add(
            sys.stderr,
            format=LOG_FORMAT,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            format=LOG_FORMAT if development else "{message}",
            level="INFO",
            filter=correlation_filter,
            rotation="10 MB",
            retention="7 days",
            serialize=not development,
        )
