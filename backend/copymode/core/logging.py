"""
Loguru setup shared by the API and the scripts.
"""
import sys
from loguru import logger

from copymode.core.config import settings


def configure_logging(level: str = None) -> None:
    """Replace loguru's default sink with a single stderr sink at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        backtrace=settings.DEBUG,
        diagnose=settings.DEBUG,
    )
