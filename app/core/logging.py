"""Logging configuration."""
import logging
import sys
from typing import Optional

from app.core.config import settings

# Driver and client loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "sqlalchemy.engine", "aiosqlite", "asyncpg")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging at ``level`` (defaults to LOG_LEVEL)."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"[LOGGING] {settings.shop_name} ordering logging at {level_name}"
    )
