import logging

from .constants import APP_NAME, SCHEMA_VERSION

VERSION = "1.0.0"

logger = logging.getLogger("CreatorTank")

_banner = f" {APP_NAME} Initialization "
logger.info("=" * 40 + _banner + "=" * 40)
logger.info(f"Package version: {VERSION}")
logger.info(f"Schema version: {SCHEMA_VERSION}")
logger.info("=" * (80 + len(_banner)))

__all__ = ["APP_NAME", "SCHEMA_VERSION", "VERSION"]
