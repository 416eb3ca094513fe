import logging
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.adapters.store_factory import is_supported_store_url
from src.api.deps import Settings

logger = logging.getLogger(__name__)


def check_settings(settings: Settings) -> list[str]:
    """Return a list of configuration problems (empty when valid)."""
    problems = []

    # 1. Store connection string
    if not settings.store_url:
        problems.append("MONGODB_URI is not set")
    elif not is_supported_store_url(settings.store_url):
        problems.append(
            "MONGODB_URI has an unrecognized scheme "
            "(expected mongodb://, mongodb+srv://, sqlite:/// or memory://)"
        )

    # 2. Port
    if not 0 < settings.port < 65536:
        problems.append("PORT must be an integer between 1 and 65535")

    # 3. Display timezone
    if settings.display_timezone:
        try:
            ZoneInfo(settings.display_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            problems.append(f"DISPLAY_TIMEZONE '{settings.display_timezone}' is not a known zone")

    return problems


def validate_settings(settings: Settings) -> None:
    """
    Validate configuration before startup. Exits the process on failure.
    """
    problems = check_settings(settings)
    if problems:
        for problem in problems:
            logger.critical("Configuration error: %s", problem)
        sys.exit(1)

    logger.info("Configuration validated.")
