"""Process entrypoint: ``python -m starship_realtime``."""

from __future__ import annotations

import logging
import sys

import uvicorn
from pydantic import ValidationError as SettingsValidationError

from starship_realtime.api.app import create_app
from starship_realtime.config import get_settings

logger = logging.getLogger("starship_realtime")


def main() -> int:
    """Load settings, configure logging and serve until interrupted."""
    try:
        settings = get_settings()
    except SettingsValidationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", e)
        return 1

    logging.basicConfig(
        level=settings.get_logging_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings.validate_requirements()
    except ValueError as e:
        logger.error("Refusing to start: %s", e)
        return 1

    logger.info("Starting with settings: %s", settings.redacted_summary())
    logger.info(
        "Starship realtime (%dh windows, %dh cap) on http://%s:%d",
        settings.window.max_hours,
        settings.window.realtime_hours,
        settings.host,
        settings.port,
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
