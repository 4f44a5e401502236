"""
Runner script for Purse.

This module handles logging setup, configuration loading and context startup.
"""

import logging
import sys

from purse.config import (
    ENV_FILE,
    LOG_FILE,
    LOG_FORMAT,
    ensure_directories,
    get_log_level,
    load_settings,
)
from purse.context import AppContext, build_context
from purse.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def configure_logging(level: str = None):
    """Log to the purse log file and to stdout."""
    ensure_directories()
    logging.basicConfig(
        level=get_log_level(level),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_FILE),
            logging.StreamHandler(sys.stdout),
        ],
    )


def start() -> AppContext:
    """
    Load settings and build the application context.

    Raises:
        ConfigurationError: If required settings are missing
    """
    settings = load_settings(ENV_FILE)
    configure_logging(settings.log_level)

    if ENV_FILE.exists():
        logger.info(f"Loaded environment from {ENV_FILE}")
    else:
        logger.warning(f".env file not found at {ENV_FILE}")

    logger.info("Starting Purse ledger...")
    context = build_context(settings)
    logger.info(f"Purse ledger ready, database at {settings.db_path}")
    return context


def run():
    """Start Purse, exiting with a message when configuration is incomplete."""
    try:
        start()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.detail}")
        print(f"Error: {e.detail}")
        print("Set it in the environment or in a .env file next to the project.")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Failed to start Purse: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
