"""
Configuration module for Purse.

Contains constants, settings, and configuration values used throughout the application.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from purse.exceptions import ConfigurationError

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = PROJECT_ROOT / "logs"
ENV_FILE = PROJECT_ROOT / ".env"

# Database configuration
DEFAULT_DB_PATH = DATA_DIR / "purse.db"
DB_TIMEOUT = 10.0  # seconds

# Reserved category for synthesized entries (opening balances, adjustments)
SYSTEM_CATEGORY_ID = 1
SYSTEM_CATEGORY_NAME = "System"
CATEGORY_NAME_BLACKLIST = [SYSTEM_CATEGORY_NAME]

# Synthesized entry descriptions
INITIAL_BALANCE_DESCRIPTION = "Initial balance"
ADJUSTED_BALANCE_DESCRIPTION = "Adjusted balance"

# Entry constraints
MAX_DESCRIPTION_LENGTH = 256
MAX_LOCATION_LENGTH = 128

# Label constraints
MIN_NAME_LENGTH = 2
MAX_ACCOUNT_NAME_LENGTH = 256
MAX_LABEL_NAME_LENGTH = 64
MAX_CURRENCY_LENGTH = 10

# Month lookups
MIN_YEAR = 1900
MAX_YEARS_AHEAD = 10

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = LOG_DIR / "purse.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Environment variable names
ENV_DB_PATH = "PURSE_DB_PATH"
ENV_SIGNING_KEY = "PURSE_SIGNING_KEY"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once at startup."""

    db_path: Path
    signing_key: str
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(db_path={self.db_path!r}, signing_key='***', "
            f"log_level={self.log_level!r})"
        )


def load_settings(
    env_file: Optional[Path] = None,
    require_signing_key: bool = True,
) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional .env file to read before inspecting the environment
        require_signing_key: Whether a missing signing key is an error

    Returns:
        The loaded Settings

    Raises:
        ConfigurationError: If a required value is missing
    """
    if env_file is not None and env_file.exists():
        load_dotenv(env_file)

    signing_key = os.environ.get(ENV_SIGNING_KEY, "")
    if require_signing_key and not signing_key:
        raise ConfigurationError(
            f"{ENV_SIGNING_KEY} environment variable is not set"
        )

    db_path = os.environ.get(ENV_DB_PATH)

    return Settings(
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        signing_key=signing_key,
        log_level=os.environ.get("LOG_LEVEL", LOG_LEVEL).upper(),
    )


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level(level: Optional[str] = None):
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get((level or LOG_LEVEL).upper(), logging.INFO)
