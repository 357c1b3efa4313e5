"""
Configuration management for smokefree.

Loads database and push-service settings from environment variables.
"""

import logging
import os
from dotenv import load_dotenv

# Load .env file from project root
load_dotenv()

PUSH_API_BASE = os.getenv("PUSH_API_BASE")
PUSH_API_TOKEN = os.getenv("PUSH_API_TOKEN")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def validate_push_config():
    """Validate that push-service configuration is present."""
    missing = []

    if not PUSH_API_BASE:
        missing.append("PUSH_API_BASE")

    if not PUSH_API_TOKEN or PUSH_API_TOKEN == "your_token_here":
        missing.append("PUSH_API_TOKEN")

    if missing:
        raise ValueError(
            f"Missing required configuration: {', '.join(missing)}\n"
            "Please copy .env.example to .env and fill in your values.\n"
            "Achievements still unlock without push; only local notifications are stored."
        )


def is_push_configured() -> bool:
    """Return True when the push service can be called."""
    try:
        validate_push_config()
    except ValueError:
        return False
    return True


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for the entry points."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
