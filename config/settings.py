import logging
import os

from dotenv import load_dotenv

"""
Configuration settings for the Pokedex proxy.

This module loads environment variables, defines constants for the proxy's
operation, and validates the configuration to ensure stability. It handles
the upstream API endpoint, transport timeouts, server binding and logging.
"""

load_dotenv()

logger = logging.getLogger("pokedex_proxy.config")

# Upstream API Configuration
POKEAPI_URL = os.getenv("POKEAPI_URL", "https://pokeapi.co/api/v2").rstrip("/")

try:
    API_REQUEST_TIMEOUT = float(os.getenv("API_REQUEST_TIMEOUT", "30"))
except (ValueError, TypeError):
    raise ValueError(
        "❌ API_REQUEST_TIMEOUT must be a number of seconds!\n\n"
        "Example .env entry:\n"
        "  API_REQUEST_TIMEOUT=30"
    )

# Server Configuration
HOST = os.getenv("HOST", "0.0.0.0")

try:
    PORT = int(os.getenv("PORT", "3001"))
except (ValueError, TypeError):
    raise ValueError(
        "❌ PORT must be a valid integer!\n\n"
        "Example .env entry:\n"
        "  PORT=3001"
    )

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")  # Optional, stdout only when unset

# Aggregation Settings
SEARCH_RESULT_LIMIT = 50  # Maximum entries returned by a search
SPECIES_INDEX_LIMIT = 1500  # Page size used to pull the whole species index
MAX_GENERATION = 9
SPECIES_LANGUAGE = "en"  # Language of the genus label


def validate_settings():
    """
    Validate all configuration settings to catch errors at startup.

    Raises:
        ValueError: If any configuration value is invalid (e.g., negative
            timeouts, out-of-range ports, malformed upstream URL).
    """
    if not POKEAPI_URL.startswith(("http://", "https://")):
        raise ValueError("POKEAPI_URL must be an http(s) URL")

    if API_REQUEST_TIMEOUT <= 0:
        raise ValueError("API_REQUEST_TIMEOUT must be positive")

    if PORT < 1 or PORT > 65535:
        raise ValueError("PORT must be between 1 and 65535")

    if SEARCH_RESULT_LIMIT < 1:
        raise ValueError("SEARCH_RESULT_LIMIT must be at least 1")

    if SPECIES_INDEX_LIMIT < 1:
        raise ValueError("SPECIES_INDEX_LIMIT must be at least 1")

    if MAX_GENERATION < 1:
        raise ValueError("MAX_GENERATION must be at least 1")

    if getattr(logging, LOG_LEVEL.upper(), None) is None:
        raise ValueError(f"LOG_LEVEL '{LOG_LEVEL}' is not a valid logging level")

    logger.info("✅ Configuration validation completed successfully")
