"""
Constants and settings for the VDI Broker.
"""

import os
import re

# =============================================================================
# Constants
# =============================================================================

# VDI identifiers: prefix followed by a zero-padded number (VDI01, VDI02, ...)
VDI_ID_PATTERN = re.compile(r'^[A-Za-z]+[0-9]+$')
VDI_NUMBER_WIDTH = 2

# Username validation pattern (alphanumeric, dash, underscore, dot)
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9._-]+$')
MAX_USERNAME_LENGTH = 64

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 256

# Password hashing method passed to werkzeug (salted scrypt)
PASSWORD_HASH_METHOD = "scrypt"

SESSION_USER_KEY = "_user_id"


def get_env(key: str, default: str = None, required: bool = False) -> str:
    """
    Retrieve a configuration value from the environment.

    Args:
        key: Configuration key (converted to UPPER_SNAKE_CASE)
        default: Default value
        required: Whether the value is required

    Returns:
        Configuration value

    Raises:
        ValueError: If required value is missing
    """
    env_key = key.upper().replace("-", "_")
    value = os.environ.get(env_key, default)
    if required and not value:
        raise ValueError(f"Required configuration missing: {key}")
    return value
