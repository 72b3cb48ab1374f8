"""
Input validation functions for the API.
"""

from typing import Any

from vdi_broker.config.settings import (
    USERNAME_PATTERN,
    MAX_USERNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MAX_PASSWORD_LENGTH,
)


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


def validate_username(username: Any) -> str:
    """
    Validate and sanitize username.

    Args:
        username: The username to validate

    Returns:
        Sanitized username

    Raises:
        ValidationError: If username is invalid
    """
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username is required")

    username = username.strip()
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"Username exceeds maximum length of {MAX_USERNAME_LENGTH}")

    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Username contains invalid characters")

    return username


def validate_password(password: Any) -> str:
    """
    Validate a password chosen at registration.

    Raises:
        ValidationError: If password is missing or its length is out of bounds
    """
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError(f"Password exceeds maximum length of {MAX_PASSWORD_LENGTH}")

    return password


def parse_request_id(value: str) -> int:
    """
    Parse a request id taken from the URL path.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    try:
        request_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid request id") from None
    if request_id <= 0:
        raise ValidationError("Invalid request id")
    return request_id
