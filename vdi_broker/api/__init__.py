"""API module for Flask routes, WebSocket endpoint and helpers."""

from vdi_broker.api.validators import (
    ValidationError,
    validate_username,
    validate_password,
    parse_request_id,
)
from vdi_broker.api.responses import api_response, api_error
from vdi_broker.api.auth import require_login, init_auth

__all__ = [
    "ValidationError",
    "validate_username",
    "validate_password",
    "parse_request_id",
    "api_response",
    "api_error",
    "require_login",
    "init_auth",
]
