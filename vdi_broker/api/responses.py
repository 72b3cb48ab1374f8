"""
API response helpers for standardized responses.
"""

from typing import Any

from flask import jsonify, Response


def api_response(data: Any, status_code: int = 200) -> tuple[Response, int]:
    """
    Create a JSON API response carrying ``data`` as the body.

    Args:
        data: JSON-serializable response body
        status_code: HTTP status code

    Returns:
        Tuple of (response, status_code)
    """
    return jsonify(data), status_code


def api_error(message: str, status_code: int = 400, details: Any = None) -> tuple[Response, int]:
    """
    Create a standardized error API response.

    Args:
        message: Error message
        status_code: HTTP status code
        details: Optional error details

    Returns:
        Tuple of (response, status_code)
    """
    response = {"error": message}
    if details:
        response["details"] = details
    return jsonify(response), status_code
