"""
Flask API routes for the VDI Broker.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request, session
from flask_login import current_user, login_user, logout_user

from vdi_broker.api.audit import audit_log_response
from vdi_broker.api.auth import SessionUser, require_login
from vdi_broker.api.rate_limit import get_auth_limit, limiter
from vdi_broker.api.responses import api_error, api_response
from vdi_broker.api.validators import (
    ValidationError,
    parse_request_id,
    validate_password,
    validate_username,
)
from vdi_broker.container import get_services
from vdi_broker.domain.errors import ConflictError, LedgerError
from vdi_broker.domain.identity import verify_password
from vdi_broker.services import assignment

logger = logging.getLogger("vdi-broker")

# Type alias for Flask route returns
RouteResponse = tuple[Response, int]

# Create Blueprint
api = Blueprint("api", __name__)

api.before_request(require_login)
api.after_request(audit_log_response)


# =============================================================================
# Health
# =============================================================================

@api.route("/health")
@limiter.exempt
def health() -> RouteResponse:
    """Health check endpoint."""
    from vdi_broker.observability import collect_business_metrics

    services = get_services()
    collect_business_metrics(services)
    stats = services.ledger.get_stats()
    return api_response({
        "status": "healthy",
        "vdis": stats,
        "subscribers": len(services.notifier.subscriber_ids()),
        "channels": services.notifier.channel_count(),
    })


# =============================================================================
# Authentication
# =============================================================================

@api.route("/api/register", methods=["POST"])
@limiter.limit(get_auth_limit)
def register() -> RouteResponse:
    """Create an account and log it in."""
    data = request.get_json(silent=True) or {}
    username = validate_username(data.get("username"))
    password = validate_password(data.get("password"))

    try:
        user = get_services().identity.create_user(username, password)
    except ConflictError as e:
        return api_error(str(e), 400)

    session_user = SessionUser(user)
    _start_session(session_user)
    return api_response(session_user.to_dict(), 201)


@api.route("/api/login", methods=["POST"])
@limiter.limit(get_auth_limit)
def login() -> RouteResponse:
    """Verify credentials and start a session."""
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        return api_error("Invalid username or password", 401)

    user = get_services().identity.get_user_by_username(username)
    if user is None or not verify_password(user, password):
        logger.warning(f"Failed login for '{username}' from {request.remote_addr}")
        return api_error("Invalid username or password", 401)

    session_user = SessionUser(user)
    _start_session(session_user)
    logger.info(f"User logged in: {user.username}")
    return api_response(session_user.to_dict())


@api.route("/api/logout", methods=["POST"])
def logout() -> RouteResponse:
    """End the current session."""
    logout_user()
    session.clear()
    return api_response({"message": "Logged out"})


@api.route("/api/user")
def get_current_user() -> RouteResponse:
    """Return the authenticated user."""
    return api_response(current_user.to_dict())


def _start_session(session_user: SessionUser) -> None:
    session.clear()
    session.permanent = True
    login_user(session_user)


# =============================================================================
# VDIs
# =============================================================================

@api.route("/api/vdis")
def list_vdis() -> RouteResponse:
    """List all VDIs, each assigned one enriched with its holder's username."""
    return api_response(get_services().notifier.snapshot())


@api.route("/api/vdis/<vdi_id>/assign", methods=["POST"])
def assign_vdi(vdi_id: str) -> RouteResponse:
    """Claim a free VDI for the current user."""
    vdi = assignment.assign_vdi(get_services(), vdi_id, current_user.id)
    return api_response(vdi.to_dict())


@api.route("/api/vdis/<vdi_id>/request", methods=["POST"])
def request_vdi(vdi_id: str) -> RouteResponse:
    """Ask the holder of a VDI to hand it over to the current user."""
    vdi_request = assignment.request_vdi(get_services(), vdi_id, current_user.id)
    return api_response(vdi_request.to_dict())


# =============================================================================
# Requests
# =============================================================================

@api.route("/api/requests")
def list_requests() -> RouteResponse:
    """List every request, including decided ones."""
    return api_response([r.to_dict() for r in get_services().ledger.list_requests()])


@api.route("/api/requests/<request_id>/approve", methods=["POST"])
def approve_request(request_id: str) -> RouteResponse:
    """Approve a pending request, transferring the VDI to the requester."""
    vdi_request = assignment.approve_request(get_services(), parse_request_id(request_id))
    return api_response(vdi_request.to_dict())


@api.route("/api/requests/<request_id>/reject", methods=["POST"])
def reject_request(request_id: str) -> RouteResponse:
    """Reject a pending request."""
    vdi_request = assignment.reject_request(get_services(), parse_request_id(request_id))
    return api_response(vdi_request.to_dict())


# =============================================================================
# Error Handlers
# =============================================================================

@api.errorhandler(ValidationError)
def handle_validation_error(e: ValidationError) -> RouteResponse:
    """Handle validation errors."""
    return api_error(str(e), 400)


@api.errorhandler(LedgerError)
def handle_ledger_error(e: LedgerError) -> RouteResponse:
    """Handle NotFound/Conflict from the ledger."""
    logger.info(f"Rejected {request.method} {request.path}: {e}")
    return api_error(str(e), 400)


@api.errorhandler(500)
def handle_server_error(e: Exception) -> RouteResponse:
    """Handle 500 errors."""
    from vdi_broker.observability import ERRORS_TOTAL
    ERRORS_TOTAL.labels(endpoint=request.endpoint or "unknown").inc()
    logger.error(f"Internal server error: {e}")
    return api_error("Internal server error", 500)
