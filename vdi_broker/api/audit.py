"""
Audit logging for state-changing API actions.

Logs all write operations (POST) as structured JSON to stdout via a
dedicated 'audit' logger. GET requests are not audited.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone

from flask import request, Response
from flask_login import current_user

# Dedicated audit logger
audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)
audit_logger.propagate = False

# JSON formatter for structured output
_handler = logging.StreamHandler(sys.stdout)


class _JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(record.msg, ensure_ascii=False)


_handler.setFormatter(_JsonFormatter())
audit_logger.addHandler(_handler)

# Every state-changing route is a POST
AUDIT_METHODS = frozenset({"POST"})

# Patterns to extract target ids from paths like /api/vdis/<id>/assign
_VDI_RE = re.compile(r"/api/vdis/([^/]+)")
_REQUEST_RE = re.compile(r"/api/requests/([^/]+)")


def audit_log_response(response: Response) -> Response:
    """
    after_request hook that logs state-changing actions.

    Attach to a Blueprint via: blueprint.after_request(audit_log_response)
    """
    if request.method not in AUDIT_METHODS:
        return response

    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": "api_action",
        "method": request.method,
        "path": request.path,
        "endpoint": request.endpoint,
        "status_code": response.status_code,
        "remote_addr": request.remote_addr,
    }

    if current_user.is_authenticated:
        entry["user_id"] = current_user.id

    match = _VDI_RE.search(request.path)
    if match:
        entry["vdi_id"] = match.group(1)
    match = _REQUEST_RE.search(request.path)
    if match:
        entry["request_id"] = match.group(1)

    audit_logger.info(entry)
    return response
