from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    ConsistencyFailure,
    DomainError,
    NotFoundError,
    OutOfWindowError,
    ValidationError,
)
from ..integrity.model import RequestMeta

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (AlreadyMarkedError, 409),
    (OutOfWindowError, 409),
    (ConsistencyFailure, 500),
)


def error_response(exc: DomainError):
    for exc_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            break
    else:
        status = 400
    return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status


def server_error(message: str):
    return jsonify({"success": False, "error": "ServerError", "message": message}), 500


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        if session.get("role") != Role.ADMIN.value:
            return error_response(AuthorizationError("Admin access required"))
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Optional[str]:
    user_id = session.get("user_id")
    return str(user_id) if user_id is not None else None


def request_meta() -> RequestMeta:
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() or request.remote_addr
    return RequestMeta(ip_address=ip or None, user_agent=request.headers.get("User-Agent") or None)
