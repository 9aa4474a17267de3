from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import flash, jsonify, redirect, render_template, request, session, url_for

from ..core.enums import Role
from ..core.exceptions import DomainError, NotFoundError

logger = logging.getLogger(__name__)


def render_forbidden():
    current_user = {"full_name": session.get("name"), "role": session.get("role")}
    return render_template("403.html", current_user=current_user), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            if request.is_json or request.path.startswith("/api/"):
                return jsonify({"success": False, "message": "Authentication required"}), 401
            return redirect(url_for("login"))

        if session.get("role") != Role.ADMIN.value:
            if request.is_json or request.path.startswith("/api/"):
                return jsonify({"success": False, "message": "Admin access required"}), 403
            return render_forbidden()

        return view(*args, **kwargs)

    return wrapper


def json_error(e: Exception, *, debug: bool = False):
    """Map an exception raised by a service to a JSON error response."""
    if isinstance(e, NotFoundError):
        return jsonify({"success": False, "message": str(e)}), 404
    if isinstance(e, DomainError):
        return jsonify({"success": False, "message": str(e)}), 400
    logger.exception("Unexpected error on %s", request.path)
    message = f"System error: {e}" if debug else "System error"
    return jsonify({"success": False, "message": message}), 500


def request_values(name: str) -> list[str]:
    """Repeated query/form values, also accepting `name[]` and JSON lists."""
    payload = request.get_json(silent=True) if request.is_json else None
    if isinstance(payload, dict) and name in payload:
        value = payload.get(name)
        if value is None:
            return []
        return [str(v) for v in value] if isinstance(value, (list, tuple)) else [str(value)]
    values = request.values.getlist(name) or request.values.getlist(f"{name}[]")
    return [v for v in values if v != ""]


def request_value(name: str, default: Optional[str] = None) -> Optional[str]:
    payload = request.get_json(silent=True) if request.is_json else None
    if isinstance(payload, dict) and name in payload:
        value = payload.get(name)
        return default if value is None else str(value)
    return request.values.get(name, default)
