import secrets
from functools import wraps
from flask import request, jsonify, current_app

ADMIN_HEADER = "X-Admin-Token"

def is_admin_request() -> bool:
    expected = current_app.config.get("ADMIN_API_TOKEN")
    supplied = request.headers.get(ADMIN_HEADER)
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected, supplied)

def require_admin(fn):
    """
    Usage: @require_admin
    Admin callers are authenticated upstream; we only check the shared token they forward.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_app.config.get("ADMIN_API_TOKEN"):
            return jsonify(error="Admin access not configured"), 503
        if not is_admin_request():
            return jsonify(error="Forbidden"), 403
        return fn(*args, **kwargs)
    return wrapper
