import hmac
from functools import wraps
from flask import current_app, jsonify, request

ADMIN_TOKEN_HEADER = "X-Admin-Token"

def require_admin(fn):
    """
    Usage: @require_admin
    Admin identity lives outside this service; callers present the shared token.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_TOKEN")
        if not expected:
            return jsonify(error="Admin access not configured"), 503

        supplied = request.headers.get(ADMIN_TOKEN_HEADER)
        if not supplied:
            return jsonify(error="Authentication required"), 401
        if not hmac.compare_digest(supplied, expected):
            return jsonify(error="Forbidden"), 403

        return fn(*args, **kwargs)
    return wrapper
