from functools import wraps
from flask import g, jsonify
from security.session import get_session_from_request


def load_current_user():
    user, reason = get_session_from_request()
    g.user = user
    g.session_reason = reason


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required", reason=getattr(g, "session_reason", None)), 401
        if not g.user.is_active:
            return jsonify(error="Account disabled"), 403
        return fn(*args, **kwargs)
    return wrapper
