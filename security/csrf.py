import hmac
import secrets
from flask import request, jsonify, current_app

from utils.audit import log_security_event

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"


def issue_csrf_token(resp):
    """Double-submit token: readable cookie the client echoes in a header."""
    token = secrets.token_urlsafe(32)
    resp.set_cookie(
        CSRF_COOKIE,
        token,
        httponly=False,  # must be readable by client JS
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 3600),
        path="/",
    )
    return resp


def require_csrf(user=None):
    cookie_token = request.cookies.get(CSRF_COOKIE) or ""
    header_token = request.headers.get(CSRF_HEADER) or ""
    if cookie_token and header_token and hmac.compare_digest(cookie_token, header_token):
        return None

    log_security_event(
        "CSRF_VALIDATION_FAILED",
        severity="MEDIUM",
        user_id=user.id if user else None,
        user_email=user.email if user else None,
        details={"path": request.path, "method": request.method},
    )
    return jsonify(error="CSRF validation failed"), 403
