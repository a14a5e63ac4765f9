import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.user import User
from security.lockout import reset as reset_lockout
from security.otp import clear_otp
from utils.audit import client_ip, client_user_agent, log_event, log_security_event

NO_SESSION = "No session"
NOT_LOGGED_IN = "User not logged in"
SESSION_EXPIRED = "Session expired"
SESSION_IDLE = "Session timed out due to inactivity"


def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _idle_delta() -> timedelta:
    return timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 3600))


def _expiry_reason(user: User, now: datetime):
    if user.session_expires_at is None or user.session_expires_at <= now:
        return SESSION_EXPIRED
    last_seen = user.last_activity or user.session_created_at
    if last_seen is None or last_seen + _idle_delta() <= now:
        return SESSION_IDLE
    return None


def _clear_session(user: User, now: datetime, drop_token: bool) -> None:
    user.is_logged_in = False
    user.session_expires_at = None
    user.last_logout_at = now
    if drop_token:
        user.session_token_hash = None


def has_active_session(user: User, now=None) -> bool:
    if user is None or not user.is_logged_in:
        return False
    return _expiry_reason(user, now or datetime.utcnow()) is None


def start_session(user: User, now=None) -> str:
    """
    Completes a login: clears OTP and lockout state and replaces whatever
    session the account had. Returns the RAW token for the cookie; only
    its hash is stored.
    """
    now = now or datetime.utcnow()
    replaced = has_active_session(user, now)

    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 3600)

    clear_otp(user)
    reset_lockout(user, commit=False)

    user.is_logged_in = True
    user.session_token_hash = _hash_token(raw_token)
    user.session_created_at = now
    user.session_expires_at = now + timedelta(seconds=lifetime)
    user.session_ip = client_ip()
    user.session_user_agent = client_user_agent()
    user.last_activity = now
    user.last_login_at = now
    db.session.commit()

    if replaced:
        log_security_event(
            "CONCURRENT_SESSION_TERMINATED",
            severity="MEDIUM",
            user_id=user.id,
            user_email=user.email,
            details={"reason": "New login replaced the previous session"},
        )
    return raw_token


def validate_session(raw_token, now=None):
    """
    Returns (user, None) for a live session or (None, reason).
    Expired and idle sessions are cleared on the way out.
    """
    if not raw_token:
        return None, NO_SESSION

    now = now or datetime.utcnow()
    user = User.query.filter_by(session_token_hash=_hash_token(raw_token)).first()
    if not user:
        return None, NO_SESSION
    if not user.is_logged_in:
        return None, NOT_LOGGED_IN

    reason = _expiry_reason(user, now)
    if reason:
        _clear_session(user, now, drop_token=False)
        db.session.commit()
        log_event("SESSION_" + ("EXPIRED" if reason == SESSION_EXPIRED else "IDLE_TIMEOUT"),
                  user_id=user.id, user_email=user.email, status="WARNING")
        return None, reason

    # Update activity timestamp (touch)
    user.last_activity = now
    db.session.commit()
    return user, None


def get_session_from_request():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "campusprint_session")
    return validate_session(request.cookies.get(cookie_name))


def terminate_session(user: User, reason="LOGOUT", now=None) -> bool:
    """Ends the account's session. Returns False when there was none."""
    had_session = user.is_logged_in
    _clear_session(user, now or datetime.utcnow(), drop_token=True)
    db.session.commit()
    if had_session:
        log_event(reason, user_id=user.id, user_email=user.email, entity="session")
    return had_session


def cleanup_expired_sessions(now=None, actor_id=None) -> int:
    now = now or datetime.utcnow()
    idle_cutoff = now - _idle_delta()

    stale = (
        User.query
        .filter(User.is_logged_in.is_(True))
        .filter(
            db.or_(
                User.session_expires_at.is_(None),
                User.session_expires_at <= now,
                User.last_activity.is_(None),
                User.last_activity <= idle_cutoff,
            )
        )
        .all()
    )
    for user in stale:
        _clear_session(user, now, drop_token=True)
    db.session.commit()

    log_event("BULK_SESSION_CLEANUP", user_id=actor_id, entity="session",
              metadata={"cleared": len(stale)})
    return len(stale)


def set_session_cookie(resp, raw_token: str):
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "campusprint_session"),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 3600),
        path="/",
    )
    return resp


def clear_session_cookie(resp):
    resp.delete_cookie(current_app.config.get("AUTH_COOKIE_NAME", "campusprint_session"), path="/")
    return resp
