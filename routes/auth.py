from datetime import datetime

from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import User, Role
from models.college import College
from security.auth_flow import AuthState, LoginFailed, run_checks
from security.captcha import generate_captcha
from security.csrf import issue_csrf_token
from security.lockout import check_lock, record_failure, reset as reset_lockout
from security.otp import issue_otp, verify_otp, clear_otp, seconds_until_next_request
from security.password import hash_password
from security.password_policy import validate_password, password_strength
from security.rate_limit import check_and_increment_login_rate, check_and_increment_otp_rate
from security.rbac import Permission, require_permission
from security.session import (
    start_session, terminate_session, has_active_session, validate_session,
    set_session_cookie, clear_session_cookie,
)
from utils.audit import log_event, log_security_event
from utils.auth_context import login_required
from utils.emailer import send_otp_email
from utils.errors import (
    AccountLockedError, AuthenticationError, NotFoundError, RateLimitError, UpstreamError, ValidationError,
)
from utils.validation import is_valid_email, json_body, normalize_email, parse_int, require_fields

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

OTP_PURPOSES = ("login", "password_reset")
SELF_SIGNUP_ROLES = (Role.CUSTOMER, Role.ALUMNUS)
GENERIC_OTP_MESSAGE = "If the account exists, a code has been sent"


def _email_from(data) -> str:
    email = normalize_email(data.get("email"))
    if not is_valid_email(email):
        raise ValidationError("Invalid email", details={"email": "invalid"})
    return email


def _locked_error(status):
    return AccountLockedError(retry_after_seconds=status.remaining_seconds)


@auth_bp.get("/captcha")
def captcha():
    resp = jsonify(generate_captcha())
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    resp.headers["Pragma"] = "no-cache"
    return resp, 200


@auth_bp.post("/register")
def register():
    data = json_body()
    email = _email_from(data)
    password = data.get("password") or ""
    role = Role.parse(data.get("role") or Role.CUSTOMER.value)

    if role not in SELF_SIGNUP_ROLES:
        raise ValidationError("Role not available for self sign-up", details={"role": data.get("role")})

    valid, errors = validate_password(password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)

    college_id = None
    if role == Role.ALUMNUS:
        college_id = parse_int(data.get("college_id"), "college_id")
        if not College.query.filter_by(id=college_id, is_active=True).first():
            raise NotFoundError("College not found")

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", user_email=email, status="FAILURE")
        return jsonify(error="Email already registered"), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        college_id=college_id,
        full_name=(data.get("full_name") or "").strip() or None,
        # alumni wait for their college to confirm them
        is_verified=role != Role.ALUMNUS,
    )
    db.session.add(user)
    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id, user_email=email, entity="user", entity_id=user.id)

    return jsonify(message="Registered successfully"), 201


@auth_bp.post("/otp/request")
def request_otp():
    data = json_body()
    email = _email_from(data)
    purpose = data.get("purpose") or "login"
    if purpose not in OTP_PURPOSES:
        raise ValidationError("Invalid purpose", details={"allowed": list(OTP_PURPOSES)})

    allowed, retry_after = check_and_increment_otp_rate()
    if not allowed:
        log_event("OTP_RATE_LIMIT", user_email=email, status="WARNING", metadata={"retry_after": retry_after})
        raise RateLimitError("Too many OTP requests. Try again later.", retry_after_seconds=retry_after)

    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active:
        log_event("OTP_REQUEST_UNKNOWN", user_email=email, status="WARNING")
        return jsonify(message=GENERIC_OTP_MESSAGE), 200

    status = check_lock(user)
    if status.is_locked:
        raise _locked_error(status)

    wait = seconds_until_next_request(user)
    if wait:
        raise RateLimitError("Please wait before requesting another code.", retry_after_seconds=wait)

    code = issue_otp(user)
    sent, err = send_otp_email(user.email, code, purpose)
    if not sent:
        log_event("OTP_SEND_FAIL", user_id=user.id, status="FAILURE", metadata={"error": err})
        raise UpstreamError("Could not send code. Try again later.")

    log_event("OTP_SENT", user_id=user.id, user_email=user.email, metadata={"purpose": purpose})
    return jsonify(message=GENERIC_OTP_MESSAGE), 200


@auth_bp.post("/otp/verify")
def verify_otp_code():
    data = json_body()
    email = _email_from(data)
    user = User.query.filter_by(email=email).first()

    status = check_lock(user)
    if status.is_locked:
        raise _locked_error(status)

    if not user or not verify_otp(user, data.get("otp")):
        status = record_failure(user)
        log_event("OTP_VERIFY_FAIL", user_id=user.id if user else None, user_email=email, status="FAILURE",
                  metadata={"failed_attempts": status.failed_attempts})
        if status.locked_now:
            raise _locked_error(status)
        raise AuthenticationError("Invalid or expired code")

    log_event("OTP_VERIFY_SUCCESS", user_id=user.id, user_email=email)
    return jsonify(valid=True), 200


@auth_bp.post("/login")
def login():
    data = json_body()
    email = normalize_email(data.get("email"))

    allowed, retry_after = check_and_increment_login_rate()
    if not allowed:
        log_event("LOGIN_RATE_LIMIT", user_email=email, status="WARNING", metadata={"retry_after": retry_after})
        raise RateLimitError("Too many login requests. Slow down.", retry_after_seconds=retry_after)

    user = User.query.filter_by(email=email).first() if is_valid_email(email) else None

    status = check_lock(user)
    if status.is_locked:
        log_event("LOGIN_LOCKED", user_id=user.id, user_email=email, status="FAILURE",
                  metadata={"seconds_left": status.remaining_seconds})
        raise _locked_error(status)

    try:
        run_checks(user, data)
    except LoginFailed as failure:
        status = record_failure(user)
        log_event(
            "LOGIN_FAIL",
            user_id=user.id if user else None,
            user_email=email,
            status="FAILURE",
            metadata={
                "state": failure.state.value,
                "reason": failure.reason,
                "fail_count": status.failed_attempts,
                "locked_now": status.locked_now,
            },
        )
        if status.locked_now:
            log_security_event("ACCOUNT_LOCKED", severity="HIGH", user_id=user.id, user_email=email,
                               details={"lockout_count": status.lockout_count})
            raise AccountLockedError(
                "Too many failed attempts. Account locked.",
                retry_after_seconds=status.remaining_seconds,
                details={"lockout_minutes": current_app.config.get("LOCKOUT_MINUTES", 30)},
            )
        raise AuthenticationError("Invalid credentials")

    raw_token = start_session(user)
    state = AuthState.AUTHENTICATED

    resp = jsonify(message="Login OK", user=user.to_dict(), state=state.value)
    set_session_cookie(resp, raw_token)
    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, user_email=user.email)
    return resp, 200


@auth_bp.post("/check-lock-status")
def check_lock_status():
    data = json_body()
    email = _email_from(data)
    user = User.query.filter_by(email=email).first()
    return jsonify(check_lock(user).to_dict()), 200


@auth_bp.post("/check-active-session")
def check_active_session():
    data = json_body()
    email = _email_from(data)
    user = User.query.filter_by(email=email).first()

    active = has_active_session(user)
    if active:
        log_security_event("CONCURRENT_SESSION_ATTEMPT", severity="LOW", user_id=user.id, user_email=email)
    return jsonify(has_active_session=active), 200


@auth_bp.get("/session-validation")
def session_validation():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "campusprint_session")
    user = getattr(g, "user", None)
    if user is not None:
        return jsonify(valid=True, user=user.to_dict()), 200

    # before_request already cleared an expired session; report why
    reason = getattr(g, "session_reason", None)
    if reason is None:
        _, reason = validate_session(request.cookies.get(cookie_name))
    resp = jsonify(valid=False, reason=reason)
    return clear_session_cookie(resp), 401


@auth_bp.post("/terminate-sessions")
@require_permission(Permission.MANAGE_SESSIONS)
def terminate_sessions():
    data = json_body()
    require_fields(data, "user_id")
    target = db.session.get(User, parse_int(data.get("user_id"), "user_id"))
    if not target:
        raise NotFoundError("User not found")

    terminated = terminate_session(target, reason="ADMIN_SESSION_TERMINATE")
    log_security_event("SESSION_TERMINATED_BY_ADMIN", severity="MEDIUM", user_id=target.id,
                       user_email=target.email, details={"admin_id": g.user.id})
    return jsonify(terminated=terminated), 200


@auth_bp.post("/password_strength")
def check_password_strength():
    data = json_body()
    password = data.get("password") or ""
    return jsonify(password_strength(password)), 200


@auth_bp.post("/password-reset")
def password_reset():
    data = json_body()
    require_fields(data, "email", "otp", "new_password")
    email = _email_from(data)
    user = User.query.filter_by(email=email).first()

    status = check_lock(user)
    if status.is_locked:
        raise _locked_error(status)

    if not user or not verify_otp(user, data.get("otp")):
        status = record_failure(user)
        log_event("PASSWORD_RESET_FAIL", user_id=user.id if user else None, user_email=email, status="FAILURE")
        if status.locked_now:
            raise _locked_error(status)
        raise AuthenticationError("Invalid or expired code")

    new_password = data.get("new_password")
    valid, errors = validate_password(new_password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)

    user.password_hash = hash_password(new_password)
    user.password_changed_at = datetime.utcnow()
    clear_otp(user)
    reset_lockout(user, commit=False)
    db.session.commit()

    # a reset ends any live session
    terminate_session(user, reason="PASSWORD_RESET_LOGOUT")
    log_event("PASSWORD_RESET_SUCCESS", user_id=user.id, user_email=email)
    return jsonify(message="Password updated"), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(g.user.to_dict()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    terminate_session(g.user, reason="LOGOUT")

    resp = jsonify(message="Logged out")
    clear_session_cookie(resp)
    return resp, 200
