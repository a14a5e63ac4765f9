from datetime import datetime

from flask import Blueprint, request, jsonify, g

from models import db
from models.user import User
from security.lockout import check_lock, record_failure, reset as reset_lockout
from security.password import hash_password, verify_password
from security.password_policy import validate_password
from utils.audit import log_event, log_security_event
from utils.auth_context import login_required
from utils.errors import AccountLockedError, AuthenticationError, ConflictError, ValidationError
from utils.storage import presigned_url
from utils.uploads import accept_upload
from utils.validation import clean_str, is_valid_phone, json_body, require_fields

profile_bp = Blueprint("profile", __name__, url_prefix="/profile")


def _profile(user: User) -> dict:
    out = user.to_dict()
    out["avatar_url"] = presigned_url(user.avatar_key) if user.avatar_key else None
    student = getattr(user, "student", None)
    teacher = getattr(user, "teacher", None)
    if student is not None:
        out["student"] = student.to_dict()
    if teacher is not None:
        out["teacher"] = teacher.to_dict()
    return out


@profile_bp.get("")
@login_required
def get_profile():
    return jsonify(_profile(g.user)), 200


@profile_bp.patch("")
@login_required
def update_profile():
    data = json_body()
    user = g.user

    if "full_name" in data:
        user.full_name = clean_str(data.get("full_name"), 120)
    if "phone_number" in data:
        phone = clean_str(data.get("phone_number"), 30)
        if phone and not is_valid_phone(phone):
            raise ValidationError("Invalid phone number", details={"phone_number": "invalid"})
        user.phone_number = phone
    if "username" in data:
        username = clean_str(data.get("username"), 80)
        if username and User.query.filter(User.username == username, User.id != user.id).first():
            raise ConflictError("Username already taken")
        user.username = username

    db.session.commit()
    log_event("PROFILE_UPDATE", user_id=user.id, metadata={"fields": sorted(data.keys())})
    return jsonify(_profile(user)), 200


@profile_bp.post("/avatar")
@login_required
def upload_avatar():
    key = accept_upload(request.files.get("file"), "profile", g.user)
    g.user.avatar_key = key
    db.session.commit()
    return jsonify(avatar_key=key, avatar_url=presigned_url(key)), 200


@profile_bp.post("/password")
@login_required
def change_password():
    """
    Wrong current passwords count against the same per-account lockout
    as failed logins.
    """
    data = json_body()
    require_fields(data, "current_password", "new_password")
    user = g.user

    status = check_lock(user)
    if status.is_locked:
        raise AccountLockedError(retry_after_seconds=status.remaining_seconds)

    if not verify_password(data.get("current_password"), user.password_hash):
        status = record_failure(user)
        log_event("PASSWORD_CHANGE_FAIL", user_id=user.id, status="FAILURE",
                  metadata={"failed_attempts": status.failed_attempts, "locked_now": status.locked_now})
        if status.locked_now:
            log_security_event("ACCOUNT_LOCKED", severity="HIGH", user_id=user.id, user_email=user.email,
                               details={"source": "password_change"})
            raise AccountLockedError(retry_after_seconds=status.remaining_seconds)
        raise AuthenticationError("Current password is incorrect")

    new_password = data.get("new_password")
    if verify_password(new_password, user.password_hash):
        raise ValidationError("New password must be different from the current password")
    valid, errors = validate_password(new_password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)

    user.password_hash = hash_password(new_password)
    user.password_changed_at = datetime.utcnow()
    reset_lockout(user)

    log_event("PASSWORD_CHANGE", user_id=user.id)
    return jsonify(message="Password updated"), 200
