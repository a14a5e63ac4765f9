from flask import Blueprint, request, jsonify, g

from security.rbac import Permission, has_permission, require_permission
from utils.audit import log_security_event
from utils.errors import AuthorizationError, ValidationError
from utils.storage import key_owner, presigned_url
from utils.uploads import accept_upload

uploads_bp = Blueprint("uploads", __name__, url_prefix="/uploads")


@uploads_bp.post("")
@require_permission(Permission.UPLOAD_FILES)
def upload_file():
    purpose = (request.form.get("purpose") or "").strip().lower()
    key = accept_upload(request.files.get("file"), purpose, g.user)
    return jsonify(key=key, url=presigned_url(key)), 201


@uploads_bp.get("/url")
@require_permission(Permission.UPLOAD_FILES)
def signed_url():
    """Re-signs a stored key. Owners may sign their own keys; staff with VIEW_ANY_FILE any key."""
    key = (request.args.get("key") or "").strip()
    if not key or ".." in key or key.startswith("/"):
        raise ValidationError("Invalid key", details={"key": "invalid"})

    if key_owner(key) != g.user.id and not has_permission(Permission.VIEW_ANY_FILE):
        log_security_event("UNAUTHORIZED_FILE_ACCESS", severity="MEDIUM", user_id=g.user.id,
                           user_email=g.user.email, details={"key": key})
        raise AuthorizationError()

    return jsonify(key=key, url=presigned_url(key)), 200
