from flask import Blueprint, request, jsonify, g

from models import db
from models.college import College
from models.user import Role
from security.rbac import Permission, Scope, require_permission, scope_for
from utils.accounts import new_account
from utils.audit import log_event
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.storage import presigned_url
from utils.uploads import accept_upload
from utils.validation import (
    clean_str, is_valid_email, is_valid_phone, json_body, normalize_email, paginate, parse_date, require_fields,
)

colleges_bp = Blueprint("colleges", __name__, url_prefix="/colleges")

EDITABLE_FIELDS = ("name", "address", "website_url", "contact_email", "contact_phone")


def _normalize_name(name: str) -> str:
    return " ".join(name.split()).lower()


def _get_college(college_id: int) -> College:
    college = db.session.get(College, college_id)
    if not college:
        raise NotFoundError("College not found")
    if scope_for(g.user.role) != Scope.GLOBAL and g.user.college_id != college.id:
        raise AuthorizationError()
    return college


def _apply_fields(college: College, data: dict):
    if "name" in data:
        name = clean_str(data.get("name"), 160)
        if not name:
            raise ValidationError("Name is required", details={"name": "required"})
        normalized = _normalize_name(name)
        clash = College.query.filter(College.name_normalized == normalized, College.id != college.id).first()
        if clash:
            raise ConflictError("A college with this name already exists")
        college.name = name
        college.name_normalized = normalized
    if "address" in data:
        college.address = clean_str(data.get("address")) or college.address
    if "established_on" in data:
        college.established_on = parse_date(data.get("established_on"), "established_on")
    if "website_url" in data:
        college.website_url = clean_str(data.get("website_url"))
    if "contact_email" in data:
        email = normalize_email(data.get("contact_email")) or None
        if email and not is_valid_email(email):
            raise ValidationError("Invalid email", details={"contact_email": "invalid"})
        college.contact_email = email
    if "contact_phone" in data:
        phone = clean_str(data.get("contact_phone"), 30)
        if phone and not is_valid_phone(phone):
            raise ValidationError("Invalid phone number", details={"contact_phone": "invalid"})
        college.contact_phone = phone


@colleges_bp.get("")
@require_permission(Permission.VIEW_COLLEGES)
def list_colleges():
    q = College.query
    if scope_for(g.user.role) != Scope.GLOBAL:
        q = q.filter(College.id == g.user.college_id)
    if request.args.get("active") == "true":
        q = q.filter(College.is_active.is_(True))
    return jsonify(paginate(q.order_by(College.name.asc()))), 200


@colleges_bp.post("")
@require_permission(Permission.MANAGE_COLLEGES)
def create_college():
    """
    Creates the college together with its COLLEGE_SUPER_ADMIN account.
    Both rows are committed in one transaction or not at all.
    """
    data = json_body()
    require_fields(data, "name", "address", "established_on", "admin_email", "admin_password")

    college = College(
        name="",
        name_normalized="",
        address=clean_str(data.get("address")),
        established_on=parse_date(data.get("established_on"), "established_on"),
    )
    _apply_fields(college, {k: data[k] for k in EDITABLE_FIELDS if k in data})
    db.session.add(college)
    db.session.flush()

    admin = new_account(
        data.get("admin_email"),
        data.get("admin_password"),
        Role.COLLEGE_SUPER_ADMIN,
        college_id=college.id,
        full_name=clean_str(data.get("admin_name"), 120),
    )
    db.session.commit()

    log_event("COLLEGE_CREATE", user_id=g.user.id, entity="college", entity_id=college.id,
              metadata={"admin_user_id": admin.id})
    return jsonify(college=college.to_dict(), admin=admin.to_dict()), 201


@colleges_bp.get("/<int:college_id>")
@require_permission(Permission.VIEW_COLLEGES)
def get_college(college_id):
    college = _get_college(college_id)
    out = college.to_dict()
    out["logo_url"] = presigned_url(college.logo_key) if college.logo_key else None
    out["departments"] = [d.to_dict() for d in college.departments]
    return jsonify(out), 200


@colleges_bp.patch("/<int:college_id>")
@require_permission(Permission.MANAGE_COLLEGES)
def update_college(college_id):
    college = _get_college(college_id)
    data = json_body()
    _apply_fields(college, {k: data[k] for k in EDITABLE_FIELDS + ("established_on",) if k in data})
    db.session.commit()
    log_event("COLLEGE_UPDATE", user_id=g.user.id, entity="college", entity_id=college.id,
              metadata={"fields": sorted(k for k in data if k in EDITABLE_FIELDS + ("established_on",))})
    return jsonify(college.to_dict()), 200


@colleges_bp.post("/<int:college_id>/deactivate")
@require_permission(Permission.MANAGE_COLLEGES)
def deactivate_college(college_id):
    college = _get_college(college_id)
    college.is_active = False
    db.session.commit()
    log_event("COLLEGE_DEACTIVATE", user_id=g.user.id, entity="college", entity_id=college.id)
    return jsonify(college.to_dict()), 200


@colleges_bp.post("/<int:college_id>/logo")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def upload_logo(college_id):
    college = _get_college(college_id)
    key = accept_upload(request.files.get("file"), "profile", g.user)
    college.logo_key = key
    db.session.commit()
    log_event("COLLEGE_LOGO_UPDATE", user_id=g.user.id, entity="college", entity_id=college.id)
    return jsonify(logo_key=key, logo_url=presigned_url(key)), 200
