from flask import Blueprint, request, jsonify, g

from models import db
from models.teacher import Teacher
from models.user import Role
from security.rbac import Permission, can_access, require_permission, scope_query
from security.session import terminate_session
from utils.accounts import new_account
from utils.audit import log_event
from utils.errors import AuthorizationError, NotFoundError, ValidationError
from utils.validation import (
    clean_str, is_valid_phone, json_body, paginate, parse_date, parse_int, require_fields,
)
from routes.departments import department_in_scope

teachers_bp = Blueprint("teachers", __name__, url_prefix="/teachers")

TEXT_FIELDS = {
    "name": 120,
    "designation": 80,
    "qualification": 120,
    "experience": 80,
}


def _apply_fields(teacher: Teacher, data: dict):
    for field, max_len in TEXT_FIELDS.items():
        if field in data:
            setattr(teacher, field, clean_str(data.get(field), max_len))
    if "phone_no" in data:
        phone = clean_str(data.get("phone_no"), 30)
        if phone and not is_valid_phone(phone):
            raise ValidationError("Invalid phone number", details={"phone_no": "invalid"})
        teacher.phone_no = phone
    if "joining_date" in data:
        teacher.joining_date = parse_date(data.get("joining_date"), "joining_date", required=False)
    if not teacher.name:
        raise ValidationError("Name is required", details={"name": "required"})


def _get_teacher(teacher_id) -> Teacher:
    teacher = db.session.get(Teacher, teacher_id)
    if not teacher:
        raise NotFoundError("Teacher not found")
    if not can_access(g.user, teacher.college_id, teacher.department_id):
        raise AuthorizationError()
    return teacher


@teachers_bp.get("")
@require_permission(Permission.VIEW_TEACHERS)
def list_teachers():
    q = scope_query(Teacher.query, Teacher, g.user)
    department_id = request.args.get("department_id", type=int)
    if department_id:
        q = q.filter(Teacher.department_id == department_id)
    if request.args.get("active") == "true":
        q = q.filter(Teacher.is_active.is_(True))
    return jsonify(paginate(q.order_by(Teacher.name.asc()))), 200


@teachers_bp.post("")
@require_permission(Permission.MANAGE_TEACHERS)
def create_teacher():
    data = json_body()
    require_fields(data, "email", "password", "name", "department_id")
    dept = department_in_scope(parse_int(data.get("department_id"), "department_id"), g.user)

    user = new_account(
        data.get("email"),
        data.get("password"),
        Role.TEACHER,
        college_id=dept.college_id,
        department_id=dept.id,
        full_name=clean_str(data.get("name"), 120),
    )
    teacher = Teacher(user_id=user.id, college_id=dept.college_id, department_id=dept.id)
    _apply_fields(teacher, data)
    db.session.add(teacher)
    db.session.commit()

    log_event("TEACHER_CREATE", user_id=g.user.id, entity="teacher", entity_id=teacher.id)
    return jsonify(teacher.to_dict()), 201


@teachers_bp.patch("/<int:teacher_id>")
@require_permission(Permission.MANAGE_TEACHERS)
def update_teacher(teacher_id):
    teacher = _get_teacher(teacher_id)
    data = json_body()
    if "department_id" in data:
        dept = department_in_scope(parse_int(data.get("department_id"), "department_id"), g.user)
        teacher.department_id = dept.id
        teacher.user.department_id = dept.id
    _apply_fields(teacher, data)
    db.session.commit()

    log_event("TEACHER_UPDATE", user_id=g.user.id, entity="teacher", entity_id=teacher.id,
              metadata={"fields": sorted(data.keys())})
    return jsonify(teacher.to_dict()), 200


@teachers_bp.post("/<int:teacher_id>/deactivate")
@require_permission(Permission.MANAGE_TEACHERS)
def deactivate_teacher(teacher_id):
    teacher = _get_teacher(teacher_id)
    teacher.is_active = False
    teacher.user.is_active = False
    db.session.commit()
    terminate_session(teacher.user, reason="ACCOUNT_DEACTIVATED_LOGOUT")

    log_event("TEACHER_DEACTIVATE", user_id=g.user.id, entity="teacher", entity_id=teacher.id)
    return jsonify(teacher.to_dict()), 200
