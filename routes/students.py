from flask import Blueprint, request, jsonify, g

from models import db
from models.student import Student
from models.user import Role
from security.rbac import Permission, can_access, has_permission, require_permission, scope_query
from security.session import terminate_session
from utils.accounts import new_account
from utils.audit import log_event
from utils.auth_context import login_required
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.validation import (
    clean_str, is_valid_email, is_valid_phone, json_body, normalize_email, paginate,
    parse_bool, parse_date, parse_int, require_fields,
)
from routes.departments import department_in_scope

students_bp = Blueprint("students", __name__, url_prefix="/students")

GENDERS = ("male", "female", "other")

TEXT_FIELDS = {
    "name": 120,
    "father_name": 120,
    "mother_name": 120,
    "permanent_address": 255,
}


def _apply_fields(student: Student, data: dict):
    for field, max_len in TEXT_FIELDS.items():
        if field in data:
            setattr(student, field, clean_str(data.get(field), max_len))
    if "enrollment_no" in data:
        enrollment_no = clean_str(data.get("enrollment_no"), 40)
        if enrollment_no:
            clash = Student.query.filter(Student.enrollment_no == enrollment_no, Student.id != student.id).first()
            if clash:
                raise ConflictError("Enrollment number already in use")
        student.enrollment_no = enrollment_no
    if "dob" in data:
        student.dob = parse_date(data.get("dob"), "dob")
    if "admission_date" in data:
        student.admission_date = parse_date(data.get("admission_date"), "admission_date", required=False)
    if "gender" in data:
        gender = (data.get("gender") or "").strip().lower()
        if gender not in GENDERS:
            raise ValidationError("Invalid gender", details={"gender": list(GENDERS)})
        student.gender = gender
    if "phone_no" in data:
        if not is_valid_phone(data.get("phone_no")):
            raise ValidationError("Invalid phone number", details={"phone_no": "invalid"})
        student.phone_no = data["phone_no"].strip()
    if "personal_email" in data:
        email = normalize_email(data.get("personal_email")) or None
        if email and not is_valid_email(email):
            raise ValidationError("Invalid email", details={"personal_email": "invalid"})
        student.personal_email = email
    for flag in ("is_local_student", "is_differently_abled"):
        if flag in data:
            setattr(student, flag, parse_bool(data.get(flag)))
    if not student.name:
        raise ValidationError("Name is required", details={"name": "required"})


def _get_student(student_id, manage=False) -> Student:
    student = db.session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    if student.user_id == g.user.id and not manage:
        return student
    permission = Permission.MANAGE_STUDENTS if manage else Permission.VIEW_STUDENTS
    if not has_permission(permission) or not can_access(g.user, student.college_id, student.department_id):
        raise AuthorizationError()
    return student


@students_bp.get("")
@require_permission(Permission.VIEW_STUDENTS)
def list_students():
    q = scope_query(Student.query, Student, g.user)
    department_id = request.args.get("department_id", type=int)
    if department_id:
        q = q.filter(Student.department_id == department_id)
    search = (request.args.get("q") or "").strip()
    if search:
        q = q.filter(db.or_(Student.name.ilike(f"%{search}%"), Student.enrollment_no.ilike(f"%{search}%")))
    return jsonify(paginate(q.order_by(Student.name.asc()))), 200


@students_bp.post("")
@require_permission(Permission.MANAGE_STUDENTS)
def create_student():
    data = json_body()
    require_fields(data, "email", "password", "name", "dob", "gender", "phone_no", "department_id")

    dept = department_in_scope(parse_int(data.get("department_id"), "department_id"), g.user)

    user = new_account(
        data.get("email"),
        data.get("password"),
        Role.STUDENT,
        college_id=dept.college_id,
        department_id=dept.id,
        full_name=clean_str(data.get("name"), 120),
    )
    student = Student(user_id=user.id, college_id=dept.college_id, department_id=dept.id)
    _apply_fields(student, data)
    db.session.add(student)
    db.session.commit()

    log_event("STUDENT_CREATE", user_id=g.user.id, entity="student", entity_id=student.id)
    return jsonify(student.to_dict()), 201


@students_bp.get("/<int:student_id>")
@login_required
def get_student(student_id):
    return jsonify(_get_student(student_id).to_dict()), 200


@students_bp.patch("/<int:student_id>")
@require_permission(Permission.MANAGE_STUDENTS)
def update_student(student_id):
    student = _get_student(student_id, manage=True)
    data = json_body()

    if "department_id" in data:
        dept = department_in_scope(parse_int(data.get("department_id"), "department_id"), g.user)
        student.department_id = dept.id
        student.college_id = dept.college_id
        student.user.department_id = dept.id

    _apply_fields(student, data)
    if "name" in data:
        student.user.full_name = student.name
    db.session.commit()

    log_event("STUDENT_UPDATE", user_id=g.user.id, entity="student", entity_id=student.id,
              metadata={"fields": sorted(data.keys())})
    return jsonify(student.to_dict()), 200


@students_bp.delete("/<int:student_id>")
@require_permission(Permission.MANAGE_STUDENTS)
def delete_student(student_id):
    student = _get_student(student_id, manage=True)
    user = student.user

    db.session.delete(student)
    user.is_active = False
    db.session.commit()
    terminate_session(user, reason="ACCOUNT_DEACTIVATED_LOGOUT")

    log_event("STUDENT_DELETE", user_id=g.user.id, entity="student", entity_id=student_id,
              metadata={"student_user_id": user.id})
    return jsonify(message="Student deleted"), 200
