from flask import Blueprint, request, jsonify, g

from models import db
from models.college import College
from models.department import Department
from security.rbac import Permission, Scope, can_access, require_permission, scope_for
from utils.audit import log_event
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.validation import clean_str, json_body, paginate, parse_int, require_fields

departments_bp = Blueprint("departments", __name__, url_prefix="/departments")


def _target_college_id(data) -> int:
    """Global admins name the college; college staff always act on their own."""
    if scope_for(g.user.role) == Scope.GLOBAL:
        require_fields(data, "college_id")
        return parse_int(data.get("college_id"), "college_id")
    if not g.user.college_id:
        raise AuthorizationError("No college assigned")
    return g.user.college_id


def _get_department(department_id) -> Department:
    dept = db.session.get(Department, department_id)
    if not dept:
        raise NotFoundError("Department not found")
    if scope_for(g.user.role) != Scope.GLOBAL and dept.college_id != g.user.college_id:
        raise AuthorizationError()
    return dept


def _name_taken(college_id, name, exclude_id=None) -> bool:
    q = Department.query.filter(
        Department.college_id == college_id,
        db.func.lower(Department.name) == name.lower(),
    )
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    return db.session.query(q.exists()).scalar()


@departments_bp.get("")
@require_permission(Permission.VIEW_DEPARTMENTS)
def list_departments():
    q = Department.query
    scope = scope_for(g.user.role)
    if scope == Scope.GLOBAL:
        college_id = request.args.get("college_id", type=int)
        if college_id:
            q = q.filter(Department.college_id == college_id)
    else:
        q = q.filter(Department.college_id == g.user.college_id)
    if request.args.get("active") == "true":
        q = q.filter(Department.is_active.is_(True))
    return jsonify(paginate(q.order_by(Department.name.asc()))), 200


@departments_bp.post("")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def create_department():
    data = json_body()
    require_fields(data, "name")
    name = clean_str(data.get("name"), 120)
    college_id = _target_college_id(data)

    college = db.session.get(College, college_id)
    if not college or not college.is_active:
        raise NotFoundError("College not found")
    if _name_taken(college_id, name):
        raise ConflictError("Department already exists in this college")

    dept = Department(name=name, college_id=college_id)
    db.session.add(dept)
    db.session.commit()
    log_event("DEPARTMENT_CREATE", user_id=g.user.id, entity="department", entity_id=dept.id)
    return jsonify(dept.to_dict()), 201


@departments_bp.patch("/<int:department_id>")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def update_department(department_id):
    dept = _get_department(department_id)
    data = json_body()
    name = clean_str(data.get("name"), 120)
    if not name:
        raise ValidationError("Name is required", details={"name": "required"})
    if _name_taken(dept.college_id, name, exclude_id=dept.id):
        raise ConflictError("Department already exists in this college")

    dept.name = name
    db.session.commit()
    log_event("DEPARTMENT_UPDATE", user_id=g.user.id, entity="department", entity_id=dept.id)
    return jsonify(dept.to_dict()), 200


@departments_bp.post("/<int:department_id>/toggle")
@require_permission(Permission.MANAGE_DEPARTMENTS)
def toggle_department(department_id):
    dept = _get_department(department_id)
    dept.is_active = not dept.is_active
    db.session.commit()
    log_event("DEPARTMENT_TOGGLE", user_id=g.user.id, entity="department", entity_id=dept.id,
              metadata={"is_active": dept.is_active})
    return jsonify(dept.to_dict()), 200


def department_in_scope(department_id, user) -> Department:
    """Loads an active department the user may assign people to."""
    dept = db.session.get(Department, department_id)
    if not dept or not dept.is_active:
        raise NotFoundError("Department not found")
    if not can_access(user, dept.college_id, dept.id):
        raise AuthorizationError()
    return dept
