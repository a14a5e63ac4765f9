from flask import Blueprint, request, jsonify, g

from models import db
from models.college import College
from models.user import User, Role
from security.lockout import reset as reset_lockout
from security.rbac import CREATABLE_ROLES, Permission, Scope, can_access, require_permission, scope_for
from security.session import terminate_session
from utils.accounts import new_account
from utils.audit import log_event, log_security_event
from utils.errors import AuthorizationError, NotFoundError, ValidationError
from utils.validation import clean_str, json_body, paginate, parse_int, require_fields
from routes.departments import department_in_scope

users_bp = Blueprint("users", __name__, url_prefix="/users")

# roles that belong to a department rather than the whole college
DEPARTMENT_ROLES = (Role.HOD, Role.TEACHER)

# learner accounts are managed through /students; college admins may still unlock them
LEARNER_ROLES = frozenset({Role.STUDENT, Role.ALUMNUS})


def _get_target(user_id, extra_roles=frozenset()) -> User:
    """
    Loads a user the caller may manage: inside the caller's data scope and,
    below SBTE_ADMIN, holding a role the caller could create (plus extra_roles).
    """
    target = db.session.get(User, user_id)
    if not target:
        raise NotFoundError("User not found")
    if not can_access(g.user, target.college_id, target.department_id, owner_id=target.id):
        raise AuthorizationError()
    if g.user.role != Role.SBTE_ADMIN:
        manageable = CREATABLE_ROLES.get(g.user.role, frozenset()) | extra_roles
        if target.role not in manageable:
            log_event("USER_MANAGE_DENIED", user_id=g.user.id, status="FAILURE", entity="user",
                      entity_id=target.id, metadata={"role": target.role.value})
            raise AuthorizationError("You may not manage users with this role")
    return target


@users_bp.get("")
@require_permission(Permission.VIEW_USERS)
def list_users():
    q = User.query
    scope = scope_for(g.user.role)
    if scope == Scope.COLLEGE:
        q = q.filter(User.college_id == g.user.college_id)
    elif scope != Scope.GLOBAL:
        raise AuthorizationError()

    role = request.args.get("role")
    if role:
        parsed = Role.parse(role)
        if parsed is None:
            raise ValidationError("Unknown role", details={"role": role})
        q = q.filter(User.role == parsed)
    search = (request.args.get("q") or "").strip().lower()
    if search:
        q = q.filter(db.or_(User.email.ilike(f"%{search}%"), User.full_name.ilike(f"%{search}%")))
    if request.args.get("locked") == "true":
        q = q.filter(User.is_locked.is_(True))

    return jsonify(paginate(q.order_by(User.created_at.desc()))), 200


@users_bp.post("")
@require_permission(Permission.MANAGE_USERS)
def create_user():
    data = json_body()
    require_fields(data, "email", "password", "role")

    role = Role.parse(data.get("role"))
    if role is None or role not in CREATABLE_ROLES.get(g.user.role, frozenset()):
        log_event("USER_CREATE_DENIED", user_id=g.user.id, status="FAILURE", metadata={"role": data.get("role")})
        raise AuthorizationError("You may not create users with this role")

    college_id = None
    department_id = None
    if role in DEPARTMENT_ROLES:
        require_fields(data, "department_id")
        dept = department_in_scope(parse_int(data.get("department_id"), "department_id"), g.user)
        college_id, department_id = dept.college_id, dept.id
    elif role == Role.COLLEGE_SUPER_ADMIN:
        require_fields(data, "college_id")
        college = db.session.get(College, parse_int(data.get("college_id"), "college_id"))
        if not college or not college.is_active:
            raise NotFoundError("College not found")
        college_id = college.id
    elif role == Role.ADM:
        college_id = g.user.college_id

    user = new_account(
        data.get("email"),
        data.get("password"),
        role,
        college_id=college_id,
        department_id=department_id,
        full_name=clean_str(data.get("full_name"), 120),
    )
    db.session.commit()

    log_event("USER_CREATE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"role": role.value})
    return jsonify(user.to_dict()), 201


@users_bp.post("/<int:user_id>/activate")
@require_permission(Permission.MANAGE_USERS)
def activate_user(user_id):
    target = _get_target(user_id)
    target.is_active = True
    db.session.commit()
    log_event("USER_ACTIVATE", user_id=g.user.id, entity="user", entity_id=target.id)
    return jsonify(target.to_dict()), 200


@users_bp.post("/<int:user_id>/deactivate")
@require_permission(Permission.MANAGE_USERS)
def deactivate_user(user_id):
    target = _get_target(user_id)
    if target.id == g.user.id:
        raise ValidationError("You cannot deactivate your own account")

    target.is_active = False
    db.session.commit()
    terminate_session(target, reason="ACCOUNT_DEACTIVATED_LOGOUT")
    log_event("USER_DEACTIVATE", user_id=g.user.id, entity="user", entity_id=target.id)
    return jsonify(target.to_dict()), 200


@users_bp.post("/<int:user_id>/verify")
@require_permission(Permission.MANAGE_USERS)
def verify_alumnus(user_id):
    target = _get_target(user_id, extra_roles=frozenset({Role.ALUMNUS}))
    if target.role != Role.ALUMNUS:
        raise ValidationError("Only alumni accounts need verification")
    target.is_verified = True
    db.session.commit()
    log_event("ALUMNUS_VERIFY", user_id=g.user.id, entity="user", entity_id=target.id)
    return jsonify(target.to_dict()), 200


@users_bp.post("/<int:user_id>/unlock")
@require_permission(Permission.UNLOCK_ACCOUNTS)
def unlock_user(user_id):
    target = _get_target(user_id, extra_roles=LEARNER_ROLES)
    was_locked = target.is_locked
    reset_lockout(target)

    log_event("ACCOUNT_UNLOCK", user_id=g.user.id, entity="user", entity_id=target.id,
              metadata={"was_locked": was_locked})
    log_security_event("ACCOUNT_UNLOCKED_BY_ADMIN", severity="LOW", user_id=target.id,
                       user_email=target.email, details={"admin_id": g.user.id})
    return jsonify(target.to_dict()), 200
