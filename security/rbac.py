import enum
from functools import wraps
from flask import g, jsonify

from models.user import Role


class Permission(str, enum.Enum):
    VIEW_COLLEGES = "VIEW_COLLEGES"
    MANAGE_COLLEGES = "MANAGE_COLLEGES"
    VIEW_DEPARTMENTS = "VIEW_DEPARTMENTS"
    MANAGE_DEPARTMENTS = "MANAGE_DEPARTMENTS"
    VIEW_STUDENTS = "VIEW_STUDENTS"
    MANAGE_STUDENTS = "MANAGE_STUDENTS"
    VIEW_TEACHERS = "VIEW_TEACHERS"
    MANAGE_TEACHERS = "MANAGE_TEACHERS"
    VIEW_USERS = "VIEW_USERS"
    MANAGE_USERS = "MANAGE_USERS"
    UNLOCK_ACCOUNTS = "UNLOCK_ACCOUNTS"
    VIEW_INFRASTRUCTURE = "VIEW_INFRASTRUCTURE"
    MANAGE_INFRASTRUCTURE = "MANAGE_INFRASTRUCTURE"
    UPLOAD_FILES = "UPLOAD_FILES"
    VIEW_ANY_FILE = "VIEW_ANY_FILE"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"
    VIEW_SECURITY_EVENTS = "VIEW_SECURITY_EVENTS"
    MANAGE_SESSIONS = "MANAGE_SESSIONS"
    SHOP = "SHOP"
    MANAGE_STORE = "MANAGE_STORE"


class Scope(str, enum.Enum):
    GLOBAL = "GLOBAL"
    COLLEGE = "COLLEGE"
    DEPARTMENT = "DEPARTMENT"
    SELF = "SELF"


P = Permission

_COLLEGE_STAFF = frozenset({
    P.VIEW_COLLEGES, P.VIEW_DEPARTMENTS, P.VIEW_STUDENTS, P.VIEW_TEACHERS,
    P.VIEW_INFRASTRUCTURE, P.UPLOAD_FILES,
})

ROLE_PERMISSIONS = {
    Role.SBTE_ADMIN: frozenset(P) - {P.SHOP, P.MANAGE_STORE},
    Role.EDUCATION_DEPARTMENT: _COLLEGE_STAFF | {P.VIEW_USERS},
    Role.COLLEGE_SUPER_ADMIN: _COLLEGE_STAFF | {
        P.MANAGE_DEPARTMENTS, P.MANAGE_STUDENTS, P.MANAGE_TEACHERS,
        P.VIEW_USERS, P.MANAGE_USERS, P.UNLOCK_ACCOUNTS,
        P.MANAGE_INFRASTRUCTURE, P.VIEW_ANY_FILE, P.VIEW_AUDIT_LOGS,
    },
    Role.ADM: _COLLEGE_STAFF | {
        P.MANAGE_DEPARTMENTS, P.MANAGE_STUDENTS, P.MANAGE_TEACHERS,
        P.VIEW_USERS, P.MANAGE_USERS, P.MANAGE_INFRASTRUCTURE,
    },
    Role.HOD: _COLLEGE_STAFF | {P.MANAGE_STUDENTS},
    Role.TEACHER: _COLLEGE_STAFF,
    Role.STUDENT: frozenset({P.UPLOAD_FILES, P.SHOP}),
    Role.ALUMNUS: frozenset({P.UPLOAD_FILES, P.SHOP}),
    Role.CUSTOMER: frozenset({P.UPLOAD_FILES, P.SHOP}),
    Role.STORE_ADMIN: frozenset({P.UPLOAD_FILES, P.VIEW_ANY_FILE, P.MANAGE_STORE}),
}

ROLE_SCOPES = {
    Role.SBTE_ADMIN: Scope.GLOBAL,
    Role.EDUCATION_DEPARTMENT: Scope.GLOBAL,
    Role.COLLEGE_SUPER_ADMIN: Scope.COLLEGE,
    Role.ADM: Scope.COLLEGE,
    Role.HOD: Scope.DEPARTMENT,
    Role.TEACHER: Scope.DEPARTMENT,
    Role.STUDENT: Scope.SELF,
    Role.ALUMNUS: Scope.SELF,
    Role.CUSTOMER: Scope.SELF,
    Role.STORE_ADMIN: Scope.GLOBAL,
}

# which roles a holder of MANAGE_USERS may hand out
CREATABLE_ROLES = {
    Role.SBTE_ADMIN: frozenset({
        Role.SBTE_ADMIN, Role.EDUCATION_DEPARTMENT, Role.COLLEGE_SUPER_ADMIN, Role.STORE_ADMIN,
    }),
    Role.COLLEGE_SUPER_ADMIN: frozenset({Role.ADM, Role.HOD, Role.TEACHER}),
    Role.ADM: frozenset({Role.HOD, Role.TEACHER}),
}


def permissions_for(role) -> frozenset:
    return ROLE_PERMISSIONS.get(Role.parse(role), frozenset())


def scope_for(role) -> Scope:
    return ROLE_SCOPES.get(Role.parse(role), Scope.SELF)


def has_permission(permission: Permission, user=None) -> bool:
    user = user if user is not None else getattr(g, "user", None)
    if not user:
        return False
    return permission in permissions_for(user.role)


def can_access(user, college_id=None, department_id=None, owner_id=None) -> bool:
    """Row-level check for one record against the user's data scope."""
    scope = scope_for(user.role)
    if scope == Scope.GLOBAL:
        return True
    if scope == Scope.COLLEGE:
        return college_id is not None and college_id == user.college_id
    if scope == Scope.DEPARTMENT:
        return (
            college_id is not None
            and college_id == user.college_id
            and department_id is not None
            and department_id == user.department_id
        )
    return owner_id is not None and owner_id == user.id


def scope_query(query, model, user):
    """Restricts a query on a model with college_id/department_id/user_id columns."""
    scope = scope_for(user.role)
    if scope == Scope.GLOBAL:
        return query
    if scope == Scope.COLLEGE:
        return query.filter(model.college_id == user.college_id)
    if scope == Scope.DEPARTMENT:
        query = query.filter(model.college_id == user.college_id)
        if hasattr(model, "department_id"):
            query = query.filter(model.department_id == user.department_id)
        return query
    return query.filter(model.user_id == user.id)


def require_permission(*permissions: Permission):
    """
    Usage: @require_permission(Permission.MANAGE_COLLEGES)
    All listed permissions are required.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            granted = permissions_for(user.role)
            if not all(p in granted for p in permissions):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
