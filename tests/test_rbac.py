from types import SimpleNamespace

from models import Role, db
from security.rbac import (
    CREATABLE_ROLES, Permission, ROLE_PERMISSIONS, Scope, can_access, has_permission, permissions_for, scope_for,
)


def _user(role, college_id=None, department_id=None, id=1):
    return SimpleNamespace(id=id, role=role, college_id=college_id, department_id=department_id)


def test_every_role_has_permissions_and_scope():
    for role in Role:
        assert role in ROLE_PERMISSIONS
        assert isinstance(scope_for(role), Scope)


def test_unknown_role_gets_nothing():
    assert permissions_for("JANITOR") == frozenset()
    assert scope_for("JANITOR") == Scope.SELF


def test_store_permissions_are_separate_from_erp():
    assert Permission.SHOP not in permissions_for(Role.SBTE_ADMIN)
    assert Permission.MANAGE_STORE in permissions_for(Role.STORE_ADMIN)
    assert Permission.MANAGE_COLLEGES not in permissions_for(Role.STORE_ADMIN)
    assert Permission.SHOP in permissions_for(Role.CUSTOMER)


def test_only_sbte_admin_manages_colleges():
    holders = {role for role in Role if Permission.MANAGE_COLLEGES in permissions_for(role)}
    assert holders == {Role.SBTE_ADMIN}


def test_has_permission_with_explicit_user():
    assert has_permission(Permission.MANAGE_STUDENTS, _user(Role.HOD))
    assert not has_permission(Permission.MANAGE_USERS, _user(Role.TEACHER))


def test_college_scope():
    admin = _user(Role.COLLEGE_SUPER_ADMIN, college_id=7)
    assert can_access(admin, college_id=7)
    assert not can_access(admin, college_id=8)
    assert not can_access(admin)


def test_department_scope_needs_both_ids():
    hod = _user(Role.HOD, college_id=7, department_id=3)
    assert can_access(hod, college_id=7, department_id=3)
    assert not can_access(hod, college_id=7, department_id=4)
    assert not can_access(hod, college_id=8, department_id=3)


def test_self_scope():
    student = _user(Role.STUDENT, id=42)
    assert can_access(student, owner_id=42)
    assert not can_access(student, owner_id=43, college_id=1)


def test_global_scope():
    assert can_access(_user(Role.EDUCATION_DEPARTMENT), college_id=99)


def test_role_grants_do_not_escalate():
    assert Role.SBTE_ADMIN not in CREATABLE_ROLES[Role.COLLEGE_SUPER_ADMIN]
    assert Role.COLLEGE_SUPER_ADMIN not in CREATABLE_ROLES[Role.ADM]
    assert Role.TEACHER not in CREATABLE_ROLES.get(Role.TEACHER, frozenset())


def test_adm_cannot_deactivate_college_super_admin(client, make_user, login_as, college):
    csa = make_user("csa@college.example.com", role=Role.COLLEGE_SUPER_ADMIN, college_id=college.id)
    login_as(make_user("adm@college.example.com", role=Role.ADM, college_id=college.id))

    assert client.post(f"/users/{csa.id}/deactivate").status_code == 403
    assert client.post(f"/users/{csa.id}/activate").status_code == 403
    db.session.refresh(csa)
    assert csa.is_active


def test_adm_manages_roles_it_can_create(client, make_user, login_as, college):
    hod = make_user("hod@college.example.com", role=Role.HOD, college_id=college.id)
    login_as(make_user("adm@college.example.com", role=Role.ADM, college_id=college.id))

    resp = client.post(f"/users/{hod.id}/deactivate")
    assert resp.status_code == 200
    assert resp.get_json()["is_active"] is False


def test_college_admin_verifies_alumni_and_unlocks_students(client, make_user, login_as, college):
    alumnus = make_user("alum@college.example.com", role=Role.ALUMNUS, college_id=college.id, is_verified=False)
    student = make_user("student@college.example.com", role=Role.STUDENT, college_id=college.id,
                        is_locked=True, failed_login_attempts=5)
    login_as(make_user("csa@college.example.com", role=Role.COLLEGE_SUPER_ADMIN, college_id=college.id))

    assert client.post(f"/users/{alumnus.id}/verify").get_json()["is_verified"] is True
    assert client.post(f"/users/{student.id}/unlock").get_json()["is_locked"] is False
    assert client.post(f"/users/{student.id}/deactivate").status_code == 403


def test_sbte_admin_manages_any_role(client, make_user, login_as, college):
    csa = make_user("csa@college.example.com", role=Role.COLLEGE_SUPER_ADMIN, college_id=college.id)
    login_as(make_user("sbte@example.com", role=Role.SBTE_ADMIN))

    assert client.post(f"/users/{csa.id}/deactivate").status_code == 200
