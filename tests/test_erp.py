import pytest

from models import db, College, Department, Role, Student, User, AuditLog
from tests.conftest import PASSWORD

NEW_COLLEGE = {
    "name": "Govt  Engineering College",
    "address": "Station Road",
    "established_on": "1985-07-01",
    "admin_email": "principal@gec.example.com",
    "admin_password": PASSWORD,
}

STUDENT = {
    "email": "ravi@student.example.com",
    "password": PASSWORD,
    "name": "Ravi Kumar",
    "dob": "2005-03-14",
    "gender": "male",
    "phone_no": "+91 90000 11111",
}


@pytest.fixture
def sbte_admin(make_user, login_as):
    user = make_user("sbte@example.com", role=Role.SBTE_ADMIN)
    login_as(user)
    return user


@pytest.fixture
def college_admin(make_user, login_as, college):
    user = make_user("admin@college.example.com", role=Role.COLLEGE_SUPER_ADMIN, college_id=college.id)
    login_as(user)
    return user


def test_college_created_with_super_admin(client, sbte_admin):
    resp = client.post("/colleges", json=NEW_COLLEGE)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["admin"]["role"] == "COLLEGE_SUPER_ADMIN"
    assert body["admin"]["college_id"] == body["college"]["id"]
    assert AuditLog.query.filter_by(action="COLLEGE_CREATE").count() == 1


def test_college_name_is_unique_ignoring_case_and_spacing(client, sbte_admin):
    client.post("/colleges", json=NEW_COLLEGE)
    clash = dict(NEW_COLLEGE, name="govt engineering   COLLEGE", admin_email="other@gec.example.com")
    assert client.post("/colleges", json=clash).status_code == 409


def test_failed_admin_account_leaves_no_college(client, sbte_admin):
    resp = client.post("/colleges", json=dict(NEW_COLLEGE, admin_password="weak"))
    assert resp.status_code == 400
    assert College.query.count() == 0


def test_only_sbte_admin_creates_colleges(client, college_admin):
    assert client.post("/colleges", json=NEW_COLLEGE).status_code == 403


def test_college_admin_sees_only_own_college(client, college_admin, college):
    other = College(name="Other", name_normalized="other", address="x", established_on=college.established_on)
    db.session.add(other)
    db.session.commit()

    listed = client.get("/colleges").get_json()
    assert [c["id"] for c in listed["items"]] == [college.id]
    assert client.get(f"/colleges/{other.id}").status_code == 403


def test_department_names_unique_per_college(client, college_admin):
    assert client.post("/departments", json={"name": "Mechanical"}).status_code == 201
    assert client.post("/departments", json={"name": "mechanical"}).status_code == 409


def test_department_toggle(client, college_admin, department):
    resp = client.post(f"/departments/{department.id}/toggle")
    assert resp.status_code == 200
    assert resp.get_json()["is_active"] is False


def test_student_creation_creates_login(client, college_admin, department):
    resp = client.post("/students", json=dict(STUDENT, department_id=department.id))
    assert resp.status_code == 201
    student = db.session.get(Student, resp.get_json()["id"])
    assert student.college_id == department.college_id

    account = User.query.filter_by(email="ravi@student.example.com").one()
    assert account.role == Role.STUDENT
    assert account.department_id == department.id


def test_student_requires_fields(client, college_admin, department):
    resp = client.post("/students", json={"department_id": department.id, "name": "X"})
    assert resp.status_code == 400
    assert "dob" in resp.get_json()["details"]


def test_hod_limited_to_own_department(client, make_user, login_as, college, department):
    other_dept = Department(name="Electrical", college_id=college.id)
    db.session.add(other_dept)
    db.session.commit()

    hod = make_user("hod@college.example.com", role=Role.HOD, college_id=college.id, department_id=other_dept.id)
    login_as(hod)
    resp = client.post("/students", json=dict(STUDENT, department_id=department.id))
    assert resp.status_code == 403


def test_role_creation_rules(client, college_admin, department):
    resp = client.post("/users", json={
        "email": "t1@college.example.com", "password": PASSWORD, "role": "TEACHER", "department_id": department.id,
    })
    assert resp.status_code == 201

    resp = client.post("/users", json={"email": "x@example.com", "password": PASSWORD, "role": "SBTE_ADMIN"})
    assert resp.status_code == 403


def test_unlock_account(client, college_admin, make_user, college):
    locked = make_user("locked@college.example.com", role=Role.TEACHER, college_id=college.id,
                       is_locked=True, failed_login_attempts=5)
    resp = client.post(f"/users/{locked.id}/unlock")
    assert resp.status_code == 200
    assert resp.get_json()["is_locked"] is False


def test_deactivated_user_is_logged_out(client, app, college_admin, make_user, college):
    from security.session import start_session

    teacher = make_user("teacher@college.example.com", role=Role.TEACHER, college_id=college.id)
    with app.test_request_context():
        start_session(teacher)

    resp = client.post(f"/users/{teacher.id}/deactivate")
    assert resp.status_code == 200
    assert not db.session.get(User, teacher.id).is_logged_in
