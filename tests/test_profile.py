from models import Role, Teacher, User, db
from tests.conftest import PASSWORD


def test_wrong_current_password_feeds_lockout(client, make_user, login_as):
    user = make_user()
    login_as(user)

    for _ in range(4):
        resp = client.post("/profile/password", json={"current_password": "nope", "new_password": "N3w!Passphrase"})
        assert resp.status_code == 401

    resp = client.post("/profile/password", json={"current_password": "nope", "new_password": "N3w!Passphrase"})
    assert resp.status_code == 429

    # locked even with the right password now
    resp = client.post("/profile/password", json={"current_password": PASSWORD, "new_password": "N3w!Passphrase"})
    assert resp.status_code == 429
    assert db.session.get(User, user.id).lockout_count == 1


def test_password_change(client, make_user, login_as):
    user = make_user()
    login_as(user)
    resp = client.post("/profile/password", json={"current_password": PASSWORD, "new_password": PASSWORD})
    assert resp.status_code == 400

    resp = client.post("/profile/password", json={"current_password": PASSWORD, "new_password": "N3w!Passphrase"})
    assert resp.status_code == 200


def test_profile_update(client, make_user, login_as):
    login_as(make_user())
    resp = client.patch("/profile", json={"full_name": "  Asha  ", "phone_number": "abc"})
    assert resp.status_code == 400

    resp = client.patch("/profile", json={"full_name": "Asha"})
    assert resp.status_code == 200
    assert client.get("/profile").get_json()["full_name"] == "Asha"


def test_teacher_creation(client, make_user, login_as, college, department):
    login_as(make_user("adm@college.example.com", role=Role.ADM, college_id=college.id))
    resp = client.post("/teachers", json={
        "email": "teach@college.example.com",
        "password": PASSWORD,
        "name": "Meera Iyer",
        "department_id": department.id,
        "designation": "Lecturer",
    })
    assert resp.status_code == 201
    teacher = Teacher.query.one()
    assert teacher.user.role == Role.TEACHER
    assert teacher.department_id == department.id

    resp = client.post(f"/teachers/{teacher.id}/deactivate")
    assert resp.status_code == 200
    assert not db.session.get(User, teacher.user_id).is_active
