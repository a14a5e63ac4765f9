from datetime import datetime, timedelta

import pytest

from models import AuditLog, SecurityEvent, User, db
from tests.conftest import PASSWORD, captcha_fields


@pytest.fixture
def sent_codes(monkeypatch):
    codes = []

    def fake_send(to_email, code, purpose="login"):
        codes.append(code)
        return True, None

    monkeypatch.setattr("routes.auth.send_otp_email", fake_send)
    return codes


def _request_otp(client, sent_codes, email="user@example.com"):
    resp = client.post("/auth/otp/request", json={"email": email})
    assert resp.status_code == 200
    return sent_codes[-1]


def _login(client, email="user@example.com", password=PASSWORD, otp=None):
    body = {"email": email, "password": password, "otp": otp}
    body.update(captcha_fields(client))
    return client.post("/auth/login", json=body)


def test_register_then_login(client, sent_codes):
    resp = client.post("/auth/register", json={"email": "User@Example.com", "password": PASSWORD})
    assert resp.status_code == 201

    code = _request_otp(client, sent_codes)
    resp = _login(client, otp=code)
    assert resp.status_code == 200
    assert resp.get_json()["state"] == "AUTHENTICATED"

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.get_json()["email"] == "user@example.com"
    assert AuditLog.query.filter_by(action="LOGIN_SUCCESS").count() == 1


def test_register_rejects_weak_password(client):
    resp = client.post("/auth/register", json={"email": "a@example.com", "password": "short"})
    assert resp.status_code == 400
    assert resp.get_json()["details"]


def test_register_rejects_staff_roles(client):
    resp = client.post("/auth/register", json={"email": "a@example.com", "password": PASSWORD, "role": "SBTE_ADMIN"})
    assert resp.status_code == 400


def test_otp_request_for_unknown_email_looks_the_same(client, sent_codes):
    resp = client.post("/auth/otp/request", json={"email": "ghost@example.com"})
    assert resp.status_code == 200
    assert sent_codes == []


def test_five_failures_lock_the_account(client, make_user, sent_codes):
    make_user()
    code = _request_otp(client, sent_codes)

    for _ in range(4):
        assert _login(client, password="Wrong!Passw0rd", otp=code).status_code == 401

    resp = _login(client, password="Wrong!Passw0rd", otp=code)
    assert resp.status_code == 429
    assert resp.get_json()["details"]["lockout_minutes"] == 30
    assert int(resp.headers["Retry-After"]) == 30 * 60
    assert SecurityEvent.query.filter_by(event_type="ACCOUNT_LOCKED", severity="HIGH").count() == 1

    # correct credentials do not get through a lock
    resp = _login(client, otp=code)
    assert resp.status_code == 429
    assert int(resp.headers["Retry-After"]) > 0

    status = client.post("/auth/check-lock-status", json={"email": "user@example.com"}).get_json()
    assert status["is_locked"] is True
    assert status["failed_attempts"] == 5
    assert status["max_attempts"] == 5


def test_check_active_session(client, make_user, login_as):
    user = make_user()
    assert client.post("/auth/check-active-session", json={"email": user.email}).get_json() == {
        "has_active_session": False
    }
    login_as(user)
    assert client.post("/auth/check-active-session", json={"email": user.email}).get_json() == {
        "has_active_session": True
    }


def test_session_validation_reasons(client, make_user, login_as):
    resp = client.get("/auth/session-validation")
    assert resp.status_code == 401
    assert resp.get_json() == {"valid": False, "reason": "No session"}

    login_as(make_user())
    resp = client.get("/auth/session-validation")
    assert resp.status_code == 200
    assert resp.get_json()["valid"] is True


def test_logout_requires_csrf_header(client, make_user, login_as):
    user = make_user()
    login_as(user)

    client.environ_base.pop("HTTP_X_CSRF_TOKEN")
    assert client.post("/auth/logout").status_code == 403
    assert SecurityEvent.query.filter_by(event_type="CSRF_VALIDATION_FAILED").count() == 1

    resp = client.post("/auth/logout", headers={"X-CSRF-Token": "test-csrf-token"})
    assert resp.status_code == 200
    assert not User.query.filter_by(id=user.id).one().is_logged_in


def test_password_reset_with_otp(client, make_user, sent_codes):
    make_user()
    code = _request_otp(client, sent_codes)
    resp = client.post("/auth/password-reset", json={
        "email": "user@example.com", "otp": code, "new_password": "N3w!Passphrase",
    })
    assert resp.status_code == 200

    assert _login(client, password=PASSWORD).status_code == 401


def test_password_strength(client):
    weak = client.post("/auth/password_strength", json={"password": "abc"}).get_json()
    strong = client.post("/auth/password_strength", json={"password": "Correct!Horse9Battery"}).get_json()
    assert weak["valid"] is False
    assert strong["valid"] is True
    assert strong["score"] > weak["score"]


def test_terminate_sessions_needs_permission(client, make_user, login_as):
    target = make_user("target@example.com")
    login_as(make_user("customer@example.com"))
    resp = client.post("/auth/terminate-sessions", json={"user_id": target.id})
    assert resp.status_code == 403


def test_login_after_expired_lock_clears_failure_state(client, make_user, sent_codes):
    user = make_user(
        failed_login_attempts=5,
        is_locked=True,
        locked_until=datetime.utcnow() - timedelta(minutes=1),
        last_failed_login_at=datetime.utcnow() - timedelta(minutes=31),
        lockout_count=1,
    )
    code = _request_otp(client, sent_codes)

    resp = _login(client, otp=code)
    assert resp.status_code == 200

    db.session.refresh(user)
    assert user.failed_login_attempts == 0
    assert not user.is_locked
    assert user.locked_until is None
    assert user.otp_hash is None
    assert user.otp_expires_at is None
    assert user.is_logged_in
    assert user.last_login_at is not None
    assert user.lockout_count == 1
