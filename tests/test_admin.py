from datetime import datetime, timedelta

from models import Role, User, db
from utils.audit import log_event, log_security_event


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_audit_log_filters(client, make_user, login_as):
    admin = make_user("sbte@example.com", role=Role.SBTE_ADMIN)
    log_event("COLLEGE_CREATE", user_id=admin.id)
    log_event("LOGIN_FAIL", user_email="x@example.com", status="FAILURE")
    login_as(admin)

    body = client.get("/admin/audit-logs?status=failure").get_json()
    assert [row["action"] for row in body["items"]] == ["LOGIN_FAIL"]
    assert client.get("/admin/audit-logs?since=yesterday").status_code == 400


def test_college_admin_audit_scope(client, make_user, login_as, college):
    mine = make_user("a@college.example.com", role=Role.COLLEGE_SUPER_ADMIN, college_id=college.id)
    outsider = make_user("b@example.com")
    log_event("PROFILE_UPDATE", user_id=outsider.id)
    login_as(mine)

    actions = [row["action"] for row in client.get("/admin/audit-logs").get_json()["items"]]
    assert "PROFILE_UPDATE" not in actions


def test_security_events_by_severity(client, make_user, login_as):
    log_security_event("ACCOUNT_LOCKED", severity="HIGH")
    log_security_event("CONCURRENT_SESSION_ATTEMPT", severity="LOW")
    login_as(make_user("sbte@example.com", role=Role.SBTE_ADMIN))

    body = client.get("/admin/security-events?severity=high").get_json()
    assert [row["event_type"] for row in body["items"]] == ["ACCOUNT_LOCKED"]
    assert client.get("/admin/security-events?severity=nope").status_code == 400


def test_security_events_need_permission(client, make_user, login_as):
    login_as(make_user())
    assert client.get("/admin/security-events").status_code == 403


def test_session_cleanup_endpoint(client, app, make_user, login_as):
    from security.session import start_session

    stale = make_user("stale@example.com")
    with app.test_request_context():
        start_session(stale, datetime.utcnow() - timedelta(hours=3))
    login_as(make_user("sbte@example.com", role=Role.SBTE_ADMIN))

    resp = client.post("/admin/session-cleanup")
    assert resp.status_code == 200
    assert resp.get_json()["cleared"] == 1
    assert not db.session.get(User, stale.id).is_logged_in
