from datetime import datetime, timedelta

import pytest

from models import Role
from security.auth_flow import AuthState, LoginFailed, run_checks
from security.captcha import generate_captcha
from security.otp import issue_otp, verify_otp, seconds_until_next_request
from tests.conftest import PASSWORD, solve_captcha

NOW = datetime(2026, 1, 1, 9, 0, 0)
NOW_MS = 1_760_000_000_000


@pytest.fixture
def login_data(app):
    challenge = generate_captcha(now_ms=NOW_MS)
    return {
        "captcha_answer": solve_captcha(challenge["question"]),
        "captcha_hash": challenge["hash"],
        "captcha_expires_at": challenge["expires_at"],
        "password": PASSWORD,
    }


def _run(user, data):
    return run_checks(user, data, now=NOW, now_ms=NOW_MS)


def test_all_checks_pass(make_user, login_data):
    user = make_user()
    login_data["otp"] = issue_otp(user, NOW)
    assert _run(user, login_data) == AuthState.ROLE_VERIFIED


def test_bad_captcha_stops_before_credentials(make_user, login_data):
    user = make_user()
    login_data["captcha_answer"] = "-1"
    with pytest.raises(LoginFailed) as exc:
        _run(user, login_data)
    assert exc.value.state == AuthState.UNVALIDATED
    assert exc.value.reason == "captcha"


def test_wrong_password(make_user, login_data):
    user = make_user()
    login_data["password"] = "wrong"
    with pytest.raises(LoginFailed) as exc:
        _run(user, login_data)
    assert exc.value.state == AuthState.CAPTCHA_CHECKED


def test_unknown_user_fails_as_credentials(app, login_data):
    with pytest.raises(LoginFailed) as exc:
        _run(None, login_data)
    assert exc.value.reason == "credentials"


def test_missing_otp(make_user, login_data):
    user = make_user()
    issue_otp(user, NOW)
    with pytest.raises(LoginFailed) as exc:
        _run(user, login_data)
    assert exc.value.state == AuthState.CREDENTIAL_CHECKED
    assert exc.value.reason == "otp"


def test_role_mismatch(make_user, login_data):
    user = make_user(role=Role.CUSTOMER)
    login_data["otp"] = issue_otp(user, NOW)
    login_data["role"] = "TEACHER"
    with pytest.raises(LoginFailed) as exc:
        _run(user, login_data)
    assert exc.value.state == AuthState.OTP_CHECKED


def test_unverified_alumnus_cannot_pass_role_check(make_user, login_data):
    user = make_user(role=Role.ALUMNUS, is_verified=False)
    login_data["otp"] = issue_otp(user, NOW)
    with pytest.raises(LoginFailed) as exc:
        _run(user, login_data)
    assert exc.value.reason == "role"


def test_otp_expires(make_user):
    user = make_user()
    code = issue_otp(user, NOW)
    assert verify_otp(user, code, now=NOW + timedelta(minutes=4))
    assert not verify_otp(user, code, now=NOW + timedelta(minutes=6))


def test_otp_request_interval(make_user):
    user = make_user()
    issue_otp(user, NOW)
    assert seconds_until_next_request(user, NOW + timedelta(seconds=20)) == 40
    assert seconds_until_next_request(user, NOW + timedelta(seconds=61)) == 0
