"""
Login as an explicit sequence of checks. Each check moves the attempt one
state forward; the first failing check stops the attempt where it is.
Nothing is retried.
"""
import enum

from models.user import User, Role
from security.captcha import validate_captcha
from security.otp import verify_otp
from security.password import verify_password


class AuthState(enum.Enum):
    UNVALIDATED = "UNVALIDATED"
    CAPTCHA_CHECKED = "CAPTCHA_CHECKED"
    CREDENTIAL_CHECKED = "CREDENTIAL_CHECKED"
    OTP_CHECKED = "OTP_CHECKED"
    ROLE_VERIFIED = "ROLE_VERIFIED"
    AUTHENTICATED = "AUTHENTICATED"


class LoginFailed(Exception):
    def __init__(self, state: AuthState, reason: str):
        super().__init__(reason)
        self.state = state
        self.reason = reason


def _role_allowed(user: User, requested_role) -> bool:
    if not user.is_active:
        return False
    if user.role == Role.ALUMNUS and not user.is_verified:
        return False
    if requested_role in (None, ""):
        return True
    return Role.parse(requested_role) == user.role


def run_checks(user, data: dict, now=None, now_ms=None) -> AuthState:
    """
    Walks UNVALIDATED -> ROLE_VERIFIED. Raises LoginFailed with the state
    reached when a check fails. The caller finishes AUTHENTICATED by
    starting the session.
    """
    state = AuthState.UNVALIDATED

    if not validate_captcha(
        data.get("captcha_answer"),
        data.get("captcha_hash"),
        data.get("captcha_expires_at"),
        now_ms=now_ms,
    ):
        raise LoginFailed(state, "captcha")
    state = AuthState.CAPTCHA_CHECKED

    if user is None or not verify_password(data.get("password") or "", user.password_hash):
        raise LoginFailed(state, "credentials")
    state = AuthState.CREDENTIAL_CHECKED

    if not verify_otp(user, data.get("otp"), now=now):
        raise LoginFailed(state, "otp")
    state = AuthState.OTP_CHECKED

    if not _role_allowed(user, data.get("role")):
        raise LoginFailed(state, "role")
    return AuthState.ROLE_VERIFIED
