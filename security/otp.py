import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.user import User


def _hash_code(code: str) -> str:
    key = (current_app.config.get("SECRET_KEY") or "").encode("utf-8")
    return hmac.new(key, code.encode("utf-8"), hashlib.sha256).hexdigest()


def generate_code() -> str:
    length = int(current_app.config.get("OTP_LENGTH", 6))
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def seconds_until_next_request(user: User, now=None) -> int:
    """0 when the user may request a new code."""
    if not user.last_otp_request_at:
        return 0
    now = now or datetime.utcnow()
    interval = timedelta(seconds=current_app.config.get("OTP_MIN_INTERVAL_SECONDS", 60))
    wait = (user.last_otp_request_at + interval - now).total_seconds()
    return max(int(wait) + (1 if wait % 1 else 0), 0)


def issue_otp(user: User, now=None) -> str:
    """Stores the hash of a fresh code on the user and returns the raw code."""
    now = now or datetime.utcnow()
    ttl = current_app.config.get("OTP_TTL_SECONDS", 300)

    code = generate_code()
    user.otp_hash = _hash_code(code)
    user.otp_expires_at = now + timedelta(seconds=ttl)
    user.last_otp_request_at = now
    db.session.commit()
    return code


def verify_otp(user: User, code, now=None) -> bool:
    if not user or not user.otp_hash or not user.otp_expires_at:
        return False
    if not isinstance(code, str) or not code.strip():
        return False
    now = now or datetime.utcnow()
    if now > user.otp_expires_at:
        return False
    return hmac.compare_digest(_hash_code(code.strip()), user.otp_hash)


def clear_otp(user: User) -> None:
    user.otp_hash = None
    user.otp_expires_at = None
