import math
from datetime import datetime, timedelta
from flask import current_app

from models import db
from models.ip_rate_limit import IpRateLimit
from utils.audit import client_ip

# scope -> (max requests config key, window seconds config key, defaults)
RATE_LIMITS = {
    "login": ("LOGIN_RATE_MAX_REQUESTS", "LOGIN_RATE_WINDOW_SECONDS", 15, 60),
    "otp": ("OTP_RATE_MAX_REQUESTS", "OTP_RATE_WINDOW_SECONDS", 5, 3600),
}


def check_and_increment(scope: str, max_requests: int, window_seconds: int, now=None) -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    Fixed window per (scope, IP) kept in the database so every worker shares it.
    """
    now = now or datetime.utcnow()
    key = f"{scope}:{client_ip()}"[:120]

    row = IpRateLimit.query.filter_by(key=key).with_for_update().first()
    if row is None:
        row = IpRateLimit(key=key, window_start=now, count=0)
        db.session.add(row)
    elif now >= row.window_start + timedelta(seconds=window_seconds):
        row.window_start = now
        row.count = 0

    row.count += 1
    window_end = row.window_start + timedelta(seconds=window_seconds)
    db.session.commit()

    if row.count <= max_requests:
        return True, 0
    return False, max(math.ceil((window_end - now).total_seconds()), 1)


def check_rate(scope: str, now=None) -> tuple[bool, int]:
    max_key, window_key, default_max, default_window = RATE_LIMITS[scope]
    return check_and_increment(
        scope,
        int(current_app.config.get(max_key, default_max)),
        int(current_app.config.get(window_key, default_window)),
        now=now,
    )


def check_and_increment_login_rate() -> tuple[bool, int]:
    return check_rate("login")


def check_and_increment_otp_rate() -> tuple[bool, int]:
    return check_rate("otp")
