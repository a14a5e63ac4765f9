"""
Per-account login lockout.

Counters live on the users row so every worker and every entry point
(login, OTP verification, password change) sees the same state. Expired
locks and stale counters are cleared lazily whenever the row is read.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from models import db
from models.user import User


@dataclass
class LockStatus:
    is_locked: bool
    failed_attempts: int
    remaining_seconds: int = 0
    locked_until: Optional[datetime] = None
    lockout_count: int = 0
    locked_now: bool = False

    def to_dict(self):
        return {
            "is_locked": self.is_locked,
            "failed_attempts": self.failed_attempts,
            "max_attempts": max_attempts(),
            "remaining_time": self.remaining_seconds,
            "locked_until": self.locked_until.isoformat() if self.locked_until else None,
            "lockout_count": self.lockout_count,
        }


def max_attempts() -> int:
    return int(current_app.config.get("MAX_LOGIN_ATTEMPTS", 5))


def _lockout_delta() -> timedelta:
    return timedelta(minutes=current_app.config.get("LOCKOUT_MINUTES", 30))


def _window_delta() -> timedelta:
    return timedelta(minutes=current_app.config.get("ATTEMPT_WINDOW_MINUTES", 60))


def _lock_row(user: User) -> User:
    # SELECT ... FOR UPDATE, reloading whatever this session already holds
    return (
        User.query
        .filter_by(id=user.id)
        .populate_existing()
        .with_for_update()
        .one()
    )


def _apply_expiry(user: User, now: datetime) -> None:
    if user.is_locked:
        if user.locked_until is None or now >= user.locked_until:
            user.is_locked = False
            user.locked_until = None
            user.failed_login_attempts = 0
        return

    if (
        user.failed_login_attempts
        and user.last_failed_login_at is not None
        and now - user.last_failed_login_at > _window_delta()
    ):
        user.failed_login_attempts = 0


def _status(user: User, now: datetime, locked_now=False) -> LockStatus:
    if user.is_locked and user.locked_until:
        remaining = math.ceil((user.locked_until - now).total_seconds())
        return LockStatus(
            is_locked=True,
            failed_attempts=user.failed_login_attempts,
            remaining_seconds=max(remaining, 1),
            locked_until=user.locked_until,
            lockout_count=user.lockout_count,
            locked_now=locked_now,
        )
    return LockStatus(
        is_locked=False,
        failed_attempts=user.failed_login_attempts,
        lockout_count=user.lockout_count,
    )


def check_lock(user: Optional[User], now: Optional[datetime] = None) -> LockStatus:
    """Current lock state; unknown accounts always read as unlocked."""
    if user is None:
        return LockStatus(is_locked=False, failed_attempts=0)

    now = now or datetime.utcnow()
    row = _lock_row(user)
    _apply_expiry(row, now)
    status = _status(row, now)
    db.session.commit()
    return status


def record_failure(user: Optional[User], now: Optional[datetime] = None) -> LockStatus:
    """
    Counts one failed attempt. The attempt that reaches the threshold
    locks the account for LOCKOUT_MINUTES from that moment.
    """
    if user is None:
        return LockStatus(is_locked=False, failed_attempts=0)

    now = now or datetime.utcnow()
    row = _lock_row(user)
    _apply_expiry(row, now)

    if row.is_locked:
        status = _status(row, now)
        db.session.commit()
        return status

    row.failed_login_attempts += 1
    row.last_failed_login_at = now

    locked_now = False
    if row.failed_login_attempts >= max_attempts():
        row.is_locked = True
        row.locked_until = now + _lockout_delta()
        row.lockout_count += 1
        locked_now = True

    status = _status(row, now, locked_now=locked_now)
    db.session.commit()
    return status


def reset(user: User, commit: bool = True) -> None:
    """Clears the counter and any lock; lockout_count is history and stays."""
    user.failed_login_attempts = 0
    user.last_failed_login_at = None
    user.is_locked = False
    user.locked_until = None
    if commit:
        db.session.commit()
