from datetime import datetime, timedelta

from security import lockout


def test_fifth_failure_locks_for_thirty_minutes(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)

    for i in range(4):
        status = lockout.record_failure(user, now + timedelta(seconds=i))
        assert not status.is_locked
    assert status.failed_attempts == 4

    status = lockout.record_failure(user, now + timedelta(seconds=10))
    assert status.is_locked
    assert status.locked_now
    assert status.lockout_count == 1
    assert status.locked_until == now + timedelta(seconds=10, minutes=30)
    assert status.remaining_seconds == 30 * 60


def test_locked_account_rejects_until_expiry(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)
    for _ in range(5):
        lockout.record_failure(user, now)

    assert lockout.check_lock(user, now + timedelta(minutes=15)).is_locked
    status = lockout.check_lock(user, now + timedelta(minutes=15))
    assert status.remaining_seconds == 15 * 60

    after = lockout.check_lock(user, now + timedelta(minutes=31))
    assert not after.is_locked
    assert after.failed_attempts == 0
    assert after.lockout_count == 1


def test_failure_while_locked_does_not_extend_lock(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)
    for _ in range(5):
        lockout.record_failure(user, now)

    status = lockout.record_failure(user, now + timedelta(minutes=5))
    assert status.is_locked
    assert not status.locked_now
    assert status.locked_until == now + timedelta(minutes=30)


def test_stale_failures_outside_window_start_over(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)
    for _ in range(3):
        lockout.record_failure(user, now)

    status = lockout.record_failure(user, now + timedelta(minutes=61))
    assert status.failed_attempts == 1
    assert not status.is_locked


def test_remaining_time_rounds_up(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)
    for _ in range(5):
        lockout.record_failure(user, now)

    status = lockout.check_lock(user, now + timedelta(minutes=29, seconds=59, milliseconds=500))
    assert status.remaining_seconds == 1


def test_reset_keeps_lockout_history(make_user):
    user = make_user()
    now = datetime(2026, 1, 1, 12, 0, 0)
    for _ in range(5):
        lockout.record_failure(user, now)

    lockout.reset(user)
    status = lockout.check_lock(user, now)
    assert not status.is_locked
    assert status.failed_attempts == 0
    assert status.lockout_count == 1


def test_unknown_account_reads_unlocked(app):
    status = lockout.check_lock(None)
    assert not status.is_locked
    assert status.to_dict()["max_attempts"] == 5
