from security.captcha import generate_captcha, validate_captcha
from tests.conftest import solve_captcha

NOW_MS = 1_760_000_000_000


def test_correct_answer_within_ttl(app):
    challenge = generate_captcha(now_ms=NOW_MS)
    answer = solve_captcha(challenge["question"])

    assert challenge["expires_at"] == NOW_MS + 5 * 60 * 1000
    assert validate_captcha(answer, challenge["hash"], challenge["expires_at"], now_ms=NOW_MS + 1000)


def test_wrong_answer_rejected(app):
    challenge = generate_captcha(now_ms=NOW_MS)
    answer = int(solve_captcha(challenge["question"])) + 1
    assert not validate_captcha(str(answer), challenge["hash"], challenge["expires_at"], now_ms=NOW_MS)


def test_expired_challenge_rejected(app):
    challenge = generate_captcha(now_ms=NOW_MS)
    answer = solve_captcha(challenge["question"])
    assert not validate_captcha(answer, challenge["hash"], challenge["expires_at"],
                                now_ms=challenge["expires_at"] + 1)


def test_tampered_expiry_rejected(app):
    challenge = generate_captcha(now_ms=NOW_MS)
    answer = solve_captcha(challenge["question"])
    assert not validate_captcha(answer, challenge["hash"], challenge["expires_at"] + 60_000, now_ms=NOW_MS)


def test_missing_fields_rejected(app):
    assert not validate_captcha(None, "abc", NOW_MS, now_ms=NOW_MS)
    assert not validate_captcha("3", "", NOW_MS, now_ms=NOW_MS)
    assert not validate_captcha("3", "abc", "not-a-number", now_ms=NOW_MS)


def test_subtraction_never_negative(app):
    for _ in range(50):
        challenge = generate_captcha(now_ms=NOW_MS)
        assert int(solve_captcha(challenge["question"])) >= 0
