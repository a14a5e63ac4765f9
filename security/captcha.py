import hashlib
import hmac
import secrets
import time

from flask import current_app

OPERATORS = ("+", "-", "×")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _salt() -> str:
    return current_app.config.get("SECRET_KEY") or "default-salt"


def _digest(answer: str, expires_at: int) -> str:
    return hashlib.sha256(f"{answer}{_salt()}{expires_at}".encode("utf-8")).hexdigest()


def generate_captcha(now_ms=None) -> dict:
    """
    Arithmetic challenge. Only the salted hash of the answer leaves the
    server; expires_at (epoch millis) is bound into the hash.
    """
    a = secrets.randbelow(10) + 1
    b = secrets.randbelow(10) + 1
    op = OPERATORS[secrets.randbelow(len(OPERATORS))]

    if op == "+":
        answer = a + b
    elif op == "-":
        # keep results positive
        a, b = max(a, b), min(a, b)
        answer = a - b
    else:
        answer = a * b

    ttl_ms = int(current_app.config.get("CAPTCHA_TTL_SECONDS", 300)) * 1000
    expires_at = (now_ms or _now_ms()) + ttl_ms

    return {
        "question": f"What is {a} {op} {b}?",
        "hash": _digest(str(answer), expires_at),
        "expires_at": expires_at,
    }


def validate_captcha(answer, captcha_hash, expires_at, now_ms=None) -> bool:
    if answer is None or not captcha_hash or not expires_at:
        return False
    try:
        expires_at = int(expires_at)
    except (TypeError, ValueError):
        return False

    if (now_ms or _now_ms()) > expires_at:
        return False

    expected = _digest(str(answer).strip(), expires_at)
    return hmac.compare_digest(expected, str(captcha_hash))
