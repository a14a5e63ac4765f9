import re
from typing import List, Tuple

from flask import current_app

_RULES = (
    ("PASSWORD_REQUIRE_UPPER", re.compile(r"[A-Z]"), "Password must include at least 1 uppercase letter"),
    ("PASSWORD_REQUIRE_LOWER", re.compile(r"[a-z]"), "Password must include at least 1 lowercase letter"),
    ("PASSWORD_REQUIRE_DIGIT", re.compile(r"\d"), "Password must include at least 1 number"),
    ("PASSWORD_REQUIRE_SYMBOL", re.compile(r"[^A-Za-z0-9]"), "Password must include at least 1 symbol"),
)

_DEFAULTS = {
    "PASSWORD_MIN_LEN": 8,
    "PASSWORD_MAX_LEN": 128,
    "PASSWORD_REQUIRE_UPPER": True,
    "PASSWORD_REQUIRE_LOWER": True,
    "PASSWORD_REQUIRE_DIGIT": True,
    "PASSWORD_REQUIRE_SYMBOL": True,
}


def _cfg(name: str):
    return current_app.config.get(name, _DEFAULTS[name])


def _active_rules():
    return [(pattern, message) for key, pattern, message in _RULES if _cfg(key)]


def validate_password(pw) -> Tuple[bool, List[str]]:
    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    errors: List[str] = []
    min_len = int(_cfg("PASSWORD_MIN_LEN"))
    max_len = int(_cfg("PASSWORD_MAX_LEN"))

    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    if len(pw) > max_len:
        errors.append(f"Password must be at most {max_len} characters")
    errors.extend(message for pattern, message in _active_rules() if not pattern.search(pw))

    return (len(errors) == 0), errors


def password_strength(pw) -> dict:
    """0-4 score for the sign-up meter; `valid` mirrors validate_password."""
    valid, errors = validate_password(pw)
    if not isinstance(pw, str):
        return {"score": 0, "valid": False, "feedback": errors}

    rules = _active_rules()
    min_len = int(_cfg("PASSWORD_MIN_LEN"))
    variety = sum(1 for pattern, _ in rules if pattern.search(pw))
    max_variety = max(1, len(rules))

    score = 0
    if len(pw) >= min_len:
        score += 1
    if len(pw) >= min_len + 4:
        score += 1
    if variety >= min(3, max_variety):
        score += 1
    if variety == max_variety and len(pw) >= min_len:
        score += 1

    feedback = errors
    if valid:
        feedback = []
        if len(pw) < min_len + 4:
            feedback.append("Use a longer passphrase for extra strength")

    return {"score": min(score, 4), "valid": valid, "feedback": feedback}
