import math
import re
from datetime import date, datetime

from flask import request

from utils.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[0-9 ()-]{7,20}$")


def is_valid_email(email) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL_RE.match(email))


def normalize_email(email) -> str:
    return (email or "").strip().lower() if isinstance(email, str) else ""


def is_valid_phone(phone) -> bool:
    return isinstance(phone, str) and bool(_PHONE_RE.match(phone.strip()))


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require_fields(data: dict, *fields):
    missing = [f for f in fields if data.get(f) in (None, "") or (isinstance(data.get(f), str) and not data.get(f).strip())]
    if missing:
        raise ValidationError("Missing required fields", details={f: "required" for f in missing})


def clean_str(value, max_len=255):
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value[:max_len] if value else None


def parse_date(value, field="date", required=True):
    if value in (None, ""):
        if required:
            raise ValidationError("Missing required fields", details={field: "required"})
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date. Use YYYY-MM-DD", details={field: value})


def parse_int(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", details={field: value})


def parse_float(value, field, positive=False):
    """Finite float; with positive=True also rejects zero and negatives."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", details={field: value})
    if not math.isfinite(number) or (positive and number <= 0):
        raise ValidationError(f"{field} is out of range", details={field: str(value)})
    return number


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def pagination_args(default_size=20, max_size=100):
    page = request.args.get("page", type=int) or 1
    size = request.args.get("page_size", type=int) or default_size
    return max(page, 1), max(1, min(size, max_size))


def paginate(query, to_dict=None):
    page, size = pagination_args()
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * size).limit(size).all()
    render = to_dict or (lambda r: r.to_dict())
    return {
        "items": [render(r) for r in rows],
        "page": page,
        "page_size": size,
        "total": total,
        "pages": (total + size - 1) // size,
    }
