from models import db
from models.user import User
from security.password import hash_password
from security.password_policy import validate_password
from utils.errors import ConflictError, ValidationError
from utils.validation import is_valid_email, normalize_email


def new_account(email, password, role, college_id=None, department_id=None, full_name=None) -> User:
    """Validates and stages a user row; the caller owns the commit."""
    email = normalize_email(email)
    if not is_valid_email(email):
        raise ValidationError("Invalid email", details={"email": "invalid"})
    valid, errors = validate_password(password)
    if not valid:
        raise ValidationError("Password does not meet policy", details=errors)
    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        college_id=college_id,
        department_id=department_id,
        full_name=full_name,
    )
    db.session.add(user)
    db.session.flush()
    return user
