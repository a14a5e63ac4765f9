import enum
from datetime import datetime
from models.db import db


class Role(str, enum.Enum):
    SBTE_ADMIN = "SBTE_ADMIN"
    EDUCATION_DEPARTMENT = "EDUCATION_DEPARTMENT"
    COLLEGE_SUPER_ADMIN = "COLLEGE_SUPER_ADMIN"
    ADM = "ADM"
    HOD = "HOD"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"
    ALUMNUS = "ALUMNUS"
    CUSTOMER = "CUSTOMER"
    STORE_ADMIN = "STORE_ADMIN"

    @classmethod
    def parse(cls, value):
        """Returns the Role for a name, or None when it is not a known role."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(80), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(Role, name="user_role"), nullable=False, default=Role.CUSTOMER)

    college_id = db.Column(db.Integer, db.ForeignKey("colleges.id"), nullable=True, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True, index=True)

    full_name = db.Column(db.String(120), nullable=True)
    phone_number = db.Column(db.String(30), nullable=True)
    avatar_key = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    # alumni sign themselves up and wait for a college admin
    is_verified = db.Column(db.Boolean, default=True, nullable=False)

    # one-time password (hashed) for login / password reset
    otp_hash = db.Column(db.String(128), nullable=True)
    otp_expires_at = db.Column(db.DateTime, nullable=True)
    last_otp_request_at = db.Column(db.DateTime, nullable=True)

    # lockout bookkeeping
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    last_failed_login_at = db.Column(db.DateTime, nullable=True)
    is_locked = db.Column(db.Boolean, default=False, nullable=False)
    locked_until = db.Column(db.DateTime, nullable=True)
    lockout_count = db.Column(db.Integer, default=0, nullable=False)

    # single active session per account
    is_logged_in = db.Column(db.Boolean, default=False, nullable=False)
    session_token_hash = db.Column(db.String(128), unique=True, nullable=True, index=True)
    session_created_at = db.Column(db.DateTime, nullable=True)
    session_expires_at = db.Column(db.DateTime, nullable=True)
    session_ip = db.Column(db.String(64), nullable=True)
    session_user_agent = db.Column(db.String(255), nullable=True)
    last_activity = db.Column(db.DateTime, nullable=True)
    last_login_at = db.Column(db.DateTime, nullable=True)
    last_logout_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    password_changed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    college = db.relationship("College", foreign_keys=[college_id])
    department = db.relationship("Department", foreign_keys=[department_id])

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "role": self.role.value,
            "college_id": self.college_id,
            "department_id": self.department_id,
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
            "is_verified": self.is_verified,
            "is_locked": self.is_locked,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
