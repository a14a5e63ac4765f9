from datetime import datetime
from models.db import db


class IpRateLimit(db.Model):
    """One fixed-window counter per scope and client IP."""

    __tablename__ = "ip_rate_limits"

    id = db.Column(db.Integer, primary_key=True)
    # "<scope>:<ip>", e.g. "otp:10.0.0.1"
    key = db.Column(db.String(120), unique=True, nullable=False, index=True)
    window_start = db.Column(db.DateTime, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
