from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)  # nullable for unauth events
    user_email = db.Column(db.String(255), nullable=True)
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. LOGIN_FAIL, COLLEGE_CREATE
    entity = db.Column(db.String(80), nullable=True)   # e.g. college, order
    entity_id = db.Column(db.String(80), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="SUCCESS")  # SUCCESS, FAILURE, WARNING

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "status": self.status,
            "ip": self.ip,
            "user_agent": self.user_agent,
            "metadata": self.metadata_json,
            "timestamp": self.timestamp.isoformat(),
        }
