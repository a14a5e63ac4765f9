from datetime import datetime
from models.db import db


class Infrastructure(db.Model):
    __tablename__ = "infrastructures"

    id = db.Column(db.Integer, primary_key=True)
    college_id = db.Column(db.Integer, db.ForeignKey("colleges.id"), nullable=False, index=True)
    title = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # object storage key, never a public URL
    document_key = db.Column(db.String(255), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "college_id": self.college_id,
            "title": self.title,
            "description": self.description,
            "document_key": self.document_key,
            "uploaded_by": self.uploaded_by,
            "created_at": self.created_at.isoformat(),
        }
