from datetime import datetime
from models.db import db


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    college_id = db.Column(db.Integer, db.ForeignKey("colleges.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    college = db.relationship("College", back_populates="departments")

    __table_args__ = (
        # A college cannot have two departments with the same name
        db.UniqueConstraint("college_id", "name", name="uq_department_college_name"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "college_id": self.college_id,
            "college_name": self.college.name if self.college else None,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }
