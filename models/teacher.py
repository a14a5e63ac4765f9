from datetime import datetime
from models.db import db


class Teacher(db.Model):
    __tablename__ = "teachers"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    college_id = db.Column(db.Integer, db.ForeignKey("colleges.id"), nullable=False, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    designation = db.Column(db.String(80), nullable=True)
    phone_no = db.Column(db.String(30), nullable=True)
    qualification = db.Column(db.String(120), nullable=True)
    experience = db.Column(db.String(80), nullable=True)
    joining_date = db.Column(db.Date, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("teacher", uselist=False))

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.user.email if self.user else None,
            "college_id": self.college_id,
            "department_id": self.department_id,
            "name": self.name,
            "designation": self.designation,
            "phone_no": self.phone_no,
            "qualification": self.qualification,
            "experience": self.experience,
            "joining_date": self.joining_date.isoformat() if self.joining_date else None,
            "is_active": self.is_active,
        }
