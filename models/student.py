from datetime import datetime
from models.db import db


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    college_id = db.Column(db.Integer, db.ForeignKey("colleges.id"), nullable=False, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    enrollment_no = db.Column(db.String(40), nullable=True, unique=True)
    dob = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(20), nullable=False)
    phone_no = db.Column(db.String(30), nullable=False)
    personal_email = db.Column(db.String(255), nullable=True)

    father_name = db.Column(db.String(120), nullable=True)
    mother_name = db.Column(db.String(120), nullable=True)
    permanent_address = db.Column(db.String(255), nullable=True)
    admission_date = db.Column(db.Date, nullable=True)
    is_local_student = db.Column(db.Boolean, default=False, nullable=False)
    is_differently_abled = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("student", uselist=False))
    department = db.relationship("Department")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.user.email if self.user else None,
            "college_id": self.college_id,
            "department_id": self.department_id,
            "name": self.name,
            "enrollment_no": self.enrollment_no,
            "dob": self.dob.isoformat(),
            "gender": self.gender,
            "phone_no": self.phone_no,
            "personal_email": self.personal_email,
            "father_name": self.father_name,
            "mother_name": self.mother_name,
            "permanent_address": self.permanent_address,
            "admission_date": self.admission_date.isoformat() if self.admission_date else None,
            "is_local_student": self.is_local_student,
            "is_differently_abled": self.is_differently_abled,
        }
