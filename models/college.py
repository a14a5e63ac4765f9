from datetime import datetime
from models.db import db


class College(db.Model):
    __tablename__ = "colleges"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    name_normalized = db.Column(db.String(160), nullable=False, unique=True)
    address = db.Column(db.String(255), nullable=False)
    established_on = db.Column(db.Date, nullable=False)

    website_url = db.Column(db.String(255), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(30), nullable=True)
    logo_key = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    departments = db.relationship("Department", back_populates="college", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "established_on": self.established_on.isoformat(),
            "website_url": self.website_url,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "logo_key": self.logo_key,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }
