from datetime import datetime
from models.db import db

CATEGORIES = ("canvas", "fabric", "photo")


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    category = db.Column(db.String(20), nullable=False)  # canvas, fabric, photo
    type = db.Column(db.String(20), nullable=False, default="single")  # single, multi, split
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    variations = db.relationship("ProductVariation", back_populates="product", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "type": self.type,
            "description": self.description,
        }


class ProductVariation(db.Model):
    """One purchasable size of a product; `price` is the base size price."""

    __tablename__ = "product_variations"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    label = db.Column(db.String(80), nullable=False)
    horizontal_length = db.Column(db.Numeric(8, 2), nullable=False)
    vertical_length = db.Column(db.Numeric(8, 2), nullable=False)
    length_unit = db.Column(db.String(10), nullable=False, default="inch")
    price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(10), nullable=False, default="active")

    product = db.relationship("Product", back_populates="variations")

    __table_args__ = (
        db.UniqueConstraint("product_id", "label", name="uq_variation_product_label"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "label": self.label,
            "horizontal_length": str(self.horizontal_length),
            "vertical_length": str(self.vertical_length),
            "length_unit": self.length_unit,
            "price": str(self.price),
            "status": self.status,
        }
