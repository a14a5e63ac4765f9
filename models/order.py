import json
from datetime import datetime
from models.db import db

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed")

# order_status moves forward only; cancelled is terminal
ORDER_TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shipping_type_id = db.Column(db.Integer, db.ForeignKey("shipping_types.id"), nullable=False)

    order_status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    is_same_billing_shipping = db.Column(db.Boolean, default=True, nullable=False)

    shipping_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = db.relationship("OrderItem", back_populates="order", lazy=True, cascade="all, delete-orphan")
    addresses = db.relationship("OrderAddress", back_populates="order", lazy=True, cascade="all, delete-orphan")
    shipping_type = db.relationship("ShippingType")

    def to_dict(self, with_items=False):
        out = {
            "id": self.id,
            "user_id": self.user_id,
            "shipping_type_id": self.shipping_type_id,
            "order_status": self.order_status,
            "payment_status": self.payment_status,
            "is_same_billing_shipping": self.is_same_billing_shipping,
            "shipping_amount": str(self.shipping_amount),
            "total_amount": str(self.total_amount),
            "created_at": self.created_at.isoformat(),
        }
        if with_items:
            out["items"] = [i.to_dict() for i in self.items]
            out["addresses"] = [a.to_dict() for a in self.addresses]
        return out


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    variation_id = db.Column(db.Integer, db.ForeignKey("product_variations.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    # selected options copied from the cart line at checkout time
    attributes_json = db.Column(db.Text, nullable=True)

    order = db.relationship("Order", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "variation_id": self.variation_id,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "total_price": str(self.total_price),
            "attributes": json.loads(self.attributes_json) if self.attributes_json else {},
        }


class OrderAddress(db.Model):
    __tablename__ = "order_addresses"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    kind = db.Column(db.String(10), nullable=False)  # SHIPPING, BILLING

    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(30), nullable=False)
    line1 = db.Column(db.String(255), nullable=False)
    line2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(80), nullable=False)
    state = db.Column(db.String(80), nullable=False)
    postal_code = db.Column(db.String(20), nullable=False)
    country = db.Column(db.String(80), nullable=False)

    order = db.relationship("Order", back_populates="addresses")

    def to_dict(self):
        return {
            "kind": self.kind,
            "full_name": self.full_name,
            "phone": self.phone,
            "line1": self.line1,
            "line2": self.line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }
