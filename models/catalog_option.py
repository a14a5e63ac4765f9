import enum
from datetime import datetime
from models.db import db

# who a catalog price applies to: every product, a category, or one product
APPLICABILITIES = ("all", "canvas", "fabric", "photo", "specific")


class OptionKind(str, enum.Enum):
    IMAGE_EFFECT = "IMAGE_EFFECT"
    EDGE_DESIGN = "EDGE_DESIGN"
    HANGING_VARIETY = "HANGING_VARIETY"
    FRAME_THICKNESS = "FRAME_THICKNESS"
    FRAME_COLOUR = "FRAME_COLOUR"
    FRAME_TYPE = "FRAME_TYPE"
    FLOATING_FRAME_COLOUR = "FLOATING_FRAME_COLOUR"
    PRODUCT_TYPE = "PRODUCT_TYPE"


class CatalogOption(db.Model):
    __tablename__ = "catalog_options"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.Enum(OptionKind, name="option_kind"), nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)
    applicability = db.Column(db.String(20), nullable=False, default="all")
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    status = db.Column(db.String(10), nullable=False, default="active")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "applicability": self.applicability,
            "product_id": self.product_id,
            "price": str(self.price),
        }


class VariationOptionPrice(db.Model):
    """Overrides a catalog option price for a single product variation."""

    __tablename__ = "variation_option_prices"

    id = db.Column(db.Integer, primary_key=True)
    variation_id = db.Column(db.Integer, db.ForeignKey("product_variations.id"), nullable=False, index=True)
    option_id = db.Column(db.Integer, db.ForeignKey("catalog_options.id"), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(10), nullable=False, default="active")

    __table_args__ = (
        db.UniqueConstraint("variation_id", "option_id", name="uq_variation_option"),
    )


class HangingPrice(db.Model):
    """Hanging mechanism price: variation-specific when variation_id is set,
    otherwise a base price scoped by applicability."""

    __tablename__ = "hanging_prices"

    id = db.Column(db.Integer, primary_key=True)
    variation_id = db.Column(db.Integer, db.ForeignKey("product_variations.id"), nullable=True, index=True)
    applicability = db.Column(db.String(20), nullable=False, default="all")
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(10), nullable=False, default="active")


class AcrylicCoverPrice(db.Model):
    """Acrylic cover price, resolved with the same precedence as HangingPrice."""

    __tablename__ = "acrylic_cover_prices"

    id = db.Column(db.Integer, primary_key=True)
    variation_id = db.Column(db.Integer, db.ForeignKey("product_variations.id"), nullable=True, index=True)
    applicability = db.Column(db.String(20), nullable=False, default="all")
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(10), nullable=False, default="active")
