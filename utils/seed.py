from decimal import Decimal

from models import db
from models.product import Product, ProductVariation
from models.shipping_type import ShippingType

DEFAULT_SHIPPING_TYPES = [
    ("Standard", "Delivered in 5-7 business days", Decimal("0.00")),
    ("Express", "Delivered in 1-2 business days", Decimal("150.00")),
]

# photo print sizes (inches) and their base prices
PHOTO_SIZE_OPTIONS = [
    ("8x12", 8, 12, Decimal("950.00")),
    ("12x8", 12, 8, Decimal("950.00")),
    ("12x16", 12, 16, Decimal("1250.00")),
    ("16x12", 16, 12, Decimal("1250.00")),
    ("16x24", 16, 24, Decimal("1950.00")),
    ("24x16", 24, 16, Decimal("1950.00")),
]


def seed_shipping_types():
    existing = {s.name for s in ShippingType.query.all()}
    for name, description, price in DEFAULT_SHIPPING_TYPES:
        if name not in existing:
            db.session.add(ShippingType(name=name, description=description, price=price))
    db.session.commit()


def seed_photo_product(name="Photo Print"):
    product = Product.query.filter_by(name=name, category="photo").first()
    if product is None:
        product = Product(name=name, category="photo", type="single")
        db.session.add(product)
        db.session.flush()

    labels = {v.label for v in product.variations}
    for label, width, height, price in PHOTO_SIZE_OPTIONS:
        if label not in labels:
            db.session.add(ProductVariation(
                product_id=product.id,
                label=label,
                horizontal_length=width,
                vertical_length=height,
                price=price,
            ))
    db.session.commit()
    return product
