from flask import Blueprint, request, jsonify

from models import db
from models.catalog_option import CatalogOption, OptionKind, VariationOptionPrice
from models.product import Product, ProductVariation, CATEGORIES
from models.shipping_type import ShippingType
from utils.errors import NotFoundError, ValidationError
from utils.panel_layouts import canvas_dimensions, get_layout, image_transform, layout_to_dict, layouts_for
from utils.pricing import breakdown_to_json, load_variation, parse_quantity, price_breakdown
from utils.validation import json_body, parse_float

store_bp = Blueprint("store", __name__, url_prefix="/store")


def _options_for(product: Product):
    """Active options offered for a product, grouped by kind."""
    rows = (
        CatalogOption.query
        .filter(CatalogOption.status == "active")
        .filter(db.or_(
            CatalogOption.applicability.in_(("all", product.category)),
            db.and_(CatalogOption.applicability == "specific", CatalogOption.product_id == product.id),
        ))
        .order_by(CatalogOption.name.asc())
        .all()
    )
    grouped = {kind.value: [] for kind in OptionKind}
    for row in rows:
        grouped[row.kind.value].append(row.to_dict())
    return grouped


@store_bp.get("/layouts")
def list_layouts():
    product_type = request.args.get("type", "multi")
    layouts = layouts_for(product_type)
    if not layouts:
        raise ValidationError("Unknown layout family", details={"type": product_type})
    return jsonify([layout_to_dict(layout) for layout in layouts]), 200


@store_bp.post("/layouts/<layout_id>/preview")
def layout_preview(layout_id):
    """Mock-up geometry: canvas size for the layout plus the image transform."""
    data = json_body()
    layout = get_layout(layout_id, data.get("type", "multi"))
    if layout is None:
        raise NotFoundError("Layout not found")
    base_size = parse_float(data.get("base_size", 400), "base_size", positive=True)
    scale = parse_float(data.get("scale", 1), "scale", positive=True)
    zoom = parse_float(data.get("zoom", 100), "zoom", positive=True)
    position = data.get("position") or {}
    if not isinstance(position, dict):
        raise ValidationError("Invalid preview parameters")
    position = {"x": parse_float(position.get("x", 0), "x"), "y": parse_float(position.get("y", 0), "y")}

    canvas = canvas_dimensions(layout, base_size, scale)
    return jsonify(canvas=canvas, transform=image_transform(position, zoom, canvas)), 200


@store_bp.get("/products")
def list_products():
    q = Product.query.filter(Product.is_active.is_(True))
    category = request.args.get("category")
    if category:
        if category not in CATEGORIES:
            raise ValidationError("Unknown category", details={"allowed": list(CATEGORIES)})
        q = q.filter(Product.category == category)
    return jsonify([p.to_dict() for p in q.order_by(Product.name.asc()).all()]), 200


@store_bp.get("/products/<int:product_id>")
def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product or not product.is_active:
        raise NotFoundError("Product not found")

    variations = (
        ProductVariation.query
        .filter_by(product_id=product.id, status="active")
        .order_by(ProductVariation.price.asc())
        .all()
    )
    overrides = {}
    if variations:
        rows = VariationOptionPrice.query.filter(
            VariationOptionPrice.variation_id.in_([v.id for v in variations]),
            VariationOptionPrice.status == "active",
        ).all()
        for row in rows:
            overrides.setdefault(row.variation_id, {})[str(row.option_id)] = str(row.price)

    out = product.to_dict()
    out["variations"] = [dict(v.to_dict(), option_prices=overrides.get(v.id, {})) for v in variations]
    out["options"] = _options_for(product)
    out["layouts"] = [layout_to_dict(layout) for layout in layouts_for(product.type)]
    return jsonify(out), 200


@store_bp.post("/price")
def quote_price():
    data = json_body()
    variation = load_variation(data.get("variation_id"))
    quantity = parse_quantity(data.get("quantity", 1))
    return jsonify(breakdown_to_json(price_breakdown(variation, data, quantity))), 200


@store_bp.get("/shipping-types")
def list_shipping_types():
    rows = ShippingType.query.filter_by(is_active=True).order_by(ShippingType.price.asc()).all()
    return jsonify([r.to_dict() for r in rows]), 200
